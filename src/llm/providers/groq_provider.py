from __future__ import annotations
from .openai_provider import OpenAIProvider

class GroqProvider(OpenAIProvider):
    """Groq exposes the OpenAI chat completions API under its own base URL."""

    api_key_env = "GROQ_API_KEY"
    model_env = "GROQ_MODEL"
    base_url_env = "GROQ_BASE_URL"
    default_model = "llama-3.3-70b-versatile"
    default_base_url = "https://api.groq.com/openai/v1"
