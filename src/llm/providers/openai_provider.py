from __future__ import annotations
import os
from typing import Dict, List

import httpx
from .base import LLMProvider

class OpenAIProvider(LLMProvider):
    """Chat completions against any OpenAI-compatible endpoint."""

    api_key_env = "OPENAI_API_KEY"
    model_env = "OPENAI_MODEL"
    base_url_env = "OPENAI_BASE_URL"
    default_model = "gpt-4o-mini"
    default_base_url = "https://api.openai.com/v1"

    def __init__(self):
        self.api_key = os.getenv(self.api_key_env, "").strip()
        self.model = os.getenv(self.model_env, self.default_model).strip()
        self.base_url = os.getenv(self.base_url_env, self.default_base_url).strip()
        self.temperature = float(os.getenv("LLM_TEMPERATURE", "0.7"))
        self.max_tokens = int(os.getenv("LLM_MAX_TOKENS", "2000"))

        if not self.api_key:
            raise RuntimeError(f"{self.api_key_env} is missing")

    def chat(self, messages: List[Dict[str, str]], model: str | None = None) -> str:
        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": model or self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

        with httpx.Client(timeout=30.0) as client:
            r = client.post(url, headers=headers, json=payload)
            r.raise_for_status()
            data = r.json()

        choices = data.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""
