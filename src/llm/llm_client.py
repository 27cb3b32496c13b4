import json
import logging
import os
import re
from typing import Any, Dict, List, Optional, Tuple

from llm.providers.base import LLMProvider

logger = logging.getLogger(__name__)

ACTION_BLOCK_RE = re.compile(r"---JSON---\s*([\s\S]*?)\s*---END---")
CODE_FENCE_RE = re.compile(r"```(?:json)?")


def get_provider(name: Optional[str] = None) -> LLMProvider:
    """Build the provider named by `name` or the LLM_PROVIDER env var."""
    name = (name or os.getenv("LLM_PROVIDER", "mock")).strip().lower()

    if name == "openai":
        from llm.providers.openai_provider import OpenAIProvider
        return OpenAIProvider()
    if name == "groq":
        from llm.providers.groq_provider import GroqProvider
        return GroqProvider()
    if name == "ollama":
        from llm.providers.ollama_provider import OllamaProvider
        return OllamaProvider()
    if name == "mock":
        from llm.providers.mock_provider import MockProvider
        return MockProvider()

    raise RuntimeError(f"Unknown LLM_PROVIDER: {name}")


class LLMClient:
    """Thin wrapper around a provider.

    The provider is resolved lazily so that a missing API key surfaces on the
    first call rather than at import time.
    """

    def __init__(self, provider: Optional[LLMProvider] = None):
        self._provider = provider

    @property
    def provider(self) -> LLMProvider:
        if self._provider is None:
            self._provider = get_provider()
        return self._provider

    def chat(self, messages: List[Dict[str, str]]) -> str:
        return self.provider.chat(messages)

    @staticmethod
    def split_reply(text: str) -> Tuple[str, Optional[Dict[str, Any]]]:
        """Separate the conversational reply from the trailing action block.

        Returns the reply with every action block removed, and the parsed JSON
        payload of the first block (None when there is none or it is invalid).
        """
        text = text or ""
        payload: Optional[Dict[str, Any]] = None

        match = ACTION_BLOCK_RE.search(text)
        if match:
            raw = CODE_FENCE_RE.sub("", match.group(1)).strip()
            try:
                parsed = json.loads(raw)
                if isinstance(parsed, dict):
                    payload = parsed
                else:
                    logger.warning("Action block is not a JSON object, ignoring it")
            except json.JSONDecodeError as e:
                logger.warning(f"Failed to parse action block: {e}")

        reply = ACTION_BLOCK_RE.sub("", text).strip()
        return reply, payload
