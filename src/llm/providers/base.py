from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, List

class LLMProvider(ABC):
    @abstractmethod
    def chat(self, messages: List[Dict[str, str]]) -> str:
        """
        Must return the model output as TEXT (the action block is parsed in LLMClient).
        """
        raise NotImplementedError
