from __future__ import annotations
import json
from typing import Dict, List

from llm.providers.base import LLMProvider

class MockProvider(LLMProvider):
    def chat(self, messages: List[Dict[str, str]], model: str | None = None) -> str:
        """
        Returns a canned reply with an action block based on the last user message.
        """
        user = ""
        for message in reversed(messages):
            if message.get("role") == "user":
                user = message.get("content", "")
                break
        lower_user = user.lower()

        actions = []
        # Simple keyword matching for demo purposes
        if lower_user.startswith("today was") or "i feel" in lower_user:
            actions.append({
                "type": "journal",
                "title": "Daily reflection",
                "content": user,
                "tags": ["reflection"],
            })
        elif "remind me" in lower_user:
            actions.append({
                "type": "reminder",
                "title": user.split("remind me", 1)[-1].strip(" .,:") or "Reminder",
                "content": user,
            })
        elif "need to" in lower_user or "todo" in lower_user:
            actions.append({
                "type": "todo",
                "title": user[:50],
                "content": user,
            })
        elif "note" in lower_user:
            actions.append({
                "type": "note",
                "title": "Note",
                "content": user,
            })

        if not actions:
            return "Thanks for sharing! Let me know if there is anything I should keep track of."

        return (
            "Got it! I'll keep track of that for you.\n\n"
            "---JSON---\n"
            + json.dumps({"actions": actions})
            + "\n---END---"
        )
