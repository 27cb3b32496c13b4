from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from echoflow.errors import InvalidPersistedSnapshot
from echoflow.models import Conversation

logger = logging.getLogger(__name__)


class ConversationStore:
    """Key-value style snapshot of the chat, staged proposals included."""

    def __init__(self, path: str = "data/conversation.json"):
        self.path = Path(path)

    def load(self) -> Conversation:
        """
        Load the snapshot from disk. Returns a fresh conversation if the file is
        missing or does not match the current shape.
        """
        if not self.path.exists():
            return Conversation()
        try:
            return self.parse(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError, InvalidPersistedSnapshot) as e:
            # ValueError covers UnicodeDecodeError from a mangled file
            logger.warning(f"Discarding conversation snapshot {self.path}: {e}")
            return Conversation()

    @staticmethod
    def parse(raw: str) -> Conversation:
        try:
            data = json.loads(raw)
            return Conversation.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise InvalidPersistedSnapshot(str(e)) from e

    def save(self, conversation: Conversation) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            conversation.model_dump_json(indent=2),
            encoding="utf-8",
        )

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
