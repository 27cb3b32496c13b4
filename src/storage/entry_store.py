from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional

from echoflow.errors import StoreWriteFailed
from echoflow.models import DiaryEntry, Entry

logger = logging.getLogger(__name__)


class EntryStore(ABC):
    """Narrow persistence interface for committed entries and daily journals."""

    @abstractmethod
    def list_entries(
        self,
        kind: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Entry]:
        raise NotImplementedError

    @abstractmethod
    def add_entry(self, entry: Entry) -> Entry:
        raise NotImplementedError

    @abstractmethod
    def get_diary(self, day: date) -> Optional[DiaryEntry]:
        raise NotImplementedError

    @abstractmethod
    def save_diary(self, diary: DiaryEntry) -> DiaryEntry:
        raise NotImplementedError

    def append_to_diary(self, day: date, text: str) -> bool:
        """
        Merge `text` into the journal record of `day`, creating it if needed.

        Returns False (and writes nothing) when the text is blank or already
        contained in the day's record.
        """
        trimmed = text.strip()
        if not trimmed:
            return False

        existing = self.get_diary(day)
        if existing is None:
            self.save_diary(DiaryEntry(day=day, content=trimmed))
            return True

        if trimmed.lower() in existing.content.lower():
            return False

        self.save_diary(
            existing.model_copy(
                update={
                    "content": f"{existing.content.strip()}\n\n{trimmed}",
                    "updated_at": datetime.now(),
                }
            )
        )
        return True


def _in_range(entry: Entry, start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start is not None and entry.date < start:
        return False
    if end is not None and entry.date > end:
        return False
    return True


class InMemoryEntryStore(EntryStore):
    def __init__(self):
        self.entries: Dict[str, Entry] = {}
        self.diaries: Dict[date, DiaryEntry] = {}

    def list_entries(self, kind=None, start=None, end=None) -> List[Entry]:
        out = [
            e
            for e in self.entries.values()
            if (kind is None or e.kind == kind) and _in_range(e, start, end)
        ]
        return sorted(out, key=lambda e: e.date)

    def add_entry(self, entry: Entry) -> Entry:
        self.entries[entry.id] = entry
        return entry

    def get_diary(self, day: date) -> Optional[DiaryEntry]:
        return self.diaries.get(day)

    def save_diary(self, diary: DiaryEntry) -> DiaryEntry:
        self.diaries[diary.day] = diary
        return diary


class JsonEntryStore(InMemoryEntryStore):
    """
    File-backed store. The whole document is rewritten on every write through
    a temp file + os.replace, so a single write is atomic on disk.
    """

    def __init__(self, path: str = "data/entries.json"):
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
            for raw in data.get("entries", []):
                entry = Entry.model_validate(raw)
                self.entries[entry.id] = entry
            for raw in data.get("diary", []):
                diary = DiaryEntry.model_validate(raw)
                self.diaries[diary.day] = diary
        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Entry store {self.path} is unreadable, starting empty: {e}")
            self.entries.clear()
            self.diaries.clear()

    def _flush(self) -> None:
        data = {
            "entries": [e.model_dump(mode="json") for e in self.entries.values()],
            "diary": [d.model_dump(mode="json") for d in self.diaries.values()],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        except OSError as e:
            raise StoreWriteFailed(f"could not write {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except OSError as e:
            raise StoreWriteFailed(f"could not write {self.path}: {e}") from e
        finally:
            # gone already after a successful replace
            Path(tmp).unlink(missing_ok=True)

    def add_entry(self, entry: Entry) -> Entry:
        previous = self.entries.get(entry.id)
        super().add_entry(entry)
        try:
            self._flush()
        except StoreWriteFailed:
            # keep memory in line with disk
            if previous is None:
                self.entries.pop(entry.id, None)
            else:
                self.entries[entry.id] = previous
            raise
        return entry

    def save_diary(self, diary: DiaryEntry) -> DiaryEntry:
        previous = self.diaries.get(diary.day)
        super().save_diary(diary)
        try:
            self._flush()
        except StoreWriteFailed:
            if previous is None:
                self.diaries.pop(diary.day, None)
            else:
                self.diaries[diary.day] = previous
            raise
        return diary
