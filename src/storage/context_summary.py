import logging
import os
from datetime import datetime, time
from typing import List, Optional

from echoflow.models import Entry
from storage.entry_store import EntryStore

logger = logging.getLogger(__name__)

CONTEXT_MAX_ITEMS = int(os.getenv("CONTEXT_MAX_ITEMS", "10"))
CONTEXT_MAX_DIARY_CHARS = int(os.getenv("CONTEXT_MAX_DIARY_CHARS", "600"))
CONTEXT_MAX_LINE_CHARS = 160

UNAVAILABLE_SUMMARY = "Today's context: unavailable"


def _line(entry: Entry) -> str:
    line = f"- [{entry.kind}] {entry.title}: {entry.content}"
    if len(line) > CONTEXT_MAX_LINE_CHARS:
        line = line[: CONTEXT_MAX_LINE_CHARS - 3] + "..."
    return line


class ContextSummarizer:
    """Compact digest of open items, used to ground the classifier."""

    def __init__(
        self,
        store: EntryStore,
        max_items: int = CONTEXT_MAX_ITEMS,
        max_diary_chars: int = CONTEXT_MAX_DIARY_CHARS,
    ):
        self.store = store
        self.max_items = max_items
        self.max_diary_chars = max_diary_chars

    def _section(self, label: str, entries: List[Entry]) -> str:
        if not entries:
            return f"{label}: none"
        lines = [_line(e) for e in entries[: self.max_items]]
        if len(entries) > self.max_items:
            lines.append(f"(+{len(entries) - self.max_items} more)")
        return f"{label} ({len(entries)}):\n" + "\n".join(lines)

    def summarize(self, now: Optional[datetime] = None) -> str:
        now = now or datetime.now()
        start = datetime.combine(now.date(), time.min)
        end = datetime.combine(now.date(), time.max)
        try:
            todos = [e for e in self.store.list_entries(kind="todo") if not e.completed]
            reminders = [
                e for e in self.store.list_entries(kind="reminder") if not e.completed
            ]
            notes = self.store.list_entries(kind="note", start=start, end=end)
            diary = self.store.get_diary(now.date())
        except Exception as e:
            logger.warning(f"Context summary degraded, store unavailable: {e}")
            return UNAVAILABLE_SUMMARY

        diary_text = (diary.content.strip() if diary else "")[: self.max_diary_chars]
        return "\n".join(
            [
                "Today's context:",
                self._section("Open todos", todos),
                self._section("Open reminders", reminders),
                self._section("Notes today", notes),
                f"Daily Notes:\n{diary_text}" if diary_text else "Daily Notes: none",
            ]
        )
