from datetime import datetime

from echoflow.models import Entry
from storage.context_summary import UNAVAILABLE_SUMMARY, ContextSummarizer
from storage.entry_store import InMemoryEntryStore

class BrokenStore(InMemoryEntryStore):
    def list_entries(self, kind=None, start=None, end=None):
        raise RuntimeError("database locked")

def _add(store, kind, title, when, completed=False):
    store.add_entry(Entry(kind=kind, title=title, content="", date=when, completed=completed))

def test_empty_store(store, now):
    summary = ContextSummarizer(store).summarize(now=now)
    assert summary.startswith("Today's context:")
    assert "Open todos: none" in summary
    assert "Open reminders: none" in summary
    assert "Notes today: none" in summary
    assert "Daily Notes: none" in summary

def test_open_items_and_today_notes(store, now):
    _add(store, "todo", "Finish deck", datetime(2026, 1, 20, 9, 0))
    _add(store, "todo", "Old task", datetime(2026, 1, 10, 9, 0), completed=True)
    _add(store, "reminder", "Call Sam", datetime(2026, 1, 18, 9, 0))
    _add(store, "note", "Wifi code", datetime(2026, 1, 18, 8, 0))
    _add(store, "note", "Old note", datetime(2026, 1, 17, 8, 0))
    store.append_to_diary(now.date(), "Slow morning")

    summary = ContextSummarizer(store).summarize(now=now)
    assert "Open todos (1):\n- [todo] Finish deck" in summary
    assert "Old task" not in summary
    assert "- [reminder] Call Sam" in summary
    assert "Wifi code" in summary
    assert "Old note" not in summary
    assert summary.endswith("Daily Notes:\nSlow morning")

def test_bounded_output(store, now):
    for i in range(5):
        _add(store, "todo", f"Task {i}", datetime(2026, 1, 18, 9, i))
    store.append_to_diary(now.date(), "z" * 1000)

    summary = ContextSummarizer(store, max_items=2, max_diary_chars=20).summarize(now=now)
    assert "Task 1" in summary
    assert "Task 2" not in summary
    assert "(+3 more)" in summary
    assert summary.endswith("Daily Notes:\n" + "z" * 20)

def test_store_failure_degrades(now):
    assert ContextSummarizer(BrokenStore()).summarize(now=now) == UNAVAILABLE_SUMMARY
