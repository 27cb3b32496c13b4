from datetime import datetime, timedelta, timezone

import pytest
from echoflow.models import ActionProposal, CommitResult, Conversation, Entry, RawCandidate

def test_raw_candidate_defaults():
    c = RawCandidate(kind="todo", title="Send invoice", content=None)
    assert c.content == ""
    assert c.date is None
    assert c.priority is None
    assert c.tags is None

def test_raw_candidate_unknown_priority_is_dropped():
    c = RawCandidate(kind="Reminder", title="X", content="X", priority="very-urgent")
    assert c.kind == "reminder"
    assert c.priority is None

def test_raw_candidate_requires_title_and_content():
    with pytest.raises(Exception):
        RawCandidate(kind="todo", title="X")

def test_raw_candidate_invalid_kind():
    with pytest.raises(Exception):
        RawCandidate(kind="meeting", title="X", content="X")

def test_proposal_tags_lowercased_and_deduped():
    p = ActionProposal(
        kind="todo",
        title="T",
        tags=["Contract", " contract ", "Southern Tide", ""],
        priority="urgent-important",
    )
    assert p.tags == ["contract", "southern tide"]

def test_proposal_requires_priority():
    with pytest.raises(Exception):
        ActionProposal(kind="todo", title="T")

def test_proposal_with_fields_validates():
    p = ActionProposal(kind="todo", title="T", priority="urgent-important")
    with pytest.raises(Exception):
        p.with_fields({"priority": "whenever"})
    assert p.with_fields({"title": "New"}).title == "New"

def test_commit_result_affected():
    r = CommitResult(created=2, updated=1, diary_updated=1, failed=3)
    assert r.affected == 4

def test_conversation_turn_ids_are_monotonic():
    conv = Conversation()
    a = conv.add_turn("user", "hi")
    b = conv.add_turn("assistant", "hello")
    assert (a.id, b.id) == (0, 1)
    assert conv.get_turn(1) is b
    assert conv.history() == [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
    ]
    assert b.status == "resolved"

def test_aware_dates_are_stored_naive():
    p = ActionProposal.model_validate(
        {"kind": "todo", "title": "T", "when": "2026-01-18T16:00:00Z", "priority": "urgent-important"}
    )
    assert p.when == datetime(2026, 1, 18, 16, 0)

    patched = p.with_fields({"when": datetime(2026, 1, 19, 9, 0, tzinfo=timezone(timedelta(hours=5)))})
    assert patched.when.tzinfo is None

    c = RawCandidate(kind="todo", title="X", content="X", date="2026-01-18T07:30:00+00:00")
    assert c.date == datetime(2026, 1, 18, 7, 30)

    e = Entry(kind="note", title="x", date=datetime(2026, 1, 18, 7, 30, tzinfo=timezone.utc))
    assert e.date == datetime(2026, 1, 18, 7, 30)
