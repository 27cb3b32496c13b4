from datetime import datetime

from echoflow.models import ActionProposal, PRIORITIES, RawCandidate
from normalization.normalizer import HeuristicNormalizer, follow_up_prompt

SCENARIO = "I need to call Sam and reply to Jane's email about the budget before 3pm today"

def _normalizer(now):
    return HeuristicNormalizer(clock=lambda: now)

def test_scenario_synthesizes_reply_and_call(now):
    out = _normalizer(now).normalize(SCENARIO, [])
    assert [p.title for p in out] == ["Reply to Jane's email", "Call Sam"]

    reply, call = out
    assert reply.kind == "reminder"
    assert reply.content == "Reply to Jane's email about the budget"
    assert reply.when == datetime(2026, 1, 18, 15, 0)
    assert reply.tags == ["email", "jane", "budget"]
    assert reply.priority == "urgent-not-important"

    assert call.kind == "reminder"
    assert call.content == "Call Sam"
    assert call.tags == ["call", "sam"]
    # "today" in the utterance backfills the default time of day
    assert call.when == datetime(2026, 1, 18, 9, 0)
    assert call.priority == "urgent-not-important"

def test_normalize_is_idempotent(now):
    normalizer = _normalizer(now)
    first = normalizer.normalize(SCENARIO, [])
    second = normalizer.normalize(SCENARIO, first)
    assert second == first

def test_classifier_call_candidate_is_not_duplicated(now):
    candidates = [RawCandidate(kind="reminder", title="Call Sam", content="Phone Sam back")]
    out = _normalizer(now).normalize(SCENARIO, candidates)
    titles = [p.title for p in out]
    assert titles.count("Call Sam") == 1
    assert "Reply to Jane's email" in titles

def test_every_proposal_has_priority_and_bounded_tags(now):
    candidates = [
        RawCandidate(
            kind="note",
            title="Quarterly planning retrospective notes",
            content="Discussed hiring roadmap budget timeline staffing",
            priority="whatever",
        ),
        RawCandidate(kind="journal", title="", content="Felt calm after the long walk"),
    ]
    out = _normalizer(now).normalize("some notes", candidates)
    assert len(out) == 2
    for p in out:
        assert p.priority in PRIORITIES
        assert len(p.tags) <= 3
    assert out[0].tags == ["quarterly", "planning", "retrospective"]

def test_explicit_fields_are_kept(now):
    when = datetime(2026, 2, 3, 14, 0)
    candidates = [
        RawCandidate(
            kind="todo",
            title="Ship report",
            content="Ship the Q1 report",
            date=when,
            priority="not-urgent-important",
            tags=["Report"],
        )
    ]
    (p,) = _normalizer(now).normalize("ship the report today", candidates)
    assert p.when == when
    assert p.priority == "not-urgent-important"
    assert p.tags == ["report"]

def test_no_actions(now):
    assert _normalizer(now).normalize("what a lovely evening", []) == []

def test_follow_up_prompt():
    undated = ActionProposal(kind="todo", title="Book dentist", priority="not-urgent-not-important")
    dated = undated.model_copy(update={"when": datetime(2026, 1, 20, 9, 0)})
    note = ActionProposal(kind="note", title="Wifi code", priority="not-urgent-not-important")

    assert follow_up_prompt([]) == ""
    assert follow_up_prompt([dated, note]) == ""
    assert 'schedule "Book dentist"' in follow_up_prompt([undated, note])
    assert "these items" in follow_up_prompt([undated, undated])
