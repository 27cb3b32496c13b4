"""
Heuristic rules applied to classifier candidates.

Two kinds of rules run in a fixed order:

* synthesis rules look at the utterance and the raw candidates and may add a
  candidate the classifier most likely missed ("call Sam", "reply to Jane's
  email", "work on the deck");
* backfill rules fill a missing field on one candidate and leave fields that
  are already set alone, which keeps the whole chain idempotent.

Every rule is a pure function of (context, candidate(s)).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import ClassVar, List, Optional, Sequence

from echoflow.models import RawCandidate
from normalization.dates import (
    DEFAULT_TIME_OF_DAY,
    at_time,
    extract_time,
    resolve_base_date,
)
from normalization.priority import infer_priority
from normalization.tags import MAX_DERIVED_TAGS, derive_tags

REPLY_FLAVOR_RE = re.compile(r"reply|respond|email", re.IGNORECASE)
CALL_FLAVOR_RE = re.compile(r"call", re.IGNORECASE)
WORK_FLAVOR_RE = re.compile(r"work on|contract", re.IGNORECASE)

REPLY_PERSON_RE = re.compile(r"reply to\s+([a-zA-Z]+)(?:'s)?\s+email", re.IGNORECASE)
SUBJECT_RE = re.compile(
    r"(?:on the subject(?:\s+of)?\s+|about\s+)(.+?)(?:\s+before|\s+by|\s+at|\s+and|$)",
    re.IGNORECASE,
)
EMAIL_SUBJECT_RE = re.compile(
    r"email\s+(?:on the subject|about)?\s*(.+?)(?:\s+before|\s+by|\s+at|\s+and|$)",
    re.IGNORECASE,
)
CALL_PERSON_RE = re.compile(r"call\s+([a-zA-Z]+)", re.IGNORECASE)
WORK_TASK_RE = re.compile(r"work on\s+(.+?)(?:\s+and|,|$)", re.IGNORECASE)

DEFAULT_REPLY_PERSON = "their"


@dataclass(frozen=True)
class NormalizationContext:
    utterance: str
    base_date: date
    time_of_day: Optional[time]

    @classmethod
    def build(cls, utterance: str, now: datetime) -> "NormalizationContext":
        return cls(
            utterance=utterance,
            base_date=resolve_base_date(utterance, now),
            time_of_day=extract_time(utterance),
        )

    @property
    def lower(self) -> str:
        return self.utterance.lower()

    @property
    def mentions_today(self) -> bool:
        return "today" in self.lower


def _text(candidate: RawCandidate) -> str:
    return f"{candidate.title} {candidate.content}"


def _any_matches(candidates: Sequence[RawCandidate], pattern: re.Pattern) -> bool:
    return any(pattern.search(_text(c)) for c in candidates)


# --- synthesis -------------------------------------------------------------


@dataclass(frozen=True)
class ReplyEmailRule:
    """
    Trigger: the utterance says "reply" or "email" and no candidate is
    reply/respond/email flavored.
    Effect: reminder "Reply to <person>'s email" (person from "reply to X's
    email"), content mentions the subject when one is given, dated at the
    time phrase when there is one.
    """

    name: ClassVar[str] = "reply-email"

    def synthesize(
        self, ctx: NormalizationContext, existing: Sequence[RawCandidate]
    ) -> Optional[RawCandidate]:
        if "reply" not in ctx.lower and "email" not in ctx.lower:
            return None
        if _any_matches(existing, REPLY_FLAVOR_RE):
            return None

        person_match = REPLY_PERSON_RE.search(ctx.utterance)
        person = person_match.group(1) if person_match else DEFAULT_REPLY_PERSON
        subject_match = SUBJECT_RE.search(ctx.utterance) or EMAIL_SUBJECT_RE.search(
            ctx.utterance
        )
        subject = subject_match.group(1).strip() if subject_match else None
        subject = subject or None

        if person_match:
            title = f"Reply to {person}'s email"
            tags = ["email", person.lower()]
        else:
            title = "Reply to their email"
            tags = ["email"]
        content = f"{title} about {subject}" if subject else title
        if subject:
            tags.extend(derive_tags(subject))

        when = at_time(ctx.base_date, ctx.time_of_day) if ctx.time_of_day else None
        return RawCandidate(
            kind="reminder",
            title=title,
            content=content,
            date=when,
            tags=tags[:MAX_DERIVED_TAGS],
            priority=infer_priority(ctx.utterance, title, content, when is not None),
        )


@dataclass(frozen=True)
class CallRule:
    """
    Trigger: "call <name>" in the utterance and no candidate mentions a call.
    Effect: undated reminder "Call <name>" tagged ["call", name].
    """

    name: ClassVar[str] = "call"

    def synthesize(
        self, ctx: NormalizationContext, existing: Sequence[RawCandidate]
    ) -> Optional[RawCandidate]:
        match = CALL_PERSON_RE.search(ctx.utterance)
        if not match or _any_matches(existing, CALL_FLAVOR_RE):
            return None

        person = match.group(1)
        title = f"Call {person}"
        return RawCandidate(
            kind="reminder",
            title=title,
            content=title,
            tags=["call", person.lower()],
            priority=infer_priority(ctx.utterance, title, title, False),
        )


@dataclass(frozen=True)
class WorkOnRule:
    """
    Trigger: "work on <task>" in the utterance and no candidate mentions
    "work on" or a contract.
    Effect: todo "Work on <task>", dated today (no time) when the utterance
    says "today".
    """

    name: ClassVar[str] = "work-on"

    def synthesize(
        self, ctx: NormalizationContext, existing: Sequence[RawCandidate]
    ) -> Optional[RawCandidate]:
        match = WORK_TASK_RE.search(ctx.utterance)
        if not match or _any_matches(existing, WORK_FLAVOR_RE):
            return None

        task = re.sub(r"\.$", "", match.group(1).strip())
        if not task:
            return None
        title = f"Work on {task}"
        return RawCandidate(
            kind="todo",
            title=title,
            content=title,
            date=at_time(ctx.base_date) if ctx.mentions_today else None,
            tags=derive_tags(task),
            priority=infer_priority(ctx.utterance, title, title, False),
        )


# --- backfill --------------------------------------------------------------


@dataclass(frozen=True)
class DateBackfillRule:
    """
    Reply-flavored candidates get the resolved date at the spoken time; other
    candidates get 09:00 on the resolved day when the utterance says "today".
    """

    name: ClassVar[str] = "date"

    def apply(self, ctx: NormalizationContext, candidate: RawCandidate) -> RawCandidate:
        if candidate.date is not None:
            return candidate

        reply_flavored = bool(REPLY_FLAVOR_RE.search(_text(candidate)))
        if ctx.time_of_day is not None and reply_flavored:
            when = at_time(ctx.base_date, ctx.time_of_day)
        elif ctx.mentions_today and not reply_flavored:
            when = at_time(ctx.base_date, DEFAULT_TIME_OF_DAY)
        else:
            return candidate
        return candidate.model_copy(update={"date": when})


@dataclass(frozen=True)
class PriorityRule:
    name: ClassVar[str] = "priority"

    def apply(self, ctx: NormalizationContext, candidate: RawCandidate) -> RawCandidate:
        if candidate.priority is not None:
            return candidate
        priority = infer_priority(
            ctx.utterance, candidate.title, candidate.content, candidate.date is not None
        )
        return candidate.model_copy(update={"priority": priority})


@dataclass(frozen=True)
class TagRule:
    name: ClassVar[str] = "tags"

    def apply(self, ctx: NormalizationContext, candidate: RawCandidate) -> RawCandidate:
        if candidate.tags:
            return candidate
        return candidate.model_copy(update={"tags": derive_tags(_text(candidate))})


DEFAULT_SYNTHESIS_RULES: List = [ReplyEmailRule(), CallRule(), WorkOnRule()]
DEFAULT_BACKFILL_RULES: List = [DateBackfillRule(), PriorityRule(), TagRule()]
