from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Literal, Optional, Set
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


ActionKind = Literal["todo", "reminder", "note", "journal"]
EntryKind = Literal["todo", "reminder", "note"]

Priority = Literal[
    "urgent-important",
    "not-urgent-important",
    "urgent-not-important",
    "not-urgent-not-important",
]

PRIORITIES = (
    "urgent-important",
    "not-urgent-important",
    "urgent-not-important",
    "not-urgent-not-important",
)

ProposalState = Literal["pending", "rejected", "accepted"]
Role = Literal["user", "assistant"]


def naive_local(value: Optional[datetime]) -> Optional[datetime]:
    """Drop tzinfo so stored dates compare against each other.

    UTC values keep their wall-clock time, matching how classifier dates
    ending in "Z" are read; other offsets are converted to local time.
    """
    if value is None or value.tzinfo is None:
        return value
    if value.utcoffset() == timedelta(0):
        return value.replace(tzinfo=None)
    return value.astimezone().replace(tzinfo=None)


def clean_tags(tags: Optional[List[Any]]) -> List[str]:
    """Trim tags and drop blanks, keeping order of first occurrence."""
    out: List[str] = []
    for tag in tags or []:
        if tag is None:
            continue
        t = str(tag).strip()
        if t and t not in out:
            out.append(t)
    return out


class RawCandidate(BaseModel):
    """An action candidate as returned by the classifier (or a synthesis rule).

    Only kind/title/content are required; everything else may be missing and
    is resolved by the normalizer.
    """

    kind: ActionKind
    title: str = Field(...)
    content: str = Field(...)
    date: Optional[datetime] = None
    priority: Optional[Priority] = None
    tags: Optional[List[str]] = None

    @field_validator("date")
    @classmethod
    def date_naive(cls, v: Optional[datetime]) -> Optional[datetime]:
        return naive_local(v)

    @field_validator("kind", mode="before")
    @classmethod
    def kind_lower(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("title", "content", mode="before")
    @classmethod
    def text_or_empty(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("priority", mode="before")
    @classmethod
    def known_priority(cls, v: Any) -> Optional[str]:
        # unknown labels are dropped and inferred later
        if isinstance(v, str) and v.strip().lower() in PRIORITIES:
            return v.strip().lower()
        return None

    @field_validator("tags", mode="before")
    @classmethod
    def tags_clean(cls, v: Any) -> Optional[List[str]]:
        if v is None:
            return None
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, (list, tuple, set)):
            return None
        return clean_tags(list(v))


class ActionProposal(BaseModel):
    kind: ActionKind
    title: str = ""
    content: str = ""
    when: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    priority: Priority

    @field_validator("when")
    @classmethod
    def when_naive(cls, v: Optional[datetime]) -> Optional[datetime]:
        return naive_local(v)

    @field_validator("title", "content", mode="before")
    @classmethod
    def text_or_empty(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("tags", mode="before")
    @classmethod
    def tags_lower(cls, v: Any) -> List[str]:
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, (list, tuple, set)):
            return []
        return clean_tags([str(t).lower() for t in v if t is not None])

    @property
    def display_title(self) -> str:
        return self.title or self.content[:50]

    def to_candidate(self) -> RawCandidate:
        return RawCandidate(
            kind=self.kind,
            title=self.title,
            content=self.content,
            date=self.when,
            priority=self.priority,
            tags=list(self.tags),
        )

    def with_fields(self, fields: Dict[str, Any]) -> "ActionProposal":
        """Return a validated copy with `fields` merged in."""
        data = self.model_dump()
        data.update(fields)
        return ActionProposal.model_validate(data)


class StagedProposal(BaseModel):
    # position at staging time; never reused within a turn
    id: int
    proposal: ActionProposal
    state: ProposalState = "pending"


class ConversationTurn(BaseModel):
    id: int
    role: Role
    text: str
    created_at: datetime = Field(default_factory=datetime.now)
    proposals: List[StagedProposal] = Field(default_factory=list)
    closed: bool = False
    failed: bool = False

    def get_proposal(self, index: int) -> Optional[StagedProposal]:
        for staged in self.proposals:
            if staged.id == index:
                return staged
        return None

    @property
    def pending(self) -> List[StagedProposal]:
        """Proposals still shown for a decision: not accepted, turn not closed."""
        if self.closed:
            return []
        return [p for p in self.proposals if p.state != "accepted"]

    @property
    def discarded(self) -> Set[int]:
        return {p.id for p in self.proposals if p.state == "rejected"}

    @property
    def status(self) -> Literal["staged", "resolved"]:
        return "staged" if self.pending else "resolved"

    def view(self) -> Dict[str, Any]:
        """JSON-friendly rendering with the derived staging views."""
        return {
            "id": self.id,
            "role": self.role,
            "text": self.text,
            "created_at": self.created_at.isoformat(),
            "status": self.status,
            "failed": self.failed,
            "pending": [
                {"index": p.id, **p.proposal.model_dump(mode="json")}
                for p in self.pending
            ],
            "discarded": sorted(self.discarded),
        }


class Conversation(BaseModel):
    turns: List[ConversationTurn] = Field(default_factory=list)
    next_turn_id: int = 0

    def add_turn(self, role: Role, text: str, failed: bool = False) -> ConversationTurn:
        turn = ConversationTurn(id=self.next_turn_id, role=role, text=text, failed=failed)
        self.next_turn_id += 1
        self.turns.append(turn)
        return turn

    def get_turn(self, turn_id: int) -> Optional[ConversationTurn]:
        for turn in self.turns:
            if turn.id == turn_id:
                return turn
        return None

    def history(self) -> List[Dict[str, str]]:
        return [{"role": t.role, "content": t.text} for t in self.turns]


class Entry(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    kind: EntryKind
    title: str
    content: str = ""
    date: datetime
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    tags: List[str] = Field(default_factory=list)
    priority: Optional[Priority] = None
    completed: bool = False
    source: str = "ai-chat"

    @field_validator("date")
    @classmethod
    def date_naive(cls, v: datetime) -> datetime:
        return naive_local(v)


class DiaryEntry(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    day: date
    content: str
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class CommitResult(BaseModel):
    created: int = 0
    updated: int = 0
    diary_updated: int = 0
    failed: int = 0
    # batch positions whose write failed
    failed_positions: List[int] = Field(default_factory=list)

    @property
    def affected(self) -> int:
        return self.created + self.updated + self.diary_updated
