import logging
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from pydantic import ValidationError

from commit.engine import CommitEngine
from echoflow.models import (
    ActionProposal,
    CommitResult,
    Conversation,
    ConversationTurn,
    StagedProposal,
)

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = {"kind", "title", "content", "when", "tags", "priority"}


class StagingManager:
    """Holds staged proposals per turn and applies accept/reject/patch decisions.

    Proposals are addressed by the id they got at staging time. Accepting marks
    a proposal accepted instead of removing it, so ids of later proposals
    (and the discarded set) never shift.
    """

    def __init__(self, conversation: Conversation, commit_engine: CommitEngine):
        self.conversation = conversation
        self.commit_engine = commit_engine

    def _lookup(self, turn_id: int, index: int) -> Optional[StagedProposal]:
        turn = self.conversation.get_turn(turn_id)
        if turn is None or turn.closed:
            return None
        return turn.get_proposal(index)

    def stage(
        self, turn_id: int, proposals: Sequence[ActionProposal]
    ) -> Optional[ConversationTurn]:
        turn = self.conversation.get_turn(turn_id)
        if turn is None or not proposals:
            return turn
        start = len(turn.proposals)
        turn.proposals.extend(
            StagedProposal(id=start + i, proposal=p) for i, p in enumerate(proposals)
        )
        logger.info(f"Staged {len(proposals)} proposal(s) on turn {turn_id}")
        return turn

    def reject(self, turn_id: int, index: int) -> bool:
        staged = self._lookup(turn_id, index)
        if staged is None or staged.state == "accepted":
            return False
        staged.state = "rejected"
        return True

    def patch(self, turn_id: int, index: int, fields: Dict[str, Any]) -> bool:
        staged = self._lookup(turn_id, index)
        if staged is None or staged.state == "accepted":
            return False
        updates = {k: v for k, v in fields.items() if k in PATCHABLE_FIELDS}
        if not updates:
            return False
        try:
            staged.proposal = staged.proposal.with_fields(updates)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid patch for turn {turn_id}/{index}: {e}")
            return False
        return True

    def accept_one(
        self,
        turn_id: int,
        index: int,
        edited: Optional[ActionProposal] = None,
        now: Optional[datetime] = None,
    ) -> CommitResult:
        staged = self._lookup(turn_id, index)
        if staged is None or staged.state == "accepted":
            return CommitResult()

        proposal = edited or staged.proposal
        result = self.commit_engine.commit([proposal], now=now)
        if result.failed:
            # stays pending so the user can retry
            return result

        staged.proposal = proposal
        staged.state = "accepted"
        return result

    def accept_all(self, turn_id: int, now: Optional[datetime] = None) -> CommitResult:
        turn = self.conversation.get_turn(turn_id)
        if turn is None or turn.closed:
            return CommitResult()

        batch = [p for p in turn.proposals if p.state == "pending"]
        result = self.commit_engine.commit([p.proposal for p in batch], now=now)

        failed = set(result.failed_positions)
        for position, staged in enumerate(batch):
            if position not in failed:
                staged.state = "accepted"
        if not failed:
            turn.closed = True
        return result
