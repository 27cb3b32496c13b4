import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Union

from echoflow.models import ActionProposal, RawCandidate
from normalization.priority import infer_priority
from normalization.rules import (
    DEFAULT_BACKFILL_RULES,
    DEFAULT_SYNTHESIS_RULES,
    NormalizationContext,
)

logger = logging.getLogger(__name__)


class HeuristicNormalizer:
    """Deterministic post-processing of classifier output.

    Synthesis rules see only the candidates the classifier returned, then the
    backfill rules run over every candidate in order.
    """

    def __init__(
        self,
        synthesis_rules: Optional[list] = None,
        backfill_rules: Optional[list] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.synthesis_rules = (
            list(DEFAULT_SYNTHESIS_RULES) if synthesis_rules is None else synthesis_rules
        )
        self.backfill_rules = (
            list(DEFAULT_BACKFILL_RULES) if backfill_rules is None else backfill_rules
        )
        self.clock = clock

    def normalize(
        self,
        utterance: str,
        candidates: Sequence[Union[RawCandidate, ActionProposal]],
        now: Optional[datetime] = None,
    ) -> List[ActionProposal]:
        ctx = NormalizationContext.build(utterance, now or self.clock())
        raw = [
            c.to_candidate() if isinstance(c, ActionProposal) else c for c in candidates
        ]

        working = list(raw)
        for rule in self.synthesis_rules:
            extra = rule.synthesize(ctx, raw)
            if extra is not None:
                logger.debug(f"Rule {rule.name} synthesized {extra.title!r}")
                working.append(extra)

        proposals = []
        for candidate in working:
            for rule in self.backfill_rules:
                candidate = rule.apply(ctx, candidate)
            proposals.append(self._to_proposal(ctx, candidate))
        return proposals

    @staticmethod
    def _to_proposal(ctx: NormalizationContext, candidate: RawCandidate) -> ActionProposal:
        priority = candidate.priority or infer_priority(
            ctx.utterance, candidate.title, candidate.content, candidate.date is not None
        )
        return ActionProposal(
            kind=candidate.kind,
            title=candidate.title,
            content=candidate.content,
            when=candidate.date,
            tags=candidate.tags or [],
            priority=priority,
        )


def follow_up_prompt(proposals: Sequence[ActionProposal]) -> str:
    """Ask when to schedule todos/reminders that came out without a date."""
    undated = [p for p in proposals if p.kind in ("todo", "reminder") and p.when is None]
    if not undated:
        return ""
    if len(undated) == 1:
        return f'\n\nQuick question: when should I schedule "{undated[0].display_title}"?'
    return "\n\nQuick question: when should I schedule these items?"
