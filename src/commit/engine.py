import logging
from datetime import datetime
from typing import Optional, Sequence

from echoflow.errors import StoreWriteFailed
from echoflow.models import ActionProposal, CommitResult, Entry
from storage.entry_store import EntryStore

logger = logging.getLogger(__name__)


class CommitEngine:
    """Turns accepted proposals into persistent entries.

    Journal proposals are merged into the day's journal record; every other
    kind creates a new entry. Writes are independent: a failed write is
    logged and counted, earlier writes in the batch stay in place.
    """

    def __init__(self, store: EntryStore):
        self.store = store

    def commit(
        self,
        proposals: Sequence[ActionProposal],
        now: Optional[datetime] = None,
    ) -> CommitResult:
        now = now or datetime.now()
        result = CommitResult()

        for position, proposal in enumerate(proposals):
            try:
                outcome = self._commit_one(proposal, now)
            except StoreWriteFailed as e:
                logger.error(f"Failed to commit {proposal.kind} {proposal.display_title!r}: {e}")
                result.failed += 1
                result.failed_positions.append(position)
                continue

            if outcome == "created":
                result.created += 1
            elif outcome == "diary":
                result.diary_updated += 1

        logger.info(
            f"Committed batch of {len(proposals)}: created={result.created} "
            f"diary_updated={result.diary_updated} failed={result.failed}"
        )
        return result

    def _commit_one(self, proposal: ActionProposal, now: datetime) -> str:
        when = proposal.when or now
        content = proposal.content.strip()
        title = proposal.title.strip() or content[:50]

        if proposal.kind == "journal":
            text = f"### {title}\n{content}" if title and title != content else content
            appended = self.store.append_to_diary(when.date(), text)
            return "diary" if appended else "unchanged"

        self.store.add_entry(
            Entry(
                kind=proposal.kind,
                title=title,
                content=content,
                date=when,
                tags=list(proposal.tags),
                priority=proposal.priority,
            )
        )
        return "created"
