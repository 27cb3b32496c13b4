import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from commit.engine import CommitEngine
from echoflow.errors import ClassifierUnavailable, ExtractionInProgress
from echoflow.models import ActionProposal, CommitResult, Conversation, ConversationTurn
from extraction.action_extractor import ActionExtractor
from normalization.normalizer import HeuristicNormalizer, follow_up_prompt
from staging.manager import StagingManager
from storage.context_summary import ContextSummarizer
from storage.conversation_store import ConversationStore

logger = logging.getLogger(__name__)

ERROR_REPLY = (
    "Sorry, I encountered an error: {error}. "
    "Please make sure your LLM provider is configured."
)


class ExtractionOrchestrator:
    """Central orchestration component of the chat-to-actions pipeline.

    utterance -> context summary -> classifier -> normalizer -> staging,
    then accept/reject/patch decisions flow through the staging manager into
    the commit engine. Only one extraction may be in flight at a time.
    """

    def __init__(
        self,
        extractor: ActionExtractor,
        summarizer: ContextSummarizer,
        commit_engine: CommitEngine,
        snapshot_store: Optional[ConversationStore] = None,
        normalizer: Optional[HeuristicNormalizer] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.extractor = extractor
        self.summarizer = summarizer
        self.commit_engine = commit_engine
        self.snapshot_store = snapshot_store
        self.normalizer = normalizer or HeuristicNormalizer(clock=clock)
        self.clock = clock

        conversation = snapshot_store.load() if snapshot_store else Conversation()
        self.staging = StagingManager(conversation, commit_engine)
        self.last_affected = 0
        self._loading = False

    @property
    def conversation(self) -> Conversation:
        return self.staging.conversation

    @property
    def is_loading(self) -> bool:
        return self._loading

    def _persist(self) -> None:
        if self.snapshot_store is None:
            return
        try:
            self.snapshot_store.save(self.conversation)
        except OSError as e:
            logger.error(f"Failed to persist conversation snapshot: {e}")

    def _record(self, result: CommitResult) -> CommitResult:
        if result.affected > 0:
            self.last_affected = result.affected
        self._persist()
        return result

    async def send(self, utterance: str) -> ConversationTurn:
        """Run one extraction and return the assistant turn it produced."""
        text = (utterance or "").strip()
        if not text:
            raise ValueError("utterance must not be blank")
        if self._loading:
            raise ExtractionInProgress("an extraction is already in flight")

        self._loading = True
        # a clear() during the classifier call leaves the result on the old conversation
        conversation = self.conversation
        try:
            history = conversation.history()
            conversation.add_turn("user", text)
            now = self.clock()
            context = self.summarizer.summarize(now=now)

            try:
                result = await asyncio.to_thread(
                    self.extractor.classify, text, history, context
                )
            except ClassifierUnavailable as e:
                logger.error(f"Classifier unavailable: {e}")
                return conversation.add_turn(
                    "assistant", ERROR_REPLY.format(error=e), failed=True
                )

            proposals = self.normalizer.normalize(text, result.candidates, now=now)
            turn = conversation.add_turn(
                "assistant", f"{result.reply}{follow_up_prompt(proposals)}".strip()
            )
            if conversation is self.conversation:
                self.staging.stage(turn.id, proposals)
            logger.info(f"Turn {turn.id}: {len(proposals)} proposal(s) staged")
            return turn
        finally:
            self._loading = False
            self._persist()

    def accept_one(
        self,
        turn_id: int,
        index: int,
        edited: Optional[ActionProposal] = None,
    ) -> CommitResult:
        result = self.staging.accept_one(turn_id, index, edited, now=self.clock())
        return self._record(result)

    def reject_one(self, turn_id: int, index: int) -> bool:
        changed = self.staging.reject(turn_id, index)
        if changed:
            self._persist()
        return changed

    def accept_all(self, turn_id: int) -> CommitResult:
        result = self.staging.accept_all(turn_id, now=self.clock())
        return self._record(result)

    def patch_pending(self, turn_id: int, index: int, fields: Dict[str, Any]) -> bool:
        changed = self.staging.patch(turn_id, index, fields)
        if changed:
            self._persist()
        return changed

    def clear(self) -> None:
        self.staging.conversation = Conversation()
        self.last_affected = 0
        if self.snapshot_store is not None:
            self.snapshot_store.clear()
