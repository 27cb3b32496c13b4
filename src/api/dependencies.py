from api import state
from api.backend import ExtractionOrchestrator
from commit.engine import CommitEngine
from extraction.action_extractor import ActionExtractor
from storage.context_summary import ContextSummarizer
from storage.conversation_store import ConversationStore
from storage.entry_store import EntryStore, JsonEntryStore


def get_entry_store() -> EntryStore:
    if state.entry_store is None:
        state.entry_store = JsonEntryStore(state.ENTRY_STORE_PATH)
    return state.entry_store


def build_orchestrator(store: EntryStore) -> ExtractionOrchestrator:
    return ExtractionOrchestrator(
        extractor=ActionExtractor(),
        summarizer=ContextSummarizer(store),
        commit_engine=CommitEngine(store),
        snapshot_store=ConversationStore(state.CONVERSATION_STORE_PATH),
    )


def get_orchestrator() -> ExtractionOrchestrator:
    if state.orchestrator is None:
        state.orchestrator = build_orchestrator(get_entry_store())
    return state.orchestrator
