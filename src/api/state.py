import os
from typing import Optional

from api.backend import ExtractionOrchestrator
from storage.entry_store import EntryStore

DATA_DIR = os.getenv("DATA_DIR", "data")
ENTRY_STORE_PATH = os.getenv("ENTRY_STORE_PATH", os.path.join(DATA_DIR, "entries.json"))
CONVERSATION_STORE_PATH = os.getenv(
    "CONVERSATION_STORE_PATH", os.path.join(DATA_DIR, "conversation.json")
)

# Global instances, created on first use (tests may assign their own)
entry_store: Optional[EntryStore] = None
orchestrator: Optional[ExtractionOrchestrator] = None
