import json
from datetime import datetime

import pytest

from api.backend import ExtractionOrchestrator
from commit.engine import CommitEngine
from extraction.action_extractor import ActionExtractor
from llm.llm_client import LLMClient
from llm.providers.base import LLMProvider
from storage.context_summary import ContextSummarizer
from storage.entry_store import InMemoryEntryStore

FIXED_NOW = datetime(2026, 1, 18, 10, 30)


class FakeProvider(LLMProvider):
    def __init__(self, response_text: str = "", error: Exception = None):
        self._response_text = response_text
        self._error = error
        self.calls = []

    def chat(self, messages):
        self.calls.append(messages)
        if self._error is not None:
            raise self._error
        return self._response_text


@pytest.fixture
def fake_provider_factory():
    def _make(response_text: str = "", error: Exception = None):
        return FakeProvider(response_text, error)
    return _make


@pytest.fixture
def action_reply():
    def _make(*actions, reply: str = "Got it!"):
        return f"{reply}\n\n---JSON---\n{json.dumps({'actions': list(actions)})}\n---END---"
    return _make


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def store():
    return InMemoryEntryStore()


@pytest.fixture
def make_orchestrator(store):
    def _make(provider, snapshot_store=None):
        return ExtractionOrchestrator(
            extractor=ActionExtractor(LLMClient(provider=provider), clock=lambda: FIXED_NOW),
            summarizer=ContextSummarizer(store),
            commit_engine=CommitEngine(store),
            snapshot_store=snapshot_store,
            clock=lambda: FIXED_NOW,
        )
    return _make
