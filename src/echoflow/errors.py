from __future__ import annotations


class EchoFlowError(Exception):
    """Base class for recoverable engine errors."""


class ClassifierUnavailable(EchoFlowError):
    """The external classifier could not be reached or refused the call."""


class StoreWriteFailed(EchoFlowError):
    """A single write to the entry store failed."""


class InvalidPersistedSnapshot(EchoFlowError):
    """A stored conversation snapshot could not be read back."""


class ExtractionInProgress(EchoFlowError):
    """A send was attempted while another extraction is still in flight."""
