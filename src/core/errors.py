"""Error taxonomy for the acquisition queue.

Only InvalidInput and PersistenceFailure ever reach the CLI exit code.
Adapter failures are absorbed by the queue manager; normalization anomalies
and publish failures are handled through return values.
"""


class HuntError(Exception):
    """Base class for all acquisition queue errors."""


class InvalidInput(HuntError, ValueError):
    """A search term, postal code or request id was rejected by the sanitizer."""


class AdapterFailure(HuntError):
    """A single source adapter raised or timed out."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class PersistenceFailure(HuntError):
    """Reading or writing a queue/result document failed."""
