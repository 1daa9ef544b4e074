"""Error types raised by the counter store and its backends."""

from __future__ import annotations


class CounterStoreError(Exception):
    """Base class for every failure surfaced by the counter store."""


class PreconditionFailed(CounterStoreError):
    """A conditional write lost a race with another writer.

    This is the only error the store retries; callers only see it if they
    talk to a backend directly.
    """


class RetryBudgetExhausted(CounterStoreError):
    """Every attempt allowed for one increment hit a precondition failure."""

    def __init__(self, name: str, attempts: int) -> None:
        super().__init__(
            f"counter {name!r}: gave up after {attempts} conflicting writes"
        )
        self.name = name
        self.attempts = attempts


class BackendUnavailable(CounterStoreError):
    """The backend failed for a reason other than a precondition (network, throttling, timeout)."""


class CodecError(CounterStoreError):
    """A stored value could not be encoded or decoded."""


class MissingAttribute(CounterStoreError):
    """A stored item lacks an attribute the store relies on."""

    def __init__(self, name: str, attribute: str) -> None:
        super().__init__(f"counter {name!r}: item is missing the {attribute!r} attribute")
        self.name = name
        self.attribute = attribute
