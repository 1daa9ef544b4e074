"""Backend interface (port) for the counter items.

Each counter is a single item keyed by its name, holding two attributes:
``count`` (an integer) and ``value`` (the msgpack visitor list, as bytes).
Writes replace the whole item and are guarded by a precondition so that
concurrent increments never overwrite each other.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

KEY_ATTR = "key"
COUNT_ATTR = "count"
VALUE_ATTR = "value"


@dataclass(frozen=True)
class Precondition:
    """What must hold in the backend for a write to be applied.

    ``expected_count`` of ``None`` means the item must not exist yet.
    """
    expected_count: int | None = None

    @classmethod
    def absent(cls) -> Precondition:
        return cls(expected_count=None)

    @classmethod
    def count_equals(cls, count: int) -> Precondition:
        return cls(expected_count=count)


class CounterBackend(Protocol):
    """Port: single-item reads and conditional whole-item writes."""

    async def get_item(self, key: str) -> dict[str, Any] | None: ...

    async def put_item(self, key: str, item: dict[str, Any], precondition: Precondition) -> None:
        """Replace the item at ``key``.

        Raises ``PreconditionFailed`` if ``precondition`` does not hold, and
        ``BackendUnavailable`` for any other failure.
        """
        ...
