"""In-process implementation of CounterBackend. Zero dependencies."""

from __future__ import annotations

import threading
from typing import Any

from garden_counter.core.errors import PreconditionFailed
from garden_counter.storage.base import COUNT_ATTR, KEY_ATTR, Precondition


class MemoryCounterBackend:
    """CounterBackend backed by a dict, for local development and tests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: dict[str, dict[str, Any]] = {}

    async def get_item(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            item = self._items.get(key)
            return dict(item) if item is not None else None

    async def put_item(self, key: str, item: dict[str, Any], precondition: Precondition) -> None:
        with self._lock:
            current = self._items.get(key)
            if precondition.expected_count is None:
                if current is not None:
                    raise PreconditionFailed(f"item {key!r} already exists")
            elif current is None or current.get(COUNT_ATTR) != precondition.expected_count:
                raise PreconditionFailed(f"item {key!r} count changed")
            self._items[key] = {**item, KEY_ATTR: key}
