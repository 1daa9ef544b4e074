"""Counter store — the read/decide/prune/write loop behind every visit.

Many counters share one backend table, one item per counter name. An item
holds the current ``count`` and a msgpack list of recent visitors (32-bit tag
plus last-seen time). A visitor only increments the count if they have not
been seen within the recency window.

Concurrent invocations coordinate purely through conditional writes: a
create is guarded by "key must not exist", an update by "count is still what
I read". A write that loses the race re-reads the item and reapplies the
visit, up to ``max_attempts`` times in total.

This module depends on the CounterBackend protocol, not on DynamoDB.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from garden_counter.core import codec
from garden_counter.core.errors import MissingAttribute, PreconditionFailed, RetryBudgetExhausted
from garden_counter.core.models import CountEntry, Visitor
from garden_counter.storage.base import COUNT_ATTR, VALUE_ATTR, Precondition

if TYPE_CHECKING:
    from garden_counter.storage.base import CounterBackend

log = structlog.get_logger()

MAX_ATTEMPTS = 5
RECENT_WINDOW_SECONDS = 7200  # 2 hours


def find_recent(entry: CountEntry, tag: int, now: int,
                window: int = RECENT_WINDOW_SECONDS) -> int | None:
    """Return the index of the first visitor with ``tag``, if it was seen within the window."""
    for index, visitor in enumerate(entry.recent_visitors):
        if visitor.tag == tag:
            if now - visitor.last_seen < window:
                return index
            return None
    return None


def prune_visitors(entry: CountEntry, now: int, max_recent: int,
                   window: int = RECENT_WINDOW_SECONDS) -> None:
    """Drop visitors outside the window, then the oldest ones beyond ``max_recent``."""
    entry.recent_visitors = [
        v for v in entry.recent_visitors if now - v.last_seen < window
    ]
    if len(entry.recent_visitors) > max_recent:
        entry.recent_visitors.sort(key=lambda v: v.last_seen, reverse=True)
        del entry.recent_visitors[max_recent:]


class CounterStore:
    """Increments named counters at most once per recent visitor."""

    def __init__(
        self,
        backend: CounterBackend,
        *,
        max_attempts: int = MAX_ATTEMPTS,
        recent_window_seconds: int = RECENT_WINDOW_SECONDS,
        max_recent_visitors: int = codec.MAX_RECENT_VISITORS,
    ) -> None:
        self._backend = backend
        self._max_attempts = max_attempts
        self._window = recent_window_seconds
        self._max_recent = max_recent_visitors

    async def load(self, name: str) -> CountEntry | None:
        """Read the entry for ``name``, or ``None`` if the counter doesn't exist yet."""
        item = await self._backend.get_item(name)
        if item is None:
            return None
        if COUNT_ATTR not in item:
            raise MissingAttribute(name, COUNT_ATTR)
        if VALUE_ATTR not in item:
            raise MissingAttribute(name, VALUE_ATTR)
        entry = codec.decode(item[VALUE_ATTR])
        entry.count = item[COUNT_ATTR]
        return entry

    def _apply_visit(self, entry: CountEntry, visitor: Visitor, now: int) -> None:
        index = find_recent(entry, visitor.tag, now, self._window)
        if index is not None:
            entry.recent_visitors[index] = Visitor(tag=visitor.tag, last_seen=now)
        else:
            entry.recent_visitors.append(Visitor(tag=visitor.tag, last_seen=now))
            entry.count += 1
        prune_visitors(entry, now, self._max_recent, self._window)

    async def _try_write(self, name: str, entry: CountEntry, precondition: Precondition) -> bool:
        item = {COUNT_ATTR: entry.count, VALUE_ATTR: codec.encode(entry)}
        try:
            await self._backend.put_item(name, item, precondition)
        except PreconditionFailed:
            return False
        return True

    async def increment(self, visitor: Visitor, name: str, now: int) -> int:
        """Count ``visitor`` against counter ``name`` and return the resulting count.

        Raises ``RetryBudgetExhausted`` after ``max_attempts`` lost races. Any
        other backend or decoding error propagates immediately.
        """
        for attempt in range(1, self._max_attempts + 1):
            entry = await self.load(name)
            if entry is None:
                entry = CountEntry(count=1, recent_visitors=[Visitor(tag=visitor.tag, last_seen=now)])
                precondition = Precondition.absent()
            else:
                precondition = Precondition.count_equals(entry.count)
                self._apply_visit(entry, visitor, now)

            if await self._try_write(name, entry, precondition):
                log.debug("visit_counted", counter=name, tag=visitor.tag,
                          count=entry.count, attempt=attempt)
                return entry.count

            log.debug("precondition_failed", counter=name, attempt=attempt,
                      created=precondition.expected_count is None)

        log.warning("retry_budget_exhausted", counter=name, attempts=self._max_attempts)
        raise RetryBudgetExhausted(name, self._max_attempts)
