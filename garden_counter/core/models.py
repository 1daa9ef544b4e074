"""Counter store — core internal data models.

These are plain dataclasses with no framework dependencies. The msgpack
representation stored in the backend is handled by ``core.codec``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from garden_counter.core.fingerprint import visitor_tag

if TYPE_CHECKING:
    from garden_counter.core.request_info import RequestInfo


@dataclass(frozen=True)
class Visitor:
    tag: int            # u32 fingerprint of source IP + user agent
    last_seen: int      # unix seconds

    @classmethod
    def from_request(cls, info: RequestInfo, now: int) -> Visitor:
        return cls(tag=visitor_tag(info.source_ip, info.user_agent), last_seen=now)


@dataclass
class CountEntry:
    """A count, and the most recent visitors contributing to it."""
    count: int = 0
    recent_visitors: list[Visitor] = field(default_factory=list)
