"""Compact msgpack encoding of the recent visitor list.

The ``value`` attribute of a counter item is a msgpack map of the form
``{"v": [{"g": tag, "t": seconds_since_offset}, ...]}``. The count itself is
stored in its own attribute, so it never round-trips through this codec.

Sizes matter here: the backend rejects items over 400 KB outright, so the
number of recent visitors kept is derived from the worst-case encoded size
of a single visitor (fixmap header, two one-letter keys, two uint32 values).
Re-measure ``VISITOR_ENCODED_BYTES`` if the layout ever changes.
"""

from __future__ import annotations

import msgpack

from garden_counter.core.errors import CodecError
from garden_counter.core.models import CountEntry, Visitor

# Stored timestamps are seconds since this offset so they fit in a u32
# until well past the year 2100.
TIMESTAMP_OFFSET = 1_690_000_000

MAX_ITEM_SIZE_BYTES = 400_000
RESERVED_OVERHEAD_BYTES = 1024
VISITOR_ENCODED_BYTES = 15
MAX_RECENT_VISITORS = (MAX_ITEM_SIZE_BYTES - RESERVED_OVERHEAD_BYTES) // VISITOR_ENCODED_BYTES

_U32_MAX = 0xFFFF_FFFF


def _stored_visitor(visitor: Visitor) -> dict:
    seconds = visitor.last_seen - TIMESTAMP_OFFSET
    if not 0 <= seconds <= _U32_MAX:
        raise CodecError(f"last_seen {visitor.last_seen} is outside the storable range")
    if not 0 <= visitor.tag <= _U32_MAX:
        raise CodecError(f"tag {visitor.tag} does not fit in 32 bits")
    return {"g": visitor.tag, "t": seconds}


def _u32(raw: dict, key: str) -> int:
    value = raw.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise CodecError(f"visitor field {key!r} is not an integer")
    if not 0 <= value <= _U32_MAX:
        raise CodecError(f"visitor field {key!r} is out of range")
    return value


def encode(entry: CountEntry) -> bytes:
    """Encode the recent visitor list of ``entry``."""
    return msgpack.packb({"v": [_stored_visitor(v) for v in entry.recent_visitors]})


def decode(data: bytes) -> CountEntry:
    """Decode a stored visitor list. The returned entry always has ``count == 0``."""
    try:
        raw = msgpack.unpackb(data, raw=False)
    except (msgpack.UnpackException, ValueError, TypeError) as exc:
        raise CodecError(f"malformed visitor list: {exc}") from exc

    if not isinstance(raw, dict) or not isinstance(raw.get("v"), list):
        raise CodecError("visitor list must be a map with a 'v' array")

    visitors = []
    for item in raw["v"]:
        if not isinstance(item, dict):
            raise CodecError("visitor record is not a map")
        visitors.append(Visitor(
            tag=_u32(item, "g"),
            last_seen=TIMESTAMP_OFFSET + _u32(item, "t"),
        ))
    return CountEntry(count=0, recent_visitors=visitors)
