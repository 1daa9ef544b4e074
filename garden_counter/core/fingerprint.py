"""Privacy-preserving visitor fingerprint.

Only a 32-bit digest of the source IP and user agent is ever stored, which
is enough to recognise a repeat visit without keeping anything that could
identify the visitor.
"""

from __future__ import annotations

import hashlib

TAG_BYTES = 4


def visitor_tag(source_ip: str, user_agent: str) -> int:
    """Return the first four bytes of md5(source_ip + user_agent) as a little-endian u32."""
    digest = hashlib.md5(
        source_ip.encode("utf-8") + user_agent.encode("utf-8"),
        usedforsecurity=False,
    ).digest()
    return int.from_bytes(digest[:TAG_BYTES], "little")
