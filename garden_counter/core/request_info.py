"""Request information extraction and bot rejection.

Only the user agent and source IP are needed to fingerprint a visitor.
Requests from obvious crawlers are rejected before either is used, to keep
them from inflating counters and to save a backend round-trip.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from crawlerdetect import CrawlerDetect

# Compiling the crawler patterns is slow, so build the checker once.
_CRAWLER_DETECT = CrawlerDetect()


class RequestInfoError(Exception):
    """The request can't (or shouldn't) be attributed to a visitor."""


class MissingUserAgent(RequestInfoError):
    def __init__(self) -> None:
        super().__init__("request has no user agent")


class MissingSourceIp(RequestInfoError):
    def __init__(self) -> None:
        super().__init__("request has no source IP")


class LooksLikeABot(RequestInfoError):
    def __init__(self) -> None:
        super().__init__("request looks like a bot")


@dataclass(frozen=True)
class RequestInfo:
    user_agent: str
    source_ip: str   # IPv4 or IPv6


def looks_like_bot(user_agent: str) -> bool:
    return bool(_CRAWLER_DETECT.isCrawler(user_agent))


def extract_request_info(
    headers: Mapping[str, str],
    client_host: str | None,
    *,
    trust_forwarded: bool = False,
) -> RequestInfo:
    """Pull the user agent and source IP out of a request.

    ``headers`` must be case-insensitive (Starlette's ``Headers`` is).
    The first ``X-Forwarded-For`` hop is only used when ``trust_forwarded``
    is set, i.e. when a proxy we control sits in front of the service.
    """
    user_agent = (headers.get("user-agent") or "").strip()
    if not user_agent:
        raise MissingUserAgent()

    if looks_like_bot(user_agent):
        raise LooksLikeABot()

    source_ip = ""
    if trust_forwarded:
        forwarded_for = headers.get("x-forwarded-for") or headers.get("x-real-ip")
        if forwarded_for:
            source_ip = forwarded_for.split(",")[0].strip()
    if not source_ip and client_host:
        source_ip = client_host
    if not source_ip:
        raise MissingSourceIp()

    return RequestInfo(user_agent=user_agent, source_ip=source_ip)
