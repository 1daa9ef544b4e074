"""Counter image endpoint.

This is the thin FastAPI adapter. It extracts the visitor's request info,
checks the counter name, calls the store and renders the result.
"""

from __future__ import annotations

import time

import structlog
from fastapi import APIRouter, Query, Request, Response

from garden_counter.core.errors import CounterStoreError
from garden_counter.core.models import Visitor
from garden_counter.core.render import render_separated_number
from garden_counter.core.request_info import RequestInfoError, extract_request_info

router = APIRouter()

log = structlog.get_logger()


def _not_found() -> Response:
    return Response(status_code=404)


@router.get("/")
async def count_visit(request: Request, name: str = Query("default")) -> Response:
    """Count this visit (if the visitor is recently unique) and return the count as a PNG."""
    from garden_counter.main import get_config, get_store

    config = get_config()

    # Quickly reject bots to avoid inflating the counter and save a backend call.
    try:
        info = extract_request_info(
            request.headers,
            request.client.host if request.client else None,
            trust_forwarded=config.server.trust_forwarded,
        )
    except RequestInfoError as exc:
        # Unattributable requests get the same 404 as bots, not an error.
        log.debug("request_rejected", reason=str(exc))
        return _not_found()

    if name not in config.counter.allowed_names:
        log.debug("request_rejected", reason="name not allowed", counter=name)
        return _not_found()

    # Only a 32-bit hash of the IP and user agent is kept, never the values themselves.
    visitor = Visitor.from_request(info, int(time.time()))
    try:
        count = await get_store().increment(visitor, name, visitor.last_seen)
    except CounterStoreError:
        log.error("increment_failed", counter=name, tag=visitor.tag, exc_info=True)
        return Response(status_code=500)

    png = render_separated_number(count, config.counter.min_width).to_png_bytes()
    return Response(
        content=png,
        media_type="image/png",
        headers={
            "cache-control": "no-cache",
            "x-count-name": name,
            "x-count": str(count),
            "x-tag": str(visitor.tag),
        },
    )
