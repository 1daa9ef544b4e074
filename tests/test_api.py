"""Tests for the counter image endpoint."""

from __future__ import annotations

import io

import pytest
from PIL import Image

import garden_counter.main as main_module
from garden_counter.core.errors import BackendUnavailable
from garden_counter.core.fingerprint import visitor_tag
from garden_counter.core.store import CounterStore

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class _BrokenBackend:
    async def get_item(self, key):
        raise BackendUnavailable("connection reset")

    async def put_item(self, key, item, precondition):
        raise AssertionError("should not write after a failed read")


@pytest.mark.asyncio
async def test_first_visit_returns_png(client, user_agent):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/png"
    assert resp.headers["cache-control"] == "no-cache"
    assert resp.headers["x-count-name"] == "default"
    assert resp.headers["x-count"] == "1"
    assert resp.headers["x-tag"] == str(visitor_tag("127.0.0.1", user_agent))
    assert resp.content.startswith(PNG_SIGNATURE)

    image = Image.open(io.BytesIO(resp.content))
    assert image.mode == "RGBA"
    # min_width defaults to 5 digits: 2 + 5*9 + 3*1
    assert image.size == (50, 18)


@pytest.mark.asyncio
async def test_repeat_visit_not_counted(client):
    first = await client.get("/")
    second = await client.get("/")
    assert first.headers["x-count"] == "1"
    assert second.headers["x-count"] == "1"


@pytest.mark.asyncio
async def test_distinct_visitors_counted(client):
    await client.get("/")
    resp = await client.get("/", headers={"user-agent": "Mozilla/5.0 (Macintosh) Firefox/128.0"})
    assert resp.headers["x-count"] == "2"


@pytest.mark.asyncio
async def test_counters_are_independent(client):
    await client.get("/")
    resp = await client.get("/", params={"name": "repo-readme"})
    assert resp.status_code == 200
    assert resp.headers["x-count-name"] == "repo-readme"
    assert resp.headers["x-count"] == "1"


@pytest.mark.asyncio
async def test_name_not_allowed(client):
    resp = await client.get("/", params={"name": "someone-elses-site"})
    assert resp.status_code == 404
    assert resp.content == b""


@pytest.mark.asyncio
async def test_non_root_path(client):
    resp = await client.get("/favicon.ico")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_bot_rejected(client):
    resp = await client.get("/", headers={"user-agent": "Googlebot/2.1 (+http://www.google.com/bot.html)"})
    assert resp.status_code == 404

    # Link previews count as bots too.
    resp = await client.get("/", headers={"user-agent": "facebookexternalhit/1.1"})
    assert resp.status_code == 404

    # Nothing was counted.
    resp = await client.get("/")
    assert resp.headers["x-count"] == "1"


@pytest.mark.asyncio
async def test_missing_user_agent(client):
    resp = await client.get("/", headers={"user-agent": ""})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_forwarded_for_ignored_by_default(client, user_agent):
    resp = await client.get("/", headers={"x-forwarded-for": "203.0.113.7"})
    assert resp.headers["x-tag"] == str(visitor_tag("127.0.0.1", user_agent))


@pytest.mark.asyncio
async def test_forwarded_for_trusted(client, user_agent):
    main_module.get_config().server.trust_forwarded = True
    resp = await client.get("/", headers={"x-forwarded-for": "203.0.113.7, 10.0.0.1"})
    assert resp.status_code == 200
    assert resp.headers["x-tag"] == str(visitor_tag("203.0.113.7", user_agent))


@pytest.mark.asyncio
async def test_backend_failure_returns_500(client):
    main_module._store = CounterStore(_BrokenBackend())
    resp = await client.get("/")
    assert resp.status_code == 500
    assert resp.content == b""
