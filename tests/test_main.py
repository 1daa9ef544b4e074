"""Tests for application wiring."""

from __future__ import annotations

import pytest

from garden_counter.config import AppConfig
from garden_counter.core.models import Visitor
from garden_counter.core.store import CounterStore
from garden_counter.main import build_store
from garden_counter.storage.dynamodb import DynamoCounterBackend


@pytest.mark.asyncio
async def test_build_memory_store():
    config = AppConfig()
    config.store.backend = "memory"
    store = build_store(config)

    assert isinstance(store, CounterStore)
    assert await store.increment(Visitor(1, 1_700_000_000), "default", 1_700_000_000) == 1
    assert await store.increment(Visitor(2, 1_700_000_010), "default", 1_700_000_010) == 2


def test_build_dynamodb_store():
    config = AppConfig()
    config.store.region = "eu-west-1"
    store = build_store(config)
    assert isinstance(store._backend, DynamoCounterBackend)


def test_unknown_backend():
    config = AppConfig()
    config.store.backend = "redis"
    with pytest.raises(ValueError):
        build_store(config)


def test_entry_point_uses_server_config(monkeypatch):
    import garden_counter.__main__ as entry

    monkeypatch.setenv("DGVC_SERVER_HOST", "127.0.0.1")
    monkeypatch.setenv("DGVC_SERVER_PORT", "9090")
    calls = []
    monkeypatch.setattr(entry.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    entry.main()

    assert calls == [("garden_counter.main:app",
                      {"host": "127.0.0.1", "port": 9090, "log_level": "info"})]
