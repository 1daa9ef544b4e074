"""Shared test fixtures."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

import garden_counter.main as main_module
from garden_counter.config import AppConfig
from garden_counter.core.store import CounterStore
from garden_counter.storage.memory import MemoryCounterBackend

BROWSER_UA = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0 Safari/537.36"
)


@pytest.fixture(autouse=True)
def _init_server():
    """Initialize server singletons for every test, backed by an in-memory store."""
    config = AppConfig()
    config.store.backend = "memory"
    config.counter.allowed_names = ["default", "repo-readme"]
    config.logging.level = "warning"

    # Patch module-level singletons
    main_module._config = config
    main_module._store = CounterStore(MemoryCounterBackend())

    yield

    # Cleanup
    main_module._config = None
    main_module._store = None


@pytest.fixture
async def client():
    from garden_counter.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test",
                           headers={"user-agent": BROWSER_UA}) as c:
        yield c


@pytest.fixture
def user_agent() -> str:
    return BROWSER_UA
