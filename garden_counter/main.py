"""Digital garden visitor counter — main entry point.

This is the only file that knows about concrete implementations.
It wires together the config, the backend, the store and the API layer.

Run with: uvicorn garden_counter.main:app
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from garden_counter.api.counter import router as counter_router
from garden_counter.config import AppConfig, load_config
from garden_counter.core.store import CounterStore
from garden_counter.storage.dynamodb import DynamoCounterBackend, make_client
from garden_counter.storage.memory import MemoryCounterBackend

log = structlog.get_logger()

# Module-level singletons (set during startup)
_store: CounterStore | None = None
_config: AppConfig | None = None


def get_store() -> CounterStore:
    assert _store is not None, "Server not initialized"
    return _store


def get_config() -> AppConfig:
    assert _config is not None, "Server not initialized"
    return _config


def _setup_logging(config: AppConfig) -> None:
    """Configure structlog based on the logging config."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if config.logging.format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.logging.level.upper()),
        ),
    )


def build_store(config: AppConfig) -> CounterStore:
    """Create the backend named in the config and the store on top of it."""
    if config.store.backend == "memory":
        backend = MemoryCounterBackend()
    elif config.store.backend == "dynamodb":
        client = make_client(
            region=config.store.region,
            connect_timeout_ms=config.store.connect_timeout_ms,
            read_timeout_ms=config.store.read_timeout_ms,
            transport_max_attempts=config.store.transport_max_attempts,
        )
        backend = DynamoCounterBackend(
            client,
            table_name=config.store.table_name,
            operation_timeout_ms=config.store.operation_timeout_ms,
        )
    else:
        raise ValueError(f"unknown store backend {config.store.backend!r}")
    return CounterStore(backend)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    global _store, _config

    _config = load_config()
    _setup_logging(_config)

    log.info("counter_starting",
             env=_config.server.env,
             backend=_config.store.backend,
             table=_config.store.table_name,
             allowed_names=_config.counter.allowed_names)

    _store = build_store(_config)

    yield

    log.info("counter_stopped")


app = FastAPI(
    title="Digital garden visitor counter",
    description="Counts unique recent visitors and renders the count as a PNG",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(counter_router)
