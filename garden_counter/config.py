"""Counter service configuration.

Loads from config.yaml if present, with environment variable overrides.
Environment variables use the pattern: DGVC_<SECTION>_<KEY> (uppercase).
The short names used by earlier deployments (DGVC_TABLE_NAME,
DGVC_MIN_WIDTH, DGVC_ALLOWED_NAMES) are still honoured.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_names(value: str) -> list[str]:
    return [name.strip() for name in value.split(",") if name.strip()]


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8000
    env: str = "dev"  # "dev" or "prod"
    trust_forwarded: bool = False  # use X-Forwarded-For from a trusted proxy


@dataclass
class StoreConfig:
    backend: str = "dynamodb"  # "dynamodb" or "memory"
    table_name: str = "digital-garden-visitor-counter"
    region: str = ""
    connect_timeout_ms: int = 100
    read_timeout_ms: int = 100
    operation_timeout_ms: int = 200
    transport_max_attempts: int = 2


@dataclass
class CounterConfig:
    allowed_names: list[str] = field(default_factory=lambda: ["default"])
    min_width: int = 5  # digits


@dataclass
class LoggingConfig:
    level: str = "info"
    format: str = "console"  # "console" or "json"


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    counter: CounterConfig = field(default_factory=CounterConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _apply_env_overrides(config: AppConfig) -> None:
    """Override config values from environment variables."""
    mapping = {
        "DGVC_SERVER_HOST": lambda v: setattr(config.server, "host", v),
        "DGVC_SERVER_PORT": lambda v: setattr(config.server, "port", int(v)),
        "DGVC_SERVER_ENV": lambda v: setattr(config.server, "env", v),
        "DGVC_SERVER_TRUST_FORWARDED": lambda v: setattr(config.server, "trust_forwarded", _parse_bool(v)),
        "DGVC_STORE_BACKEND": lambda v: setattr(config.store, "backend", v),
        "DGVC_STORE_TABLE_NAME": lambda v: setattr(config.store, "table_name", v),
        "DGVC_TABLE_NAME": lambda v: setattr(config.store, "table_name", v),
        "DGVC_STORE_REGION": lambda v: setattr(config.store, "region", v),
        "DGVC_STORE_CONNECT_TIMEOUT_MS": lambda v: setattr(config.store, "connect_timeout_ms", int(v)),
        "DGVC_STORE_READ_TIMEOUT_MS": lambda v: setattr(config.store, "read_timeout_ms", int(v)),
        "DGVC_STORE_OPERATION_TIMEOUT_MS": lambda v: setattr(config.store, "operation_timeout_ms", int(v)),
        "DGVC_STORE_TRANSPORT_MAX_ATTEMPTS": lambda v: setattr(config.store, "transport_max_attempts", int(v)),
        "DGVC_COUNTER_ALLOWED_NAMES": lambda v: setattr(config.counter, "allowed_names", _parse_names(v)),
        "DGVC_ALLOWED_NAMES": lambda v: setattr(config.counter, "allowed_names", _parse_names(v)),
        "DGVC_COUNTER_MIN_WIDTH": lambda v: setattr(config.counter, "min_width", int(v)),
        "DGVC_MIN_WIDTH": lambda v: setattr(config.counter, "min_width", int(v)),
        "DGVC_LOG_LEVEL": lambda v: setattr(config.logging, "level", v),
        "DGVC_LOG_FORMAT": lambda v: setattr(config.logging, "format", v),
    }
    for env_key, setter in mapping.items():
        val = os.environ.get(env_key)
        if val is not None:
            setter(val)


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load configuration from YAML file + environment overrides."""
    config = AppConfig()

    # Try to load YAML
    if config_path is None:
        config_path = Path("config.yaml")
    else:
        config_path = Path(config_path)

    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}

        for section in ("server", "store", "counter", "logging"):
            target = getattr(config, section)
            for k, v in (raw.get(section) or {}).items():
                if hasattr(target, k):
                    setattr(target, k, v)

    # Environment overrides always win
    _apply_env_overrides(config)
    return config
