"""Tests for configuration loading."""

from __future__ import annotations

from garden_counter.config import load_config


def test_defaults(tmp_path):
    config = load_config(tmp_path / "missing.yaml")
    assert config.store.backend == "dynamodb"
    assert config.store.table_name == "digital-garden-visitor-counter"
    assert config.store.operation_timeout_ms == 200
    assert config.counter.allowed_names == ["default"]
    assert config.counter.min_width == 5
    assert config.server.trust_forwarded is False


def test_yaml_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "store:\n"
        "  backend: memory\n"
        "  unknown_key: ignored\n"
        "counter:\n"
        "  allowed_names: [default, repo-readme]\n"
        "  min_width: 7\n"
    )
    config = load_config(path)
    assert config.store.backend == "memory"
    assert not hasattr(config.store, "unknown_key")
    assert config.counter.allowed_names == ["default", "repo-readme"]
    assert config.counter.min_width == 7


def test_env_overrides_win(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("counter:\n  min_width: 7\n")
    monkeypatch.setenv("DGVC_COUNTER_MIN_WIDTH", "3")
    monkeypatch.setenv("DGVC_SERVER_TRUST_FORWARDED", "true")
    monkeypatch.setenv("DGVC_STORE_OPERATION_TIMEOUT_MS", "500")

    config = load_config(path)
    assert config.counter.min_width == 3
    assert config.server.trust_forwarded is True
    assert config.store.operation_timeout_ms == 500


def test_short_env_names(tmp_path, monkeypatch):
    monkeypatch.setenv("DGVC_TABLE_NAME", "my-counters")
    monkeypatch.setenv("DGVC_MIN_WIDTH", "6")
    monkeypatch.setenv("DGVC_ALLOWED_NAMES", "default, repo-readme,,blog")

    config = load_config(tmp_path / "missing.yaml")
    assert config.store.table_name == "my-counters"
    assert config.counter.min_width == 6
    assert config.counter.allowed_names == ["default", "repo-readme", "blog"]
