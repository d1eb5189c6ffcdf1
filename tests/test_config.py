"""Tests for settings and JSON logging."""
import json
import logging
from kstats.config import Settings
from kstats.logging_utils import JSONFormatter, metrics_path


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("KSTATS_DATABASE_URL", "sqlite:////tmp/irc.db")
    monkeypatch.setenv("KSTATS_REDIS_ADDRESS", "cache.internal:6380")
    monkeypatch.setenv("KSTATS_REDIS_PASSWORD", "hunter2")

    config = Settings()

    assert config.database_url == "sqlite:////tmp/irc.db"
    assert config.redis_password == "hunter2"
    assert config.redis_host_port() == ("cache.internal", 6380)
    assert config.cache_ttl_seconds == 300


def test_redis_address_without_port(monkeypatch):
    monkeypatch.setenv("KSTATS_REDIS_ADDRESS", "cache")
    assert Settings().redis_host_port() == ("cache", 6379)


def test_database_type(monkeypatch):
    assert Settings().validate_database_type()
    monkeypatch.setenv("KSTATS_DATABASE_TYPE", "postgres")
    assert not Settings().validate_database_type()


def test_json_formatter_includes_extras():
    record = logging.LogRecord(
        name="kstats.cache",
        level=logging.WARNING,
        pathname="",
        lineno=0,
        msg="Cache read failed",
        args=(),
        exc_info=None,
    )
    record.channel = "#test"
    record.error = "connection refused"

    payload = json.loads(JSONFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["message"] == "Cache read failed"
    assert payload["channel"] == "#test"
    assert payload["error"] == "connection refused"
    assert payload["ts"].endswith("Z")
    assert "request_id" not in payload


def test_metrics_path_is_bounded():
    assert metrics_path("/#python") == "/{channel}"
    assert metrics_path("/assets/style.css") == "/assets"
    assert metrics_path("/healthz") == "/healthz"
