"""Tests for community_server.settings.Settings behavior."""

from typing import Any

import pytest
from pydantic import ValidationError

from community_server.settings import Settings, get_settings


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch):
    """Defaults should be stable even if external env or .env sets values.

    We explicitly delete the relevant variables and bypass .env loading by
    passing `_env_file=None`.
    """
    for var in [
        "COMMUNITY_SERVER_HOST",
        "COMMUNITY_SERVER_PORT",
        "COMMUNITY_SERVER_LOG_LEVEL",
        "COMMUNITY_SERVER_SQL_LOG",
        "COMMUNITY_SERVER_STRICT_DEPENDENCIES",
        "COMMUNITY_SERVER_RETRY_FAILED_SERVICES",
        "COMMUNITY_SERVER_CRITICAL_SERVICES",
        "COMMUNITY_SERVER_SHUTDOWN_TIMEOUT",
    ]:
        monkeypatch.delenv(var, raising=False)
    s = Settings(_env_file=None)
    assert s.host == "0.0.0.0"
    assert s.port == 8080
    assert s.log_level == "INFO"
    assert s.sql_log is False
    assert s.strict_dependencies is False
    assert s.retry_failed_services is False
    assert s.critical_services == ["database", "http.server"]
    assert s.shutdown_timeout == 30.0


def test_env_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("COMMUNITY_SERVER_HOST", "127.0.0.1")
    monkeypatch.setenv("COMMUNITY_SERVER_PORT", "9090")
    monkeypatch.setenv("COMMUNITY_SERVER_SQL_LOG", "true")
    monkeypatch.setenv("COMMUNITY_SERVER_STRICT_DEPENDENCIES", "1")
    monkeypatch.setenv("COMMUNITY_SERVER_SHUTDOWN_TIMEOUT", "2.5")
    s = Settings(_env_file=None)
    assert s.host == "127.0.0.1"
    assert s.port == 9090
    assert s.sql_log is True
    assert s.strict_dependencies is True
    assert s.shutdown_timeout == 2.5


def test_case_insensitive_env_name(monkeypatch: pytest.MonkeyPatch):
    # lower-case variable name should still be picked up due to case_sensitive=False
    monkeypatch.setenv("community_server_host", "10.10.10.10")
    s = Settings(_env_file=None)
    assert s.host == "10.10.10.10"


def test_critical_services_from_comma_separated_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("COMMUNITY_SERVER_CRITICAL_SERVICES", "database, cache ,,search")
    s = Settings(_env_file=None)
    assert s.critical_services == ["database", "cache", "search"]


def test_critical_services_empty(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("COMMUNITY_SERVER_CRITICAL_SERVICES", "")
    s = Settings(_env_file=None)
    assert s.critical_services == []


@pytest.mark.parametrize("level", ["debug", "Warning", "TRACE"])
def test_log_level_is_normalized(level: str):
    assert Settings(_env_file=None, log_level=level).log_level == level.upper()


def test_invalid_log_level():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, log_level="verbose")


def test_get_settings_singleton():
    a = get_settings()
    b = get_settings()
    assert a is b


def test_get_settings_cache_not_affected_by_new_env(monkeypatch: pytest.MonkeyPatch):
    # Ensure cache stability: first call caches values
    first = get_settings()
    original_host = first.host
    monkeypatch.setenv("COMMUNITY_SERVER_HOST", "203.0.113.5")
    second = get_settings()
    assert second is first
    assert second.host == original_host  # cache not invalidated


@pytest.mark.parametrize(
    "override,expected",
    [
        ({"host": "1.1.1.1"}, "1.1.1.1"),
        ({"port": 1234}, 1234),
        ({"critical_services": ["database"]}, ["database"]),
    ],
)
def test_direct_instantiation_with_overrides(override: dict[str, Any], expected: Any):
    s = Settings(_env_file=None, **override)
    key = next(iter(override.keys()))
    assert getattr(s, key) == expected


def test_database_url_override(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("COMMUNITY_SERVER_DATABASE_URL", "postgresql+psycopg://u:p@h/db")
    s = Settings(_env_file=None)
    assert s.database_url == "postgresql+psycopg://u:p@h/db"
