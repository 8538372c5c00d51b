"""Tests for the command line interface."""

import pytest
from typer.testing import CliRunner

from community_server import main
from community_server.services import register_services
from community_server.settings import get_settings

runner = CliRunner()


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch: pytest.MonkeyPatch):
    """The CLI mutates the cached settings; give each test its own."""
    monkeypatch.setenv("COMMUNITY_SERVER_DATABASE_URL", "sqlite://")
    monkeypatch.setenv("COMMUNITY_SERVER_PORT", "0")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_help():
    result = runner.invoke(main.app, ["--help"])

    assert result.exit_code == 0
    assert "run" in result.stdout
    assert "check" in result.stdout


def test_check_all_services_ready():
    result = runner.invoke(main.app, ["check", "--log-level", "error"])

    assert result.exit_code == 0, result.stdout
    assert "All 3 services initialized" in result.stdout


def test_check_critical_failure(monkeypatch: pytest.MonkeyPatch):
    def register_with_broken_service(container, settings):
        register_services(container, settings)
        settings.critical_services = ["broken"]

        def broken(_):
            raise RuntimeError("disk full")

        container.register("broken", broken)

    monkeypatch.setattr(main, "register_services", register_with_broken_service)

    result = runner.invoke(main.app, ["check", "--log-level", "error"])

    assert result.exit_code == 1
    assert "Critical service(s) failed: broken" in result.stdout


def test_update_settings_overrides():
    settings = main._update_settings("127.0.0.1", 9000, "debug", None, True)

    assert settings is get_settings()
    assert settings.host == "127.0.0.1"
    assert settings.port == 9000
    assert settings.log_level == "DEBUG"
    assert settings.database_url == "sqlite://"
    assert settings.strict_dependencies is True
