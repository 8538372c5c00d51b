"""Tests for the database service."""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from tenacity import stop_after_attempt, wait_none

from community_server.services.database import Database, create_database
from community_server.settings import Settings

UNREACHABLE_URL = "sqlite:////nonexistent-directory/community_server.db"


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, database_url="sqlite://")


@pytest.mark.asyncio
async def test_create_database_verifies_connection(settings: Settings):
    database = await create_database(settings)
    try:
        with database.engine.connect() as connection:
            assert connection.execute(text("SELECT 1")).scalar() == 1
    finally:
        database.shutdown()


def test_from_settings_does_not_connect():
    """Building the engine is lazy; an unreachable URL only fails on use."""
    database = Database.from_settings(Settings(_env_file=None, database_url=UNREACHABLE_URL))
    assert str(database.engine.url) == UNREACHABLE_URL
    database.shutdown()


def test_ping_retries_then_reraises():
    database = Database.from_settings(Settings(_env_file=None, database_url=UNREACHABLE_URL))
    ping = Database.ping.retry_with(stop=stop_after_attempt(2), wait=wait_none())

    with pytest.raises(OperationalError):
        ping(database)

    database.shutdown()
