"""Database service.

Wraps a SQLAlchemy engine. The container factory verifies connectivity with
``SELECT 1`` before the service is considered ready, and the container calls
``shutdown()`` to dispose the connection pool.
"""

import asyncio

from loguru import logger
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import OperationalError
from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from community_server.settings import Settings


class Database:
    """Connection pool handle shared by every service that talks to the database."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build the engine from settings without opening a connection."""
        engine = create_engine(
            settings.database_url,
            pool_pre_ping=True,
            echo=settings.sql_log,
        )
        logger.debug("SQL echo is {}", "enabled" if settings.sql_log else "disabled")
        return cls(engine)

    @retry(
        stop=stop_after_attempt(5),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
        retry=retry_if_exception_type(OperationalError),
        before_sleep=before_sleep_log(logger, "DEBUG"),  # type: ignore[arg-type]
    )
    def ping(self) -> None:
        """Run ``SELECT 1``, retrying with exponential backoff while the database is unreachable."""
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))

    async def verify(self) -> None:
        """Check connectivity without blocking the event loop."""
        logger.debug("Verifying database connection...")
        await asyncio.to_thread(self.ping)

    def shutdown(self) -> None:
        """Dispose of the engine's connection pool."""
        logger.info("Closing database connections")
        self.engine.dispose()


async def create_database(settings: Settings) -> Database:
    """Create the database service and verify it can be reached."""
    database = Database.from_settings(settings)
    try:
        await database.verify()
    except Exception:
        database.shutdown()
        raise
    return database
