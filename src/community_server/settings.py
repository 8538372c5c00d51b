"""Application configuration using Pydantic Settings.

This module centralizes runtime configuration for the community server.
Values can be provided via environment variables (preferred) or fall back to
the defaults below. A ``Settings`` instance is intended to be retrieved via
``get_settings`` which caches the object for reuse across the process.

Environment variable prefix: ``COMMUNITY_SERVER_`` (e.g. ``COMMUNITY_SERVER_PORT``).
"""

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from community_server.constants import ServiceName


class Settings(BaseSettings):
    """Runtime application settings.

    Attributes map directly to environment variables using the
    ``COMMUNITY_SERVER_`` prefix (case-insensitive). For example,
    ``host`` <- ``COMMUNITY_SERVER_HOST``.
    """

    # Server settings
    host: str = Field(
        default="0.0.0.0",
        description="Host interface to bind the server",
    )  # fmt: skip
    port: int = Field(
        default=8080,
        description="Server port",
    )  # fmt: skip
    log_level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Application log level",
    )
    database_url: str = Field(
        default="sqlite:///./community_server.db",
        description="Database connection string",
    )  # fmt: skip
    sql_log: bool = Field(
        default=False,
        description="Enable SQL query logging",
    )  # fmt: skip

    # Service container settings
    strict_dependencies: bool = Field(
        default=False,
        description="Fail when a service factory requests a service it did not declare as a dependency",
    )  # fmt: skip
    retry_failed_services: bool = Field(
        default=False,
        description="Re-attempt a failed service on its next request instead of re-raising the stored error",
    )  # fmt: skip
    critical_services: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [ServiceName.DATABASE.value, ServiceName.HTTP_SERVER.value],
        description="Services whose failure aborts startup",
    )  # fmt: skip
    shutdown_timeout: float | None = Field(
        default=30.0,
        description="Seconds to wait for in-flight service initialization at shutdown (unset waits indefinitely)",
    )  # fmt: skip

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | None) -> str:
        """Normalize and validate log level."""
        if v is None:
            return "INFO"

        v_upper = str(v).upper()

        allowed = {"TRACE", "DEBUG", "INFO", "WARNING", "ERROR"}
        if v_upper not in allowed:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {', '.join(sorted(allowed))}")

        return v_upper

    @field_validator("critical_services", mode="before")
    @classmethod
    def split_critical_services(cls, v: str | list[str] | None) -> list[str]:
        """Accept a comma-separated string as well as a list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    model_config = SettingsConfigDict(
        env_prefix="COMMUNITY_SERVER_",
        case_sensitive=False,
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )


@lru_cache
def get_settings() -> Settings:
    """Return the cached ``Settings`` instance.

    The first invocation reads environment variables / .env file; subsequent
    calls reuse the same object to ensure consistent config.
    """

    return Settings()


__all__ = ["Settings", "get_settings"]
