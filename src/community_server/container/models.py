"""Data models reported by the service container.

Pydantic models describing per-service status snapshots and the outcome of
bulk initialization and shutdown sweeps.
"""

import arrow
from pydantic import BaseModel, Field

from .enums import ServiceState


class ServiceStatus(BaseModel):
    """Point-in-time view of one registered service."""

    model_config = {"use_enum_values": True}

    name: str
    state: ServiceState
    dependencies: list[str] = Field(default_factory=list)
    lazy: bool = False
    error: str | None = None
    error_type: str | None = None


class InitializationReport(BaseModel):
    """Outcome of one ``initialize_all()`` sweep."""

    total: int = 0
    succeeded: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)  # service name -> error message
    started_at: str = Field(default_factory=lambda: arrow.utcnow().isoformat())  # ISO 8601 UTC timestamp
    execution_time_ms: float | None = None

    @property
    def ok(self) -> bool:
        """True if every attempted service is READY."""
        return not self.failed


class ShutdownReport(BaseModel):
    """Outcome of ``shutdown()``."""

    stopped: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)  # service name -> error message
    abandoned: list[str] = Field(default_factory=list)  # initializations cancelled at shutdown
    execution_time_ms: float | None = None
