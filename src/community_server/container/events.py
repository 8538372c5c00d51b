"""Lifecycle notifications published by the service container.

Subscribe through ``ServiceContainer.on``. Handlers observe; they cannot
cancel or retry anything from inside a notification.
"""

from pydantic import BaseModel, Field


class ServiceReadyEvent(BaseModel):
    """A service finished initializing successfully."""

    name: str = Field(..., description="Service name")


class ServiceFailedEvent(BaseModel):
    """A service initialization attempt failed."""

    name: str = Field(..., description="Service name")
    error: str = Field(..., description="Error message")
    error_type: str = Field(..., description="Exception class name")

    @classmethod
    def from_error(cls, name: str, error: BaseException) -> "ServiceFailedEvent":
        return cls(name=name, error=str(error), error_type=type(error).__name__)


class AllServicesAttemptedEvent(BaseModel):
    """Bulk initialization finished; every non-lazy service is READY or FAILED."""

    total: int
    succeeded: int
    failed: int
