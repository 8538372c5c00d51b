"""Enums for the service container.

Kept in a separate module so models, errors and the container itself can
import them without circular imports.
"""

from enum import StrEnum


class ServiceState(StrEnum):
    """Lifecycle state of a registered service."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"
