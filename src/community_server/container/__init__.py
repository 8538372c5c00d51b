"""Service container with async lifecycle management.

This module provides the dependency-injection container that assembles the
server process from independently initializing subsystems:
- Named services declared with a factory and their dependency names
- Concurrent, deduplicated initialization in dependency order
- Cycle detection before any factory runs
- Partial-failure-tolerant bulk startup and ordered graceful shutdown
- Lifecycle notifications on an event bus

The container is an ordinary object: build one at process entry and pass it
to whatever needs it (tests build a fresh one each).
"""

from .container import ServiceContainer
from .definition import ServiceDefinition, ServiceFactory
from .enums import ServiceState
from .errors import (
    CircularDependencyError,
    ContainerClosedError,
    ContainerError,
    DependencyFailedError,
    DuplicateServiceError,
    ServiceNotReadyError,
    UndeclaredDependencyError,
    UnknownServiceError,
)
from .events import AllServicesAttemptedEvent, ServiceFailedEvent, ServiceReadyEvent
from .graph import find_cycle, missing_dependencies
from .models import InitializationReport, ServiceStatus, ShutdownReport

__all__ = [
    # Container
    "ServiceContainer",
    "ServiceDefinition",
    "ServiceFactory",
    "ServiceState",
    "find_cycle",
    "missing_dependencies",
    # Errors
    "ContainerError",
    "CircularDependencyError",
    "ContainerClosedError",
    "DependencyFailedError",
    "DuplicateServiceError",
    "ServiceNotReadyError",
    "UndeclaredDependencyError",
    "UnknownServiceError",
    # Events
    "AllServicesAttemptedEvent",
    "ServiceFailedEvent",
    "ServiceReadyEvent",
    # Reports
    "InitializationReport",
    "ServiceStatus",
    "ShutdownReport",
]
