"""Service container exceptions.

All errors raised by the container itself derive from ``ContainerError``.
Errors raised by a service factory are not wrapped: they are stored on the
failed service and re-raised as-is to every caller awaiting it.

## Hierarchy

- **ContainerError**: Root of the hierarchy
- **DuplicateServiceError**: Name registered twice (programmer error)
- **UnknownServiceError**: Name was never registered (programmer error)
- **CircularDependencyError**: Declared dependencies form a cycle
- **DependencyFailedError**: A declared dependency failed, so the dependent did too
- **UndeclaredDependencyError**: A factory requested a service it did not declare
- **ServiceNotReadyError**: Service requested synchronously before it is READY
- **ContainerClosedError**: Container used after ``shutdown()``

Usage:
    ```python
    try:
        await container.get("database")
    except ContainerError as e:
        logger.error(f"Container error: {e}")
    ```
"""

from .enums import ServiceState


class ContainerError(Exception):
    """Base exception for all service container errors."""


class DuplicateServiceError(ContainerError):
    """Raised when a service name is registered more than once.

    This is a wiring bug and should abort startup during the registration phase.
    """

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Service {name} is already registered")


class UnknownServiceError(ContainerError, KeyError):
    """Raised when resolving a service name that was never registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Service {name} is not registered")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class CircularDependencyError(ContainerError):
    """Raised when declared dependencies form a cycle.

    Attributes:
        cycle: The offending path, starting and ending with the same service name
    """

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__(f"Circular dependency detected: {' -> '.join(cycle)}")


class DependencyFailedError(ContainerError):
    """Raised when a service cannot start because one of its dependencies failed.

    The dependency's own error is available as ``__cause__``.
    """

    def __init__(self, name: str, dependency: str):
        self.name = name
        self.dependency = dependency
        super().__init__(f"Service {name} cannot start: dependency {dependency} failed")


class UndeclaredDependencyError(ContainerError):
    """Raised in strict mode when a factory requests a service it did not declare."""

    def __init__(self, name: str, dependency: str):
        self.name = name
        self.dependency = dependency
        super().__init__(f"Service {name} requested {dependency} without declaring it as a dependency")


class ServiceNotReadyError(ContainerError):
    """Raised when a service is needed immediately but has not reached READY."""

    def __init__(self, name: str, state: ServiceState | None):
        self.name = name
        self.state = state
        super().__init__(f"Service {name} is not ready (state: {state})")


class ContainerClosedError(ContainerError):
    """Raised when the container is used after it has been shut down."""

    def __init__(self) -> None:
        super().__init__("Service container has been shut down")
