"""Service definition record held by the container for each registered name."""

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from .enums import ServiceState

if TYPE_CHECKING:
    from .container import ServiceContainer

ServiceFactory = Callable[["ServiceContainer"], Any | Awaitable[Any]]


class ServiceDefinition:
    """A named service: how to build it, what it needs, and where it is in its lifecycle.

    Only the container mutates a definition. ``instance`` is set once the
    service is READY and ``error`` once it is FAILED.
    """

    def __init__(
        self,
        name: str,
        factory: ServiceFactory,
        dependencies: tuple[str, ...] = (),
        lazy: bool = False,
    ):
        """Initialize an unresolved service definition.

        Args:
            name: Unique service name
            factory: Callable receiving the container and returning the instance
                (or an awaitable resolving to it)
            dependencies: Names that must be READY before the factory runs
            lazy: If True, the service is skipped by bulk initialization
        """
        self.name = name
        self.factory = factory
        self.dependencies = dependencies
        self.lazy = lazy
        self.state = ServiceState.UNINITIALIZED
        self.instance: Any = None
        self.error: BaseException | None = None

    def mark_initializing(self) -> None:
        self.state = ServiceState.INITIALIZING
        self.error = None

    def mark_ready(self, instance: Any) -> None:
        self.instance = instance
        self.state = ServiceState.READY

    def mark_failed(self, error: BaseException) -> None:
        self.error = error
        self.state = ServiceState.FAILED

    def reset(self) -> None:
        """Return a FAILED definition to UNINITIALIZED so it can be attempted again."""
        self.state = ServiceState.UNINITIALIZED
        self.error = None

    def __repr__(self) -> str:
        """Detailed representation of the definition."""
        return (
            f"ServiceDefinition(name='{self.name}', state={self.state.value}, "
            f"dependencies={list(self.dependencies)}, lazy={self.lazy})"
        )
