"""Service container with dependency-aware async lifecycle management.

The ServiceContainer is the process-wide registry of named singletons. Each
service is declared with a factory and the names it depends on; the
container builds services on demand, in dependency order, sharing a single
initialization attempt between concurrent callers.

Key Features:
- Declared dependencies resolved concurrently before a factory runs
- One in-flight initialization per service; concurrent ``get()`` calls share it
- Cycle detection before any work starts
- Bulk startup that tolerates partial failure (``initialize_all``)
- Best-effort shutdown in reverse registration order (``shutdown``)
- Lifecycle notifications published on an EventBus

Known limitation:
    There is no intrinsic timeout. A factory that never completes leaves its
    service (and everything depending on it) INITIALIZING forever. Callers
    that need a deadline wrap ``get()`` in ``asyncio.wait_for``.

Typical Usage:
    container = ServiceContainer()
    container.register("database", connect_database)
    container.register("cache", build_cache, dependencies=["database"])
    container.register("reports", build_reports, dependencies=["database"], lazy=True)

    report = await container.initialize_all()
    cache = await container.get("cache")
    ...
    await container.shutdown()
"""

import asyncio
import inspect
import time
from collections.abc import Iterable
from contextvars import ContextVar
from typing import Any

from loguru import logger
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_delay, wait_fixed

from community_server.event_bus import EventBus

from .definition import ServiceDefinition, ServiceFactory
from .enums import ServiceState
from .errors import (
    CircularDependencyError,
    ContainerClosedError,
    DependencyFailedError,
    DuplicateServiceError,
    ServiceNotReadyError,
    UndeclaredDependencyError,
    UnknownServiceError,
)
from .events import AllServicesAttemptedEvent, ServiceFailedEvent, ServiceReadyEvent
from .graph import find_cycle
from .models import InitializationReport, ServiceStatus, ShutdownReport

# Service whose factory is running in this task, if any. Tasks spawned by a
# factory inherit it, so it only counts while that factory call is in progress.
_running_factory: ContextVar[ServiceDefinition | None] = ContextVar("running_factory", default=None)


class ServiceContainer:
    """Registry of named, asynchronously constructed singletons.

    Only the container mutates its registry. All bookkeeping happens in
    synchronous code between suspension points, so no locking is needed on a
    single event loop.

    Attributes:
        strict_dependencies: If True, a factory calling ``get()`` for a service
            it did not declare raises UndeclaredDependencyError instead of
            logging a warning
        retry_failed: If True, ``get()`` on a FAILED service starts a new
            attempt instead of re-raising the stored error
        events: EventBus carrying ServiceReadyEvent, ServiceFailedEvent and
            AllServicesAttemptedEvent
    """

    def __init__(
        self,
        *,
        strict_dependencies: bool = False,
        retry_failed: bool = False,
        event_bus: EventBus | None = None,
    ):
        """Initialize an empty, open container.

        Args:
            strict_dependencies: Reject undeclared dependencies requested by factories
            retry_failed: Re-attempt FAILED services on the next ``get()``
            event_bus: Bus for lifecycle notifications; a private one is created if omitted
        """
        self.strict_dependencies = strict_dependencies
        self.retry_failed = retry_failed
        self.events = event_bus if event_bus is not None else EventBus()
        self._services: dict[str, ServiceDefinition] = {}
        self._in_flight: dict[str, asyncio.Task[Any]] = {}
        self._factory_calls: set[str] = set()
        self._closed = False

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        name: str,
        factory: ServiceFactory,
        *,
        dependencies: Iterable[str] = (),
        lazy: bool = False,
    ) -> None:
        """Register a service with its factory and dependencies.

        No factory code runs until the service is first requested.

        Args:
            name: Unique service name
            factory: Callable receiving this container, returning the instance or an awaitable of it
            dependencies: Names that must be READY before the factory runs
            lazy: If True, ``initialize_all()`` skips this service

        Raises:
            DuplicateServiceError: If the name is already registered
            ContainerClosedError: If the container has been shut down
            TypeError: If factory is not callable or dependencies is a single string
        """
        self._ensure_open()
        if not callable(factory):
            raise TypeError(f"Factory for service {name} must be callable, got: {type(factory).__name__}")
        if isinstance(dependencies, str):
            raise TypeError(f"Dependencies of service {name} must be a list of names, got a string: {dependencies!r}")
        if name in self._services:
            raise DuplicateServiceError(name)

        self._services[name] = ServiceDefinition(name, factory, tuple(dependencies), lazy)
        logger.debug(f"Registered service: {name}")

    def on(self, event_type: type, handler: Any) -> None:
        """Subscribe a handler to one of the container's lifecycle events."""
        self.events.on(event_type, handler)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def get(self, name: str) -> Any:
        """Get a service instance, initializing it and its dependencies if needed.

        Args:
            name: Registered service name

        Returns:
            The service instance (the same object for every caller)

        Raises:
            UnknownServiceError: If the name was never registered
            ContainerClosedError: If the container has been shut down, including
                while this call was waiting for the initialization to finish
            CircularDependencyError: If the service's dependencies form a cycle
            DependencyFailedError: If one of its dependencies failed
            Exception: Whatever the service's factory raised
        """
        definition = self._lookup(name)
        self._check_declared(name)

        if definition.state == ServiceState.READY:
            return definition.instance

        if definition.state == ServiceState.INITIALIZING:
            task = self._in_flight.get(name)
            if task is not None:
                return await self._wait_in_flight(task)
            logger.warning(f"Service {name} is initializing without a running attempt, starting a new one")
            definition.reset()

        if definition.state == ServiceState.FAILED:
            if not self.retry_failed:
                raise definition.error  # type: ignore[misc]
            logger.info(f"Retrying failed service: {name}")
            definition.reset()

        return await self._initialize(definition)

    async def retry(self, name: str) -> Any:
        """Start a fresh initialization attempt for a FAILED service.

        Services in any other state are resolved as by ``get()``. Concurrent
        retries share one attempt.

        Args:
            name: Registered service name

        Returns:
            The service instance
        """
        definition = self._lookup(name)
        if definition.state == ServiceState.FAILED:
            logger.info(f"Retrying failed service: {name}")
            definition.reset()
        return await self.get(name)

    async def _initialize(self, definition: ServiceDefinition) -> Any:
        cycle = find_cycle(self.dependency_graph(), definition.name)
        if cycle is not None:
            error = CircularDependencyError(cycle)
            self._record_failure(definition, error)
            raise error

        definition.mark_initializing()
        task = asyncio.create_task(self._run_initialization(definition), name=f"initialize:{definition.name}")
        self._in_flight[definition.name] = task
        return await self._wait_in_flight(task)

    async def _wait_in_flight(self, task: asyncio.Task[Any]) -> Any:
        """Await a shared initialization attempt on behalf of one caller.

        Shielded so a cancelled caller does not cancel the attempt the others
        wait on. An attempt cancelled by ``shutdown()`` is reported to its
        waiters as ContainerClosedError rather than as their own cancellation.
        """
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError as e:
            current = asyncio.current_task()
            if self._closed and task.cancelled() and (current is None or not current.cancelling()):
                raise ContainerClosedError() from e
            raise

    async def _run_initialization(self, definition: ServiceDefinition) -> Any:
        # The task inherits its creator's context; this attempt is not inside any factory yet
        _running_factory.set(None)
        name = definition.name
        try:
            if definition.dependencies:
                logger.debug(f"Initializing dependencies for {name}: {', '.join(definition.dependencies)}")
                await asyncio.gather(*(self._resolve_dependency(name, dep) for dep in definition.dependencies))

            logger.info(f"Initializing service: {name}")
            token = _running_factory.set(definition)
            self._factory_calls.add(name)
            try:
                instance = definition.factory(self)
                if inspect.isawaitable(instance):
                    instance = await instance
            finally:
                self._factory_calls.discard(name)
                _running_factory.reset(token)

        except asyncio.CancelledError as e:
            definition.mark_failed(e)
            logger.warning(f"Initialization of {name} was cancelled")
            raise
        except BaseException as e:
            # SystemExit, KeyboardInterrupt and other BaseExceptions fail the service too
            self._record_failure(definition, e)
            raise
        else:
            definition.mark_ready(instance)
            self.events.emit(ServiceReadyEvent(name=name))
            logger.info(f"Service ready: {name}")
            return instance
        finally:
            self._in_flight.pop(name, None)

    async def _resolve_dependency(self, name: str, dependency: str) -> Any:
        try:
            return await self.get(dependency)
        except Exception as e:
            raise DependencyFailedError(name, dependency) from e

    def _record_failure(self, definition: ServiceDefinition, error: BaseException) -> None:
        definition.mark_failed(error)
        self.events.emit(ServiceFailedEvent.from_error(definition.name, error))
        logger.error(f"Service failed: {definition.name}: {error}")

    def _check_declared(self, name: str) -> None:
        """Flag a running factory asking for a service outside its declared dependencies."""
        owner = _running_factory.get()
        if owner is None or owner.name not in self._factory_calls or name in owner.dependencies:
            return
        if self.strict_dependencies:
            raise UndeclaredDependencyError(owner.name, name)
        logger.warning(f"Service {owner.name} requested {name} without declaring it as a dependency")

    # ------------------------------------------------------------------
    # Bulk lifecycle
    # ------------------------------------------------------------------

    async def initialize_all(self) -> InitializationReport:
        """Initialize all non-lazy services concurrently.

        Every attempt is allowed to settle; a failing service never stops the
        others and this method never raises because of one. Inspect the
        returned report or ``get_all_states()`` to react to partial failure.

        Returns:
            InitializationReport with succeeded and failed service names
        """
        self._ensure_open()
        names = [definition.name for definition in self._services.values() if not definition.lazy]
        logger.info(f"Initializing {len(names)} core services...")

        start_time = time.perf_counter()
        report = InitializationReport(total=len(names))

        results = await asyncio.gather(*(self.get(name) for name in names), return_exceptions=True)
        for name, result in zip(names, results, strict=True):
            if isinstance(result, BaseException):
                report.failed[str(name)] = str(result) or type(result).__name__
            else:
                report.succeeded.append(str(name))

        report.execution_time_ms = (time.perf_counter() - start_time) * 1000
        logger.info(f"Services initialized: {len(report.succeeded)}/{len(names)} succeeded")
        if report.failed:
            logger.error(f"{len(report.failed)} service(s) failed to initialize")
            for name, message in report.failed.items():
                logger.error(f"   - {name}: {message}")

        self.events.emit(
            AllServicesAttemptedEvent(total=len(names), succeeded=len(report.succeeded), failed=len(report.failed))
        )
        return report

    async def shutdown(self, timeout: float | None = None) -> ShutdownReport:
        """Shut down every constructed service, last registered first.

        In-flight initializations are allowed to settle first; any still
        running after ``timeout`` seconds are cancelled. A service whose
        ``shutdown()`` raises is logged and recorded, and the sweep continues.
        Afterwards the registry is cleared and the container is closed for good.

        Args:
            timeout: Seconds to wait for in-flight initializations (None waits indefinitely)

        Returns:
            ShutdownReport listing stopped, failed and abandoned services
        """
        if self._closed:
            logger.debug("Service container already shut down")
            return ShutdownReport()

        logger.info("Shutting down services...")
        start_time = time.perf_counter()
        self._closed = True
        report = ShutdownReport()

        if self._in_flight:
            report.abandoned = await self._settle_in_flight(timeout)
        await self.events.drain()

        for definition in reversed(list(self._services.values())):
            if definition.state != ServiceState.READY:
                continue
            shutdown = getattr(definition.instance, "shutdown", None)
            if not callable(shutdown):
                continue

            try:
                logger.debug(f"Shutting down: {definition.name}")
                result = shutdown()
                if inspect.isawaitable(result):
                    await result
                report.stopped.append(str(definition.name))
            except Exception as e:
                logger.error(f"Failed to shutdown {definition.name}: {e}")
                report.failed[str(definition.name)] = str(e) or type(e).__name__

        self._services.clear()
        self._in_flight.clear()

        report.execution_time_ms = (time.perf_counter() - start_time) * 1000
        logger.info("All services shutdown")
        return report

    async def _settle_in_flight(self, timeout: float | None) -> list[str]:
        """Wait for running initializations, cancelling stragglers. Returns the cancelled names."""
        tasks = {task: name for name, task in self._in_flight.items()}
        logger.info(f"Waiting for {len(tasks)} in-flight initialization(s)")

        done, pending = await asyncio.wait(tasks, timeout=timeout)
        for task in done:
            if not task.cancelled():
                task.exception()  # retrieved; the failure was already recorded

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(f"Cancelled initialization of: {', '.join(tasks[task] for task in pending)}")
        return [str(tasks[task]) for task in pending]

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_state(self, name: str) -> ServiceState | None:
        """Get a service's state, or None if it is not registered."""
        definition = self._services.get(name)
        return definition.state if definition else None

    def get_all_states(self) -> dict[str, ServiceState]:
        """Get the state of every registered service, in registration order."""
        return {name: definition.state for name, definition in self._services.items()}

    def is_ready(self, name: str) -> bool:
        """Check if a service is READY."""
        return self.get_state(name) == ServiceState.READY

    def get_nowait(self, name: str) -> Any:
        """Get an already initialized service without awaiting.

        Raises:
            ServiceNotReadyError: If the service is not READY yet
            UnknownServiceError: If the name was never registered
            Exception: The stored error if the service FAILED
        """
        definition = self._lookup(name)
        if definition.state == ServiceState.READY:
            return definition.instance
        if definition.state == ServiceState.FAILED and definition.error is not None:
            raise definition.error
        raise ServiceNotReadyError(name, definition.state)

    async def wait_for(self, name: str, timeout: float = 30.0, poll_interval: float = 0.1) -> Any:
        """Wait for a service someone else is initializing to become READY.

        Unlike ``get()`` this never starts initialization; it polls the
        service's state.

        Args:
            name: Registered service name
            timeout: Seconds to wait before giving up
            poll_interval: Seconds between state checks

        Returns:
            The service instance

        Raises:
            ServiceNotReadyError: If the service is not READY within the timeout
            Exception: The stored error if the service FAILED while waiting
        """
        self._lookup(name)
        async for attempt in AsyncRetrying(
            stop=stop_after_delay(timeout),
            wait=wait_fixed(poll_interval),
            retry=retry_if_exception_type(ServiceNotReadyError),
            reraise=True,
        ):
            with attempt:
                instance = self.get_nowait(name)
        return instance

    def status(self, name: str) -> ServiceStatus:
        """Snapshot of one registered service.

        Raises:
            UnknownServiceError: If the name was never registered
        """
        return self._status(self._lookup(name))

    def describe(self) -> list[ServiceStatus]:
        """Snapshot of every registered service for health reporting."""
        return [self._status(definition) for definition in self._services.values()]

    @staticmethod
    def _status(definition: ServiceDefinition) -> ServiceStatus:
        error = definition.error
        return ServiceStatus(
            name=str(definition.name),
            state=definition.state,
            dependencies=[str(dependency) for dependency in definition.dependencies],
            lazy=definition.lazy,
            error=str(error) if error is not None else None,
            error_type=type(error).__name__ if error is not None else None,
        )

    def dependency_graph(self) -> dict[str, tuple[str, ...]]:
        """Declared dependencies of every registered service."""
        return {name: definition.dependencies for name, definition in self._services.items()}

    @property
    def names(self) -> list[str]:
        """Registered service names in registration order."""
        return list(self._services)

    @property
    def closed(self) -> bool:
        """True once ``shutdown()`` has started."""
        return self._closed

    def _lookup(self, name: str) -> ServiceDefinition:
        self._ensure_open()
        definition = self._services.get(name)
        if definition is None:
            raise UnknownServiceError(name)
        return definition

    def _ensure_open(self) -> None:
        if self._closed:
            raise ContainerClosedError()

    def __contains__(self, name: object) -> bool:
        return name in self._services

    def __len__(self) -> int:
        return len(self._services)

    def __repr__(self) -> str:
        """Detailed representation of the container."""
        return f"ServiceContainer(services={list(self._services)}, closed={self._closed})"
