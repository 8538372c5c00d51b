"""Event Bus Implementation.

This module provides the EventBus class that handles event registration
and emission. It is used by the service container as its notification side
channel, but has no dependency on the container.

## Key Features

- **Sync or Async Handlers**: Plain functions and coroutine functions are both accepted
- **Concurrent Delivery**: All handlers for an event run concurrently
- **Error Isolation**: Handler failures are logged and returned, never raised to the emitter
- **Tracked Fire-and-Forget**: ``emit()`` keeps a reference to every delivery task
  so ``drain()`` can wait for outstanding deliveries

## Usage

```python
from pydantic import BaseModel

class ServerStarted(BaseModel):
    port: int

async def announce(event: ServerStarted) -> None:
    logger.info(f"Listening on {event.port}")

bus = EventBus()
bus.on(ServerStarted, announce)

bus.emit(ServerStarted(port=8080))  # returns immediately
await bus.drain()  # wait for handlers

results = await bus.emit_and_wait(ServerStarted(port=8080))
```

"""

import asyncio
import inspect
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger
from pydantic import BaseModel

from .core import EventEmissionError, HandlerRegistrationError

T_Event = TypeVar("T_Event", bound=BaseModel)
T_Handler = Callable[..., Any]


class EventBus:
    """Async publish/subscribe bus keyed by Pydantic event type.

    Example:
        ```python
        bus = EventBus()
        bus.on(ServiceReadyEvent, log_ready)
        bus.emit(ServiceReadyEvent(name="database"))
        ```
    """

    def __init__(self) -> None:
        """Initialize a new EventBus instance with no handlers."""
        self._handlers: dict[type[BaseModel], list[T_Handler]] = {}
        self._pending: set[asyncio.Task[list[Any]]] = set()

    def on(self, event_type: type[T_Event], handler: T_Handler) -> None:
        """Register a handler for an event type.

        Args:
            event_type: The Pydantic BaseModel class to handle
            handler: Callable receiving the event; may return an awaitable

        Raises:
            HandlerRegistrationError: If event_type is not BaseModel or handler is not callable
        """
        if not (isinstance(event_type, type) and issubclass(event_type, BaseModel)):
            raise HandlerRegistrationError(f"Event type must be a Pydantic BaseModel subclass, got: {event_type}")

        if not callable(handler):
            raise HandlerRegistrationError(f"Handler must be callable: {handler}")

        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Registered handler for {event_type.__name__}: {handler}")

    def remove_handler(self, event_type: type[T_Event], handler: T_Handler) -> bool:
        """Remove a specific handler for an event type."""
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(f"Removed handler for {event_type.__name__}: {handler}")
                return True
            except ValueError:
                pass
        return False

    def clear_handlers(self, event_type: type[T_Event] | None = None) -> None:
        """Clear handlers for a specific event type or all events."""
        if event_type is None:
            self._handlers.clear()
            logger.debug("Cleared all handlers")
        elif event_type in self._handlers:
            del self._handlers[event_type]
            logger.debug(f"Cleared handlers for {event_type.__name__}")

    def get_handler_count(self, event_type: type[T_Event]) -> int:
        """Get the number of handlers registered for an event type."""
        return len(self._handlers.get(event_type, []))

    def get_registered_events(self) -> list[type[BaseModel]]:
        """Get all event types that have registered handlers."""
        return list(self._handlers.keys())

    @property
    def pending_count(self) -> int:
        """Number of fire-and-forget deliveries still running."""
        return len(self._pending)

    def emit(self, event: T_Event) -> asyncio.Task[list[Any]] | None:
        """Emit an event without waiting for handlers (fire-and-forget).

        Must be called from a running event loop. The delivery task is
        tracked until it finishes so it cannot be garbage collected early.

        Args:
            event: The event to emit

        Returns:
            The delivery task, or None if no handler is registered for the event type
        """
        self._validate(event)
        if not self._handlers.get(type(event)):
            logger.trace(f"No handlers registered for {type(event).__name__}")
            return None

        task = asyncio.create_task(self.emit_and_wait(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait until every fire-and-forget delivery has finished.

        Deliveries started by handlers while draining are waited for as well.
        """
        while self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def emit_and_wait(self, event: T_Event) -> list[Any]:
        """Emit an event and wait for all handlers to complete.

        Args:
            event: The event instance to emit

        Returns:
            List of results from all handlers (exceptions included in place of results)

        Raises:
            EventEmissionError: If event is not a BaseModel instance
        """
        self._validate(event)

        event_type = type(event)
        # Snapshot so handlers registering handlers do not change this delivery
        handlers = list(self._handlers.get(event_type, []))

        if not handlers:
            logger.debug(f"No handlers registered for {event_type.__name__}")
            return []

        logger.trace(f"Emitting {event_type.__name__} to {len(handlers)} handlers")
        results = await asyncio.gather(*(self._execute_handler(handler, event) for handler in handlers))

        failed = sum(1 for r in results if isinstance(r, Exception))
        if failed > 0:
            logger.warning(f"Event {event_type.__name__}: {len(results) - failed} successful, {failed} failed handlers")

        return list(results)

    @staticmethod
    def _validate(event: Any) -> None:
        if not isinstance(event, BaseModel):
            raise EventEmissionError(f"Event must be a BaseModel instance, got: {type(event).__name__}")

    async def _execute_handler(self, handler: T_Handler, event: BaseModel) -> Any:
        """Execute a single handler, returning its result or the exception it raised."""
        try:
            result = handler(event)
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as e:
            logger.error(f"Handler {handler} failed for {type(event).__name__}: {e}")
            return e
