"""Core Event Bus Components.

Exception hierarchy shared by the event bus.

- **EventBusError**: Base exception for all event bus related errors
- **HandlerRegistrationError**: Raised when handler registration fails
- **EventEmissionError**: Raised when event emission fails
"""


class EventBusError(Exception):
    """Base exception for all event bus related errors.

    Use this for catching any event bus related error:
        ```python
        try:
            bus.on(ServiceReadyEvent, handler)
        except EventBusError as e:
            logger.error(f"Event bus error: {e}")
        ```
    """


class HandlerRegistrationError(EventBusError):
    """Raised when handler registration fails.

    This occurs when:
    - The event type is not a Pydantic BaseModel subclass
    - The handler is not callable
    """


class EventEmissionError(EventBusError):
    """Raised when an emitted event is not a Pydantic BaseModel instance."""
