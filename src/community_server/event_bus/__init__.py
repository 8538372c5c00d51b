"""Event Bus System for Decoupled Component Communication.

A small async publish/subscribe bus keyed by Pydantic event models. The
service container publishes its lifecycle notifications through it, and any
logger or metrics consumer can subscribe without the container knowing.

```python
from community_server.event_bus import EventBus
from community_server.container import ServiceReadyEvent

bus = EventBus()
bus.on(ServiceReadyEvent, lambda event: print(f"{event.name} is ready"))
```

See `bus.py` for the API reference.
"""

from .bus import EventBus
from .core import EventBusError, EventEmissionError, HandlerRegistrationError

__all__ = [
    "EventBus",
    "EventBusError",
    "EventEmissionError",
    "HandlerRegistrationError",
]
