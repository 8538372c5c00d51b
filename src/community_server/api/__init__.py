"""HTTP API routers."""

from .health_check import router as health_router
from .ping import router as ping_router

__all__ = ["health_router", "ping_router"]
