"""Application services and the bootstrap that wires them into the service container."""

from .bootstrap import build_container, initialize_services, register_services, shutdown_services

__all__ = [
    "build_container",
    "initialize_services",
    "register_services",
    "shutdown_services",
]
