"""FastAPI application factory."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from community_server.api import health_router, ping_router
from community_server.container import ServiceContainer
from community_server.exception_handlers import register_exception_handlers
from community_server.utils.version import get_version


def create_app(container: ServiceContainer) -> FastAPI:
    """Create the FastAPI application bound to a service container.

    Startup and shutdown are driven by the container, not by a FastAPI
    lifespan; the app only reads the container at request time.

    Args:
        container: The process's service container, exposed as ``app.state.container``

    Returns:
        The configured FastAPI application
    """
    logger.debug("Creating FastAPI application...")
    app = FastAPI(
        title="Community server",
        description="Minecraft community platform backend",
        version=get_version().version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, replace with specific origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # System endpoints - always enabled
    app.include_router(health_router, prefix="")
    app.include_router(ping_router, prefix="")

    return app
