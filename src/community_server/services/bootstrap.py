"""Service bootstrap.

This module defines the process's service graph and drives startup and
shutdown through the service container. It is shared by the ``run`` and
``check`` CLI commands.

Services are initialized concurrently wherever their declared dependencies
allow it.
"""

from loguru import logger

from community_server.app import create_app
from community_server.constants import ServiceName
from community_server.container import (
    InitializationReport,
    ServiceContainer,
    ServiceState,
    ShutdownReport,
    missing_dependencies,
)
from community_server.services.database import create_database
from community_server.services.http import create_http_server
from community_server.settings import Settings


def build_container(settings: Settings) -> ServiceContainer:
    """Create an empty container configured from settings."""
    return ServiceContainer(
        strict_dependencies=settings.strict_dependencies,
        retry_failed=settings.retry_failed_services,
    )


def register_services(container: ServiceContainer, settings: Settings) -> None:
    """Register all services with the container.

    Args:
        container: Container to register services in
        settings: Application settings captured by the factories
    """
    # Core infrastructure (no dependencies)
    container.register(ServiceName.DATABASE, lambda _: create_database(settings))
    container.register(ServiceName.HTTP_APP, create_app)

    async def http_server_factory(c: ServiceContainer):
        app = await c.get(ServiceName.HTTP_APP)
        return create_http_server(app, settings)

    container.register(ServiceName.HTTP_SERVER, http_server_factory, dependencies=[ServiceName.HTTP_APP])

    for service, unknown in missing_dependencies(container.dependency_graph()).items():
        logger.warning(f"Service {service} declares unregistered dependencies: {', '.join(unknown)}")

    logger.info(f"Registered {len(container)} services")


async def initialize_services(container: ServiceContainer, settings: Settings) -> InitializationReport:
    """Initialize all non-lazy services.

    The container tolerates partial failure; this routine decides which
    failures are fatal for the process.

    Raises:
        SystemExit: If any service listed in ``settings.critical_services`` failed
    """
    logger.info("Starting service initialization...")

    report = await container.initialize_all()

    states = container.get_all_states()
    ready = sum(1 for state in states.values() if state == ServiceState.READY)
    logger.info(f"Service initialization complete: {ready}/{len(states)} ready")

    failed_critical = [name for name in settings.critical_services if container.get_state(name) == ServiceState.FAILED]
    if failed_critical:
        logger.error(f"Critical service(s) failed: {', '.join(failed_critical)}")
        raise SystemExit(1)

    return report


async def shutdown_services(container: ServiceContainer, settings: Settings) -> ShutdownReport:
    """Graceful shutdown of every constructed service."""
    return await container.shutdown(timeout=settings.shutdown_timeout)
