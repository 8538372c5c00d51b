"""Health check API endpoints."""

from fastapi import APIRouter, Depends, Response, status
from loguru import logger
from pydantic import BaseModel

from community_server.api.dependencies import get_container
from community_server.container import ServiceContainer, ServiceState, ServiceStatus
from community_server.utils.version import VersionInfo, get_version

router = APIRouter(tags=["System"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version_info: VersionInfo
    services: list[ServiceStatus]

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "degraded",
                "version_info": {"version": "0.1.0", "distribution": "community-server", "is_installed": True},
                "services": [
                    {"name": "database", "state": "ready", "dependencies": [], "lazy": False},
                    {
                        "name": "http.server",
                        "state": "failed",
                        "dependencies": ["http.app"],
                        "lazy": False,
                        "error": "address already in use",
                        "error_type": "OSError",
                    },
                ],
            }
        }
    }


container_dependency = Depends(get_container)


@router.get("/health-check", response_model=HealthResponse)
async def health_check(response: Response, container: ServiceContainer = container_dependency) -> HealthResponse:
    """
    Health check endpoint.

    Reports the lifecycle state of every registered service. Responds with
    503 when any service has failed.
    """
    logger.debug("Health check requested")

    services = container.describe()
    degraded = any(service.state == ServiceState.FAILED for service in services)
    if degraded:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status="degraded" if degraded else "ok",
        version_info=get_version(),
        services=services,
    )


@router.get("/health-check/services/{name}", response_model=ServiceStatus)
async def service_health(name: str, container: ServiceContainer = container_dependency) -> ServiceStatus:
    """Lifecycle state of a single service (404 if it is not registered)."""
    return container.status(name)
