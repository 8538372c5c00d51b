"""Global exception handlers for the FastAPI application.

Container errors that escape a request handler are converted into proper
HTTP responses instead of a generic 500.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from community_server.container import ContainerError, ServiceNotReadyError, UnknownServiceError


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance
    """

    @app.exception_handler(UnknownServiceError)
    async def unknown_service_handler(_request: Request, exc: UnknownServiceError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(ServiceNotReadyError)
    async def service_not_ready_handler(_request: Request, exc: ServiceNotReadyError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": str(exc), "service": str(exc.name), "state": exc.state},
        )

    @app.exception_handler(ContainerError)
    async def container_error_handler(_request: Request, exc: ContainerError) -> JSONResponse:
        logger.error(f"Service container error while handling request: {exc}")
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": str(exc)})

    logger.debug("Registered exception handlers")
