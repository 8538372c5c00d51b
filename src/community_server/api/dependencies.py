"""API dependencies for FastAPI endpoints."""

from fastapi import Request

from community_server.container import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the service container the app was built with.

    Example:
        ```python
        @router.get("/endpoint")
        async def endpoint(container: ServiceContainer = Depends(get_container)):
            database = await container.get(ServiceName.DATABASE)
        ```
    """
    return request.app.state.container
