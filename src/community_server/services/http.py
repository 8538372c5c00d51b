"""HTTP server service.

Runs the FastAPI application under uvicorn inside the current event loop so
the service container can start and stop it alongside every other service.
"""

import asyncio

import uvicorn
from fastapi import FastAPI
from loguru import logger

from community_server.settings import Settings


class HttpServer:
    """uvicorn server bound to the configured host and port."""

    def __init__(self, app: FastAPI, host: str, port: int, log_level: str = "info"):
        self.host = host
        self.port = port
        self.server = uvicorn.Server(
            uvicorn.Config(
                app,
                host=host,
                port=port,
                log_level=log_level.lower(),
                log_config=None,  # logging is routed through loguru
                lifespan="off",  # startup and shutdown belong to the service container
            )
        )
        self._task: asyncio.Task[None] | None = None

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self, poll_interval: float = 0.05) -> None:
        """Start serving in a background task and wait until the socket is bound.

        Raises:
            RuntimeError: If the server stops before it finished starting
        """
        if self._task is not None:
            raise RuntimeError("HTTP server already started")

        self._task = asyncio.create_task(self.server.serve(), name="http-server")
        while not self.server.started:
            if self._task.done():
                self._task.result()
                raise RuntimeError("HTTP server stopped before it started")
            await asyncio.sleep(poll_interval)
        logger.info(f"Server running at: {self.url}")

    async def wait(self) -> None:
        """Block until the server exits (e.g. after SIGINT / SIGTERM)."""
        if self._task is not None:
            await asyncio.wait({self._task})

    async def shutdown(self) -> None:
        """Ask uvicorn to exit and wait for open connections to finish."""
        if not self.running:
            return
        logger.info("Stopping HTTP server")
        self.server.should_exit = True
        await asyncio.wait({self._task})  # type: ignore[arg-type]


def create_http_server(app: FastAPI, settings: Settings) -> HttpServer:
    """Build (but do not start) the HTTP server for the application."""
    logger.debug("Creating HTTP server...")
    return HttpServer(app, settings.host, settings.port, settings.log_level)
