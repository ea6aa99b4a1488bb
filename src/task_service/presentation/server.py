from __future__ import annotations

import asyncio
import logging

import uvicorn
from fastapi import FastAPI

logger = logging.getLogger(__name__)


class HttpServer:
    """Runs the FastAPI app under uvicorn as a background task of the current loop."""

    name = "http-server"

    def __init__(
        self,
        app: FastAPI,
        *,
        host: str,
        port: int,
        log_level: str = "info",
        shutdown_timeout: float | None = None,
    ) -> None:
        self._config = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level=log_level.lower(),
            log_config=None,
            timeout_graceful_shutdown=shutdown_timeout,
        )
        self._server = uvicorn.Server(self._config)
        self._task: asyncio.Task[None] | None = None

    @property
    def serving(self) -> asyncio.Task[None] | None:
        """The serve task; it finishes when uvicorn exits on its own."""
        return self._task

    async def start(self) -> None:
        self._task = asyncio.create_task(self._server.serve(), name=self.name)
        # Returns only once uvicorn accepts connections.
        while not self._server.started:
            if self._task.done():
                raise RuntimeError("HTTP server exited during startup")
            await asyncio.sleep(0.05)
        logger.info("HTTP server listening", extra={"host": self._config.host, "port": self._config.port})

    async def stop(self) -> None:
        if self._task is None:
            return
        logger.info("Shutting down HTTP server")
        self._server.should_exit = True
        try:
            await self._task
        finally:
            self._task = None
