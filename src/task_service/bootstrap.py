from __future__ import annotations

import asyncio
import logging
import signal

from src.setup.api_config import get_api_settings
from src.setup.app_config import Container, build_container, configure_di
from src.setup.logging_config import configure_logging
from src.task_service.lifecycle import LifecycleError, LifecycleManager
from src.task_service.presentation.main import create_app
from src.task_service.presentation.server import HttpServer

logger = logging.getLogger(__name__)


def build_lifecycle(container: Container, http_server: HttpServer) -> LifecycleManager:
    """Register components in dependency order; shutdown runs it backwards."""
    lifecycle = LifecycleManager()
    lifecycle.register(container.metrics)
    lifecycle.register(container.orm)
    if container.streams_client is not None:
        lifecycle.register(container.streams_client)
    if container.consumer is not None:
        lifecycle.register(container.consumer)
    lifecycle.register(http_server)
    return lifecycle


async def run(container: Container | None = None) -> None:
    container = container or build_container()
    configure_di(container)
    settings = container.api_settings

    http_server = HttpServer(
        create_app(settings, container.metrics),
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL,
        shutdown_timeout=settings.SHUTDOWN_TIMEOUT_SEC,
    )
    lifecycle = build_lifecycle(container, http_server)

    stop_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, stop_requested.set)

    logger.info(
        "Starting %s v%s in %s mode",
        settings.APP_NAME,
        settings.APP_VERSION,
        settings.APP_ENVIRONMENT,
    )
    try:
        await lifecycle.start_all()
        logger.info(
            "Application started",
            extra={"components": lifecycle.names, "http": f"http://{settings.HOST}:{settings.PORT}"},
        )
        waiter = asyncio.create_task(stop_requested.wait())
        await asyncio.wait({waiter, http_server.serving}, return_when=asyncio.FIRST_COMPLETED)
        waiter.cancel()
    finally:
        logger.info("Shutting down gracefully")
        await lifecycle.stop_all(timeout=settings.SHUTDOWN_TIMEOUT_SEC)
    logger.info("Server stopped")


def main() -> None:
    configure_logging(get_api_settings().LOG_LEVEL)
    try:
        asyncio.run(run())
    except LifecycleError as exc:
        logger.error("Lifecycle failure: %s", exc, exc_info=exc.__cause__)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
