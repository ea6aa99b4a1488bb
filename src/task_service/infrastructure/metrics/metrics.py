from __future__ import annotations

import asyncio
import logging

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server

logger = logging.getLogger(__name__)


class Metrics:
    """
    Process-wide Prometheus instruments bound to their own registry.

    Construct once at startup and hand it to whoever records measurements; nothing
    here touches the library's global default registry.
    """

    name = "metrics"

    def __init__(
        self,
        app_name: str,
        app_version: str,
        *,
        enabled: bool = True,
        port: int = 9090,
        registry: CollectorRegistry | None = None,
    ) -> None:
        self._enabled = enabled
        self._port = port
        self._registry = registry or CollectorRegistry()
        self._server = None
        self._thread = None

        self.http_requests_total = Counter(
            "http_requests_total",
            "Total number of HTTP requests.",
            ["method", "route", "status"],
            registry=self._registry,
        )
        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request latency in seconds.",
            ["method", "route"],
            registry=self._registry,
        )
        self.http_requests_in_flight = Gauge(
            "http_requests_in_flight",
            "HTTP requests currently being served.",
            registry=self._registry,
        )
        self.tasks_created_total = Counter(
            "tasks_created_total", "Tasks created.", registry=self._registry
        )
        self.tasks_completed_total = Counter(
            "tasks_completed_total", "Tasks completed.", registry=self._registry
        )
        self.tasks_deleted_total = Counter(
            "tasks_deleted_total", "Tasks deleted.", registry=self._registry
        )
        app_info = Gauge(
            "app_info",
            "Application build information.",
            ["name", "version"],
            registry=self._registry,
        )
        app_info.labels(name=app_name, version=app_version).set(1)

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_http_request(self, method: str, route: str, status: int, duration: float) -> None:
        self.http_requests_total.labels(method=method, route=route, status=str(status)).inc()
        self.http_request_duration_seconds.labels(method=method, route=route).observe(duration)

    def task_created(self) -> None:
        self.tasks_created_total.inc()

    def task_completed(self) -> None:
        self.tasks_completed_total.inc()

    def task_deleted(self) -> None:
        self.tasks_deleted_total.inc()

    async def start(self) -> None:
        if not self._enabled:
            logger.info("Metrics endpoint disabled")
            return
        self._server, self._thread = await asyncio.to_thread(
            start_http_server, self._port, registry=self._registry
        )
        logger.info("Metrics endpoint listening", extra={"port": self._port})

    async def stop(self) -> None:
        if self._server is None:
            return
        await asyncio.to_thread(self._server.shutdown)
        self._server.server_close()
        self._server = None
        self._thread = None
