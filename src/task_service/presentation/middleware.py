from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from uuid import uuid4

from fastapi import FastAPI, Request, Response, status
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from src.task_service.infrastructure.metrics.metrics import Metrics
from src.task_service.infrastructure.request_context import set_request_id, set_trace_id
from src.task_service.presentation.errors import INTERNAL_ERROR_MESSAGE, error_response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
TRACE_ID_HEADER = "X-Trace-ID"

CallNext = Callable[[Request], Awaitable[Response]]


async def recovery_middleware(request: Request, call_next: CallNext) -> Response:
    """Turn any unhandled exception into a generic 500 instead of dropping the connection."""
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled error while serving request", extra={"path": request.url.path})
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


async def correlation_middleware(request: Request, call_next: CallNext) -> Response:
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
    trace_id = request.headers.get(TRACE_ID_HEADER) or uuid4().hex
    set_request_id(request_id)
    set_trace_id(trace_id)

    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    response.headers[TRACE_ID_HEADER] = trace_id
    return response


async def logging_middleware(request: Request, call_next: CallNext) -> Response:
    start = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s - %d",
        request.method,
        request.url.path,
        response.status_code,
        extra={"duration_ms": round((time.perf_counter() - start) * 1000, 2)},
    )
    return response


def metrics_middleware(metrics: Metrics) -> Callable[[Request, CallNext], Awaitable[Response]]:
    async def record(request: Request, call_next: CallNext) -> Response:
        start = time.perf_counter()
        metrics.http_requests_in_flight.inc()
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            metrics.http_requests_in_flight.dec()
            route = getattr(request.scope.get("route"), "path", "unmatched")
            metrics.record_http_request(
                request.method, route, status_code, time.perf_counter() - start
            )

    return record


class TimeoutMiddleware:
    """
    Cancels the request task once ``timeout`` seconds pass and answers 504.

    Runs as plain ASGI so the cancellation reaches the endpoint and any open
    transaction rolls back. If the response has already started it is left cut short.
    """

    def __init__(self, app: ASGIApp, timeout: float) -> None:
        self.app = app
        self.timeout = timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_tracking(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            async with asyncio.timeout(self.timeout):
                await self.app(scope, receive, send_tracking)
        except TimeoutError:
            logger.warning(
                "Request timed out",
                extra={"path": scope.get("path"), "timeout": self.timeout},
            )
            if response_started:
                return
            response = error_response(status.HTTP_504_GATEWAY_TIMEOUT, "request timed out")
            await response(scope, receive, send)


def install_middleware(
    app: FastAPI,
    *,
    metrics: Metrics | None = None,
    request_timeout: float | None = None,
) -> None:
    """Register the middleware chain; the last one added is the outermost."""
    if request_timeout:
        app.add_middleware(TimeoutMiddleware, timeout=request_timeout)
    if metrics is not None:
        app.middleware("http")(metrics_middleware(metrics))
    app.middleware("http")(logging_middleware)
    app.middleware("http")(correlation_middleware)
    app.middleware("http")(recovery_middleware)
