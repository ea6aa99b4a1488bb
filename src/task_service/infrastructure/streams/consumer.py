from __future__ import annotations

import asyncio
import contextlib
import logging
import socket
from typing import Any
from uuid import uuid4

from redis.exceptions import RedisError

from src.task_service.infrastructure.request_context import set_request_id, set_trace_id
from src.task_service.infrastructure.streams.client import StreamsClient
from src.task_service.infrastructure.streams.router import EventRouter
from src.task_service.infrastructure.streams.serializers import decode_event

logger = logging.getLogger(__name__)

STREAM_TASK_EVENTS = "task-events"
GROUP_API = "task-service"
_RETRY_DELAY_SEC = 1.0


def consumer_name() -> str:
    return f"{socket.gethostname()}-{uuid4().hex[:8]}"


class StreamsConsumer:
    """Consumer-group reader that routes decoded task events to their handlers."""

    name = "stream-consumer"

    def __init__(
        self,
        client: StreamsClient,
        *,
        stream: str,
        group: str,
        consumer_name: str,
        router: EventRouter,
        block_ms: int = 5000,
        count: int = 10,
    ) -> None:
        self._client = client
        self._stream = stream
        self._group = group
        self._consumer_name = consumer_name
        self._router = router
        self._block_ms = block_ms
        self._count = count
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        await self._client.ensure_group(self._stream, self._group)
        self._task = asyncio.create_task(self._run(), name=f"{self.name}:{self._stream}")
        logger.info(
            "Stream consumer started",
            extra={"stream": self._stream, "group": self._group, "consumer": self._consumer_name},
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Stream consumer stopped", extra={"stream": self._stream})

    async def _run(self) -> None:
        while True:
            try:
                entries = await self._client.read_group(
                    self._stream,
                    self._group,
                    self._consumer_name,
                    count=self._count,
                    block_ms=self._block_ms,
                )
            except RedisError as exc:
                logger.warning("Failed to read from stream", extra={"error": str(exc)})
                await asyncio.sleep(_RETRY_DELAY_SEC)
                continue

            for entry_id, fields in entries:
                await self.process_entry(entry_id, fields)

    async def process_entry(self, entry_id: str, fields: dict[str, Any]) -> None:
        """Decode, dispatch and acknowledge one entry; failures are logged and never raised."""
        try:
            event, headers = decode_event(fields)
        except ValueError as exc:
            logger.error(
                "Dropping undecodable stream entry",
                extra={"entry_id": entry_id, "error": str(exc)},
            )
        else:
            set_trace_id(headers["trace_id"])
            set_request_id(headers["request_id"])
            try:
                await self._router.dispatch(event)
            except Exception:
                logger.exception(
                    "Event handler failed",
                    extra={"entry_id": entry_id, "event_type": event.event_type.value},
                )
        try:
            await self._client.ack(self._stream, self._group, entry_id)
        except RedisError as exc:
            # The entry stays pending for the group and is not redelivered to this reader.
            logger.warning(
                "Failed to acknowledge stream entry",
                extra={"entry_id": entry_id, "error": str(exc)},
            )
