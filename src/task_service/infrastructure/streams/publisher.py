from __future__ import annotations

import logging

from redis.exceptions import RedisError

from src.task_service.domain.events.task_event import (
    EventType,
    TaskCompletedEvent,
    TaskCreatedEvent,
    TaskDeletedEvent,
    TaskEvent,
    TaskEventPayload,
    TaskUpdatedEvent,
)
from src.task_service.domain.exceptions import EventPublishError
from src.task_service.domain.repositories import TaskEventPublisher
from src.task_service.infrastructure.request_context import get_request_id, get_trace_id
from src.task_service.infrastructure.streams.client import StreamsClient
from src.task_service.infrastructure.streams.serializers import encode_event

logger = logging.getLogger(__name__)


class StreamsEventPublisher(TaskEventPublisher):
    """
    Writes task events to a Redis stream. With ``client=None`` the publisher is
    disabled and every call returns without doing anything.
    """

    def __init__(
        self,
        client: StreamsClient | None,
        stream: str,
        *,
        maxlen: int | None = None,
        approximate: bool = True,
    ) -> None:
        self._client = client
        self._stream = stream
        self._maxlen = maxlen
        self._approximate = approximate

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def publish_task_created(self, event: TaskCreatedEvent) -> None:
        await self._publish(EventType.TASK_CREATED, event)

    async def publish_task_updated(self, event: TaskUpdatedEvent) -> None:
        await self._publish(EventType.TASK_UPDATED, event)

    async def publish_task_completed(self, event: TaskCompletedEvent) -> None:
        await self._publish(EventType.TASK_COMPLETED, event)

    async def publish_task_deleted(self, event: TaskDeletedEvent) -> None:
        await self._publish(EventType.TASK_DELETED, event)

    async def _publish(self, event_type: EventType, payload: TaskEventPayload) -> None:
        if self._client is None:
            return

        fields = encode_event(
            payload.key,
            TaskEvent.wrap(event_type, payload),
            trace_id=get_trace_id(),
            request_id=get_request_id(),
        )
        try:
            entry_id = await self._client.append(
                self._stream,
                fields,
                maxlen=self._maxlen,
                approximate=self._approximate,
            )
        except RedisError as exc:
            raise EventPublishError(
                f"failed to publish {event_type.value} for {payload.key}"
            ) from exc

        logger.debug(
            "Event published",
            extra={"stream": self._stream, "event_type": event_type.value, "entry_id": entry_id},
        )
