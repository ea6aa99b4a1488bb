from pydantic import ConfigDict
from pydantic_settings import BaseSettings

from src.task_service.application.handlers import TaskEventHandler
from src.task_service.domain.events.task_event import EventType
from src.task_service.infrastructure.streams.client import StreamsClient
from src.task_service.infrastructure.streams.consumer import (
    GROUP_API,
    STREAM_TASK_EVENTS,
    StreamsConsumer,
    consumer_name,
)
from src.task_service.infrastructure.streams.publisher import StreamsEventPublisher
from src.task_service.infrastructure.streams.router import EventRouter


class StreamSettings(BaseSettings):
    """Configuration for Redis Streams publisher/consumer wiring."""
    STREAM_ENABLED: bool = False
    REDIS_URL: str = "redis://redis:6379/0"
    STREAM_NAME: str = STREAM_TASK_EVENTS
    STREAM_MAXLEN: int | None = 100_000
    STREAM_CONSUMER_ENABLED: bool = False
    GROUP_NAME: str = GROUP_API
    CONSUMER_NAME: str | None = None
    BLOCK_MS: int = 5000
    COUNT: int = 10

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_stream_settings() -> StreamSettings:
    return StreamSettings()


def build_streams_client(settings: StreamSettings) -> StreamsClient | None:
    """Return a client when streaming is enabled, otherwise ``None``."""
    if not settings.STREAM_ENABLED:
        return None
    return StreamsClient(settings.REDIS_URL)


def build_event_router(handler: TaskEventHandler | None = None) -> EventRouter:
    """Build an event router wired to the task event handler."""
    router = EventRouter()
    handler = handler or TaskEventHandler()
    router.register(EventType.TASK_CREATED, handler.handle_task_created)
    router.register(EventType.TASK_UPDATED, handler.handle_task_updated)
    router.register(EventType.TASK_COMPLETED, handler.handle_task_completed)
    router.register(EventType.TASK_DELETED, handler.handle_task_deleted)
    return router


def build_stream_publisher(
    settings: StreamSettings, client: StreamsClient | None
) -> StreamsEventPublisher:
    """Create the task event publisher; without a client it is a no-op."""
    return StreamsEventPublisher(client, settings.STREAM_NAME, maxlen=settings.STREAM_MAXLEN)


def build_stream_consumer(
    settings: StreamSettings, client: StreamsClient | None
) -> StreamsConsumer | None:
    """Create a streams consumer bound to the task event router, if enabled."""
    if client is None or not settings.STREAM_CONSUMER_ENABLED:
        return None
    name = settings.CONSUMER_NAME or consumer_name()
    return StreamsConsumer(
        client,
        stream=settings.STREAM_NAME,
        group=settings.GROUP_NAME,
        consumer_name=name,
        router=build_event_router(),
        block_ms=settings.BLOCK_MS,
        count=settings.COUNT,
    )
