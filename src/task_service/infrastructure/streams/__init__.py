from src.task_service.infrastructure.streams.client import StreamsClient
from src.task_service.infrastructure.streams.consumer import StreamsConsumer
from src.task_service.infrastructure.streams.publisher import StreamsEventPublisher
from src.task_service.infrastructure.streams.router import EventRouter

__all__ = [
    "StreamsClient",
    "StreamsEventPublisher",
    "StreamsConsumer",
    "EventRouter",
]
