from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable

from src.task_service.domain.events.task_event import EventType, TaskEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[TaskEvent], Awaitable[None]]


class EventRouter:
    """Fans a decoded event out to every handler subscribed to its type, in order."""

    def __init__(self) -> None:
        self._subscriptions: defaultdict[EventType, list[EventHandler]] = defaultdict(list)

    def register(self, event_type: EventType, handler: EventHandler) -> None:
        self._subscriptions[event_type].append(handler)

    def handlers(self, event_type: EventType) -> tuple[EventHandler, ...]:
        return tuple(self._subscriptions.get(event_type, ()))

    async def dispatch(self, event: TaskEvent) -> None:
        """Run the subscribed handlers; the first failure propagates to the caller."""
        subscribed = self.handlers(event.event_type)
        if not subscribed:
            logger.warning(
                "No handler registered for event type",
                extra={"event_type": event.event_type.value},
            )
            return
        for handler in subscribed:
            await handler(event)
