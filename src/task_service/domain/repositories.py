from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar

from src.task_service.domain.events.task_event import (
    TaskCompletedEvent,
    TaskCreatedEvent,
    TaskDeletedEvent,
    TaskUpdatedEvent,
)
from src.task_service.domain.models.task import Task
from src.task_service.domain.models.task_filter import TaskFilter

T = TypeVar("T")


class TaskRepository(Protocol):
    """Repository contract for persisting task records."""

    async def create(self, task: Task) -> Task:
        """Persist a new task and fill in its generated id and timestamps."""

    async def get_by_id(self, task_id: int) -> Task:
        """Fetch a task or raise ``TaskNotFoundError``."""

    async def list_tasks(self, task_filter: TaskFilter) -> list[Task]:
        """Return tasks matching every present filter field, newest first."""

    async def update(self, task: Task) -> None:
        """Overwrite the stored task or raise ``TaskNotFoundError``."""

    async def delete(self, task_id: int) -> None:
        """Remove the task permanently or raise ``TaskNotFoundError``."""


class TransactionManager(Protocol):
    """Runs a unit of work inside a single database transaction."""

    async def within_transaction(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Commit when ``fn`` returns, roll back and re-raise when it raises."""


class TaskEventPublisher(Protocol):
    """Best-effort delivery of task lifecycle events to the message topic."""

    async def publish_task_created(self, event: TaskCreatedEvent) -> None: ...

    async def publish_task_updated(self, event: TaskUpdatedEvent) -> None: ...

    async def publish_task_completed(self, event: TaskCompletedEvent) -> None: ...

    async def publish_task_deleted(self, event: TaskDeletedEvent) -> None: ...
