from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar, cast

import inject

from src.task_service.application.dtos import CreateTaskInput, UpdateTaskInput
from src.task_service.domain.events.task_event import (
    TaskCompletedEvent,
    TaskCreatedEvent,
    TaskDeletedEvent,
    TaskEventPayload,
    TaskUpdatedEvent,
)
from src.task_service.domain.exceptions import DomainError
from src.task_service.domain.models import Task, TaskFilter, TaskStatus
from src.task_service.domain.repositories import (
    TaskEventPublisher,
    TaskRepository,
    TransactionManager,
)
from src.task_service.infrastructure.metrics.metrics import Metrics

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=TaskEventPayload)


@contextmanager
def _rejections_logged(operation: str, task_id: int | None = None) -> Iterator[None]:
    try:
        yield
    except DomainError as exc:
        logger.error(
            "Task operation rejected",
            extra={"operation": operation, "task_id": task_id, "error": str(exc)},
        )
        raise


class TaskService:
    """
    Task use cases. Each one loads, mutates and persists a task inside a single
    transaction, then publishes the matching event once the transaction has
    committed. Event delivery is best-effort: a failed publish is logged and the
    operation still succeeds.
    """

    def __init__(
        self,
        repository: TaskRepository | None = None,
        tx_manager: TransactionManager | None = None,
        publisher: TaskEventPublisher | None = None,
        metrics: Metrics | None = None,
    ) -> None:
        self._repository = repository or cast(TaskRepository, inject.instance(TaskRepository))
        self._tx = tx_manager or cast(TransactionManager, inject.instance(TransactionManager))
        self._publisher = publisher or cast(
            TaskEventPublisher, inject.instance(TaskEventPublisher)
        )
        self._metrics = metrics

    async def create_task(self, data: CreateTaskInput) -> Task:
        """Create a pending task and return it with its id and timestamps filled in."""
        task = Task(
            name=data.name,
            description=data.description,
            priority=data.priority,
            created_by=data.created_by,
            status=TaskStatus.PENDING,
        )
        with _rejections_logged("create"):
            task.ensure_valid()
            task = await self._tx.within_transaction(lambda: self._repository.create(task))

        if self._metrics is not None:
            self._metrics.task_created()
        await self._publish(self._publisher.publish_task_created, TaskCreatedEvent.from_task(task))
        logger.info("Task created", extra={"task_id": task.id})
        return task

    async def get_task(self, task_id: int) -> Task:
        return await self._repository.get_by_id(task_id)

    async def list_tasks(self, task_filter: TaskFilter | None = None) -> list[Task]:
        """Return matching tasks, newest first; no match is an empty list."""
        task_filter = (task_filter or TaskFilter()).normalized()
        return list(await self._repository.list_tasks(task_filter))

    async def update_task(self, task_id: int, data: UpdateTaskInput) -> Task:
        """Apply the fields present in ``data``, re-validate and persist."""
        previous_status: TaskStatus | None = None

        async def unit_of_work() -> Task:
            nonlocal previous_status
            task = await self._repository.get_by_id(task_id)
            previous_status = task.status
            if data.name is not None:
                task.name = data.name
            if data.description is not None:
                task.description = data.description
            if data.priority is not None:
                task.priority = data.priority
            if data.status is not None:
                task.change_status(data.status)
            task.touch()
            task.ensure_valid()
            await self._repository.update(task)
            return task

        with _rejections_logged("update", task_id):
            task = await self._tx.within_transaction(unit_of_work)

        await self._publish(self._publisher.publish_task_updated, TaskUpdatedEvent.from_task(task))
        if task.is_completed() and previous_status != TaskStatus.COMPLETED:
            await self._completed(task)
        logger.info("Task updated", extra={"task_id": task_id})
        return task

    async def assign_task(self, task_id: int, user_id: int) -> Task:
        """Assign the task; a pending task moves to in progress."""

        async def unit_of_work() -> Task:
            task = await self._repository.get_by_id(task_id)
            task.assign(user_id)
            await self._repository.update(task)
            return task

        with _rejections_logged("assign", task_id):
            task = await self._tx.within_transaction(unit_of_work)

        await self._publish(self._publisher.publish_task_updated, TaskUpdatedEvent.from_task(task))
        logger.info("Task assigned", extra={"task_id": task_id, "user_id": user_id})
        return task

    async def complete_task(self, task_id: int) -> Task:
        async def unit_of_work() -> Task:
            task = await self._repository.get_by_id(task_id)
            task.complete()
            await self._repository.update(task)
            return task

        with _rejections_logged("complete", task_id):
            task = await self._tx.within_transaction(unit_of_work)

        await self._completed(task)
        logger.info("Task completed", extra={"task_id": task_id})
        return task

    async def cancel_task(self, task_id: int) -> Task:
        async def unit_of_work() -> Task:
            task = await self._repository.get_by_id(task_id)
            task.cancel()
            await self._repository.update(task)
            return task

        with _rejections_logged("cancel", task_id):
            task = await self._tx.within_transaction(unit_of_work)

        await self._publish(self._publisher.publish_task_updated, TaskUpdatedEvent.from_task(task))
        logger.info("Task cancelled", extra={"task_id": task_id})
        return task

    async def delete_task(self, task_id: int) -> None:
        """Delete permanently; a second delete of the same id raises ``TaskNotFoundError``."""
        with _rejections_logged("delete", task_id):
            await self._tx.within_transaction(lambda: self._repository.delete(task_id))

        if self._metrics is not None:
            self._metrics.task_deleted()
        await self._publish(self._publisher.publish_task_deleted, TaskDeletedEvent(task_id=task_id))
        logger.info("Task deleted", extra={"task_id": task_id})

    async def _completed(self, task: Task) -> None:
        if self._metrics is not None:
            self._metrics.task_completed()
        await self._publish(
            self._publisher.publish_task_completed, TaskCompletedEvent.from_task(task)
        )

    async def _publish(self, publish: Callable[[E], Awaitable[None]], event: E) -> None:
        try:
            await publish(event)
        except Exception as exc:
            logger.warning(
                "Failed to publish task event",
                extra={
                    "task_id": event.task_id,
                    "event": type(event).__name__,
                    "error": str(exc),
                },
            )
