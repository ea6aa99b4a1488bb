from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError

from src.task_service.domain.exceptions import PersistenceError, TaskNotFoundError
from src.task_service.domain.models.task import Task
from src.task_service.domain.models.task_filter import TaskFilter
from src.task_service.domain.repositories import TaskRepository
from src.task_service.infrastructure.postgres.mappers import OrmMapper
from src.task_service.infrastructure.postgres.orm import PostgresOrm, TaskRow
from src.task_service.infrastructure.postgres.transaction import session_scope

logger = logging.getLogger(__name__)


class PostgresTaskRepository(TaskRepository):
    """Postgres-backed task storage using SQLAlchemy async sessions."""

    def __init__(self, orm: PostgresOrm) -> None:
        self._orm = orm

    async def create(self, task: Task) -> Task:
        """Insert the task and copy the generated id and timestamps back onto it."""
        now = datetime.now(UTC)
        task.created_at = task.created_at or now
        task.updated_at = task.updated_at or task.created_at

        task_row = OrmMapper.to_task_row(task)
        try:
            async with session_scope(self._orm) as session:
                session.add(task_row)
                await session.flush()
                task.id = task_row.id
        except SQLAlchemyError as exc:
            logger.error("Failed to create task", extra={"error": str(exc)})
            raise PersistenceError("create task") from exc

        logger.debug("Task created", extra={"task_id": task.id})
        return task

    async def get_by_id(self, task_id: int) -> Task:
        try:
            async with session_scope(self._orm) as session:
                result = await session.execute(select(TaskRow).where(TaskRow.id == task_id))
                task_row = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            logger.error("Failed to get task", extra={"task_id": task_id, "error": str(exc)})
            raise PersistenceError("get task") from exc

        if task_row is None:
            raise TaskNotFoundError(task_id)
        return OrmMapper.to_domain_task(task_row)

    async def list_tasks(self, task_filter: TaskFilter) -> list[Task]:
        """List tasks matching the present filter fields, newest first."""
        statement = select(TaskRow)
        if task_filter.status is not None:
            statement = statement.where(TaskRow.status == task_filter.status.value)
        if task_filter.priority is not None:
            statement = statement.where(TaskRow.priority == task_filter.priority.value)
        if task_filter.assigned_to is not None:
            statement = statement.where(TaskRow.assigned_to == task_filter.assigned_to)

        statement = (
            statement.order_by(TaskRow.created_at.desc(), TaskRow.id.desc())
            .limit(task_filter.limit)
            .offset(task_filter.offset)
        )

        try:
            async with session_scope(self._orm) as session:
                result = await session.execute(statement)
                rows = result.scalars().all()
        except SQLAlchemyError as exc:
            logger.error("Failed to list tasks", extra={"error": str(exc)})
            raise PersistenceError("list tasks") from exc

        return [OrmMapper.to_domain_task(row) for row in rows]

    async def update(self, task: Task) -> None:
        statement = (
            update(TaskRow)
            .where(TaskRow.id == task.id)
            .values(**OrmMapper.to_update_values(task))
            .execution_options(synchronize_session=False)
        )
        try:
            async with session_scope(self._orm) as session:
                result = await session.execute(statement)
        except SQLAlchemyError as exc:
            logger.error("Failed to update task", extra={"task_id": task.id, "error": str(exc)})
            raise PersistenceError("update task") from exc

        if result.rowcount == 0:
            raise TaskNotFoundError(task.id)

    async def delete(self, task_id: int) -> None:
        statement = (
            delete(TaskRow)
            .where(TaskRow.id == task_id)
            .execution_options(synchronize_session=False)
        )
        try:
            async with session_scope(self._orm) as session:
                result = await session.execute(statement)
        except SQLAlchemyError as exc:
            logger.error("Failed to delete task", extra={"task_id": task_id, "error": str(exc)})
            raise PersistenceError("delete task") from exc

        if result.rowcount == 0:
            raise TaskNotFoundError(task_id)
