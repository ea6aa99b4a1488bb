from __future__ import annotations

from datetime import UTC, datetime

from src.task_service.domain.models.task import Task
from src.task_service.domain.models.task_priority import TaskPriority
from src.task_service.domain.models.task_status import TaskStatus
from src.task_service.infrastructure.postgres.orm import TaskRow


def _as_utc(value: datetime | None) -> datetime | None:
    # Some drivers hand back naive timestamps for timezone-aware columns.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


class OrmMapper:
    @staticmethod
    def to_task_row(task: Task) -> TaskRow:
        return TaskRow(
            id=task.id,
            name=task.name,
            description=task.description,
            status=task.status.value,
            priority=task.priority.value,
            assigned_to=task.assigned_to,
            created_by=task.created_by,
            created_at=task.created_at,
            updated_at=task.updated_at,
            completed_at=task.completed_at,
        )

    @staticmethod
    def to_update_values(task: Task) -> dict[str, object]:
        return {
            "name": task.name,
            "description": task.description,
            "status": task.status.value,
            "priority": task.priority.value,
            "assigned_to": task.assigned_to,
            "updated_at": task.updated_at,
            "completed_at": task.completed_at,
        }

    @staticmethod
    def to_domain_task(row: TaskRow) -> Task:
        return Task(
            id=row.id,
            name=row.name,
            description=row.description or "",
            status=TaskStatus(row.status),
            priority=TaskPriority(row.priority),
            assigned_to=row.assigned_to,
            created_by=row.created_by,
            created_at=_as_utc(row.created_at),
            updated_at=_as_utc(row.updated_at),
            completed_at=_as_utc(row.completed_at),
        )
