from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.task_service.domain.models.task import Task
from src.task_service.domain.models.task_priority import TaskPriority
from src.task_service.domain.models.task_status import TaskStatus


class EventType(str, Enum):
    TASK_CREATED = "task.created"
    TASK_UPDATED = "task.updated"
    TASK_COMPLETED = "task.completed"
    TASK_DELETED = "task.deleted"


def routing_key(task_id: int) -> str:
    """Key shared by every event of one task so they stay ordered per task."""
    return f"task-{task_id}"


class TaskEventPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    task_id: int = Field(description="Identifier of the task the event is about.")

    @property
    def key(self) -> str:
        return routing_key(self.task_id)


class TaskCreatedEvent(TaskEventPayload):
    name: str
    description: str
    priority: TaskPriority
    created_by: int
    created_at: datetime

    @classmethod
    def from_task(cls, task: Task) -> "TaskCreatedEvent":
        return cls(
            task_id=task.id,
            name=task.name,
            description=task.description,
            priority=task.priority,
            created_by=task.created_by,
            created_at=task.created_at,
        )


class TaskUpdatedEvent(TaskEventPayload):
    name: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    assigned_to: int | None = None
    updated_at: datetime

    @classmethod
    def from_task(cls, task: Task) -> "TaskUpdatedEvent":
        return cls(
            task_id=task.id,
            name=task.name,
            description=task.description,
            status=task.status,
            priority=task.priority,
            assigned_to=task.assigned_to,
            updated_at=task.updated_at,
        )


class TaskCompletedEvent(TaskEventPayload):
    completed_at: datetime

    @classmethod
    def from_task(cls, task: Task) -> "TaskCompletedEvent":
        return cls(task_id=task.id, completed_at=task.completed_at)


class TaskDeletedEvent(TaskEventPayload):
    deleted_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class TaskEvent(BaseModel):
    """Envelope written to the event stream: ``{event_type, payload, timestamp}``."""

    model_config = ConfigDict(frozen=True)

    event_type: EventType
    payload: dict[str, Any]
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def wrap(cls, event_type: EventType, payload: TaskEventPayload) -> "TaskEvent":
        return cls(event_type=event_type, payload=payload.model_dump(mode="json"))

    @property
    def task_id(self) -> int | None:
        return self.payload.get("task_id")
