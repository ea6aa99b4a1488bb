from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from src.task_service.domain.exceptions import (
    InvalidInputError,
    InvalidStateError,
    TaskValidationError,
)
from src.task_service.domain.models.task_priority import TaskPriority
from src.task_service.domain.models.task_status import TaskStatus

MAX_NAME_LENGTH = 255


def _now() -> datetime:
    return datetime.now(UTC)


class Task(BaseModel):
    id: int | None = Field(default=None, description="Store-assigned task identifier.")
    name: str = Field(description="Short human readable title.")
    description: str = Field(default="", description="Free text details.")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Lifecycle status.")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Priority level.")
    assigned_to: int | None = Field(default=None, description="User the task is assigned to.")
    created_by: int = Field(description="User that created the task.")
    created_at: datetime | None = Field(default=None, description="Creation timestamp.")
    updated_at: datetime | None = Field(default=None, description="Last modification timestamp.")
    completed_at: datetime | None = Field(default=None, description="Completion timestamp.")

    def ensure_valid(self) -> None:
        """Raise ``TaskValidationError`` for the first invariant the task breaks."""
        if not self.name.strip():
            raise TaskValidationError("name", "task name cannot be empty")
        if len(self.name) > MAX_NAME_LENGTH:
            raise TaskValidationError(
                "name", f"task name is too long (max {MAX_NAME_LENGTH} characters)"
            )
        if self.created_by <= 0:
            raise TaskValidationError("created_by", "created_by must be a positive user id")

    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def can_be_assigned(self) -> bool:
        return self.status in (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)

    def assign(self, user_id: int) -> None:
        """Assign the task to ``user_id``; a pending task moves to in progress."""
        if not self.can_be_assigned():
            raise InvalidStateError(self.id, self.status.value, "assign")
        if user_id <= 0:
            raise InvalidInputError("user_id must be a positive integer")
        self.assigned_to = user_id
        if self.status == TaskStatus.PENDING:
            self.status = TaskStatus.IN_PROGRESS
        self.touch()

    def complete(self) -> None:
        if self.status.is_terminal:
            raise InvalidStateError(self.id, self.status.value, "complete")
        now = _now()
        self.status = TaskStatus.COMPLETED
        self.completed_at = now
        self.updated_at = now

    def cancel(self) -> None:
        if self.status.is_terminal:
            raise InvalidStateError(self.id, self.status.value, "cancel")
        self.status = TaskStatus.CANCELLED
        self.touch()

    def change_status(self, target: TaskStatus) -> None:
        """Move to ``target`` through the allowed transitions only."""
        if target == self.status:
            return
        if target == TaskStatus.COMPLETED:
            self.complete()
        elif target == TaskStatus.CANCELLED:
            self.cancel()
        elif target == TaskStatus.IN_PROGRESS and self.status == TaskStatus.PENDING:
            self.status = TaskStatus.IN_PROGRESS
            self.touch()
        else:
            raise InvalidStateError(self.id, self.status.value, f"move to '{target.value}'")

    def touch(self) -> None:
        self.updated_at = _now()
