from pydantic import BaseModel, Field

from src.task_service.domain.models.task_priority import TaskPriority
from src.task_service.domain.models.task_status import TaskStatus

DEFAULT_LIST_LIMIT = 50
MAX_LIST_LIMIT = 100


class TaskFilter(BaseModel):
    """Optional, conjunctive constraints for listing tasks."""

    status: TaskStatus | None = Field(default=None, description="Only tasks in this status.")
    priority: TaskPriority | None = Field(default=None, description="Only tasks with this priority.")
    assigned_to: int | None = Field(default=None, description="Only tasks assigned to this user.")
    limit: int = Field(default=DEFAULT_LIST_LIMIT, description="Maximum number of tasks returned.")
    offset: int = Field(default=0, description="Number of tasks skipped.")

    def normalized(self) -> "TaskFilter":
        """Return a copy with limit and offset clamped into their valid ranges."""
        limit = self.limit
        if limit <= 0:
            limit = DEFAULT_LIST_LIMIT
        limit = min(limit, MAX_LIST_LIMIT)
        return self.model_copy(update={"limit": limit, "offset": max(self.offset, 0)})
