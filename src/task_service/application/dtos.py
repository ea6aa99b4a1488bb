from pydantic import BaseModel, Field

from src.task_service.domain.models.task_priority import TaskPriority
from src.task_service.domain.models.task_status import TaskStatus


class CreateTaskInput(BaseModel):
    name: str = Field(description="Task title.")
    description: str = Field(default="", description="Free text details.")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Priority level.")
    created_by: int = Field(description="User creating the task.")


class UpdateTaskInput(BaseModel):
    """Partial update; ``None`` means keep the stored value."""

    name: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
