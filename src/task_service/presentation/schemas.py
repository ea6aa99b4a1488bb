from pydantic import BaseModel, Field

from src.task_service.domain.models import TaskPriority, TaskStatus


class CreateTaskRequest(BaseModel):
    name: str = Field(description="Task title, 1-255 characters.")
    description: str = Field(default="", description="Free text details.")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="low, medium or high.")
    created_by: int = Field(description="Identifier of the creating user.")


class UpdateTaskRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None


class AssignTaskRequest(BaseModel):
    user_id: int = Field(description="Identifier of the assignee.")


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str = "ok"
