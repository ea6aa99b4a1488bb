from src.task_service.domain.models.task import MAX_NAME_LENGTH, Task
from src.task_service.domain.models.task_filter import (
    DEFAULT_LIST_LIMIT,
    MAX_LIST_LIMIT,
    TaskFilter,
)
from src.task_service.domain.models.task_priority import TaskPriority
from src.task_service.domain.models.task_status import TaskStatus

__all__ = [
    "Task",
    "TaskStatus",
    "TaskPriority",
    "TaskFilter",
    "MAX_NAME_LENGTH",
    "DEFAULT_LIST_LIMIT",
    "MAX_LIST_LIMIT",
]
