import logging

from src.task_service.domain.events.task_event import TaskEvent

logger = logging.getLogger(__name__)


class TaskEventHandler:
    """Reacts to task events read back from the stream. Currently records them in the log."""

    async def handle_task_created(self, event: TaskEvent) -> None:
        logger.info(
            "Task created event received",
            extra={"task_id": event.task_id, "task_name": event.payload.get("name")},
        )

    async def handle_task_updated(self, event: TaskEvent) -> None:
        logger.info(
            "Task updated event received",
            extra={"task_id": event.task_id, "status": event.payload.get("status")},
        )

    async def handle_task_completed(self, event: TaskEvent) -> None:
        logger.info(
            "Task completed event received",
            extra={"task_id": event.task_id, "completed_at": event.payload.get("completed_at")},
        )

    async def handle_task_deleted(self, event: TaskEvent) -> None:
        logger.info("Task deleted event received", extra={"task_id": event.task_id})
