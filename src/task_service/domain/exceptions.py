class DomainError(Exception):
    """Base class for business rule violations raised by the task domain."""


class TaskNotFoundError(DomainError):
    """Raised when a task identifier does not exist in the task store."""

    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task with id '{task_id}' was not found.")
        self.task_id = task_id


class TaskValidationError(DomainError):
    """Raised when a task field holds a value the domain does not accept."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class InvalidInputError(DomainError):
    """Raised when a required argument is missing or malformed."""


class InvalidStateError(DomainError):
    """Raised when an operation is not allowed for the task's current status."""

    def __init__(self, task_id: int | None, status: str, operation: str) -> None:
        super().__init__(f"Cannot {operation} task '{task_id}' in status '{status}'.")
        self.task_id = task_id
        self.status = status
        self.operation = operation


class UnauthorizedError(DomainError):
    """Raised when the caller is not allowed to perform an operation."""


class PersistenceError(Exception):
    """Raised when the task store fails for a reason unrelated to business rules."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"failed to {operation}")
        self.operation = operation


class EventPublishError(Exception):
    """Raised when a task event cannot be handed to the message broker."""
