from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TypeVar

import pytest
from fastapi.testclient import TestClient

from src.task_service.domain.events.task_event import (
    TaskCompletedEvent,
    TaskCreatedEvent,
    TaskDeletedEvent,
    TaskUpdatedEvent,
)
from src.task_service.domain.exceptions import EventPublishError, TaskNotFoundError
from src.task_service.domain.models import Task, TaskFilter
from src.task_service.domain.repositories import (
    TaskEventPublisher,
    TaskRepository,
    TransactionManager,
)

T = TypeVar("T")


class StubTaskRepository(TaskRepository):
    """In-memory task store; hands out copies so unsaved mutations never leak in."""

    def __init__(self) -> None:
        self.tasks: dict[int, Task] = {}
        self._next_id = 0

    async def create(self, task: Task) -> Task:
        self._next_id += 1
        now = datetime.now(UTC)
        task.id = self._next_id
        task.created_at = task.created_at or now
        task.updated_at = task.updated_at or task.created_at
        self.tasks[task.id] = task.model_copy()
        return task

    async def get_by_id(self, task_id: int) -> Task:
        if task_id not in self.tasks:
            raise TaskNotFoundError(task_id)
        return self.tasks[task_id].model_copy()

    async def list_tasks(self, task_filter: TaskFilter) -> list[Task]:
        matches = [
            task
            for task in self.tasks.values()
            if (task_filter.status is None or task.status == task_filter.status)
            and (task_filter.priority is None or task.priority == task_filter.priority)
            and (task_filter.assigned_to is None or task.assigned_to == task_filter.assigned_to)
        ]
        matches.sort(key=lambda task: (task.created_at, task.id), reverse=True)
        window = matches[task_filter.offset : task_filter.offset + task_filter.limit]
        return [task.model_copy() for task in window]

    async def update(self, task: Task) -> None:
        if task.id not in self.tasks:
            raise TaskNotFoundError(task.id)
        self.tasks[task.id] = task.model_copy()

    async def delete(self, task_id: int) -> None:
        if task_id not in self.tasks:
            raise TaskNotFoundError(task_id)
        del self.tasks[task_id]


class PassThroughTransactionManager(TransactionManager):
    def __init__(self) -> None:
        self.calls = 0

    async def within_transaction(self, fn: Callable[[], Awaitable[T]]) -> T:
        self.calls += 1
        return await fn()


class RecordingPublisher(TaskEventPublisher):
    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    @property
    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.events]

    async def publish_task_created(self, event: TaskCreatedEvent) -> None:
        self.events.append(("created", event))

    async def publish_task_updated(self, event: TaskUpdatedEvent) -> None:
        self.events.append(("updated", event))

    async def publish_task_completed(self, event: TaskCompletedEvent) -> None:
        self.events.append(("completed", event))

    async def publish_task_deleted(self, event: TaskDeletedEvent) -> None:
        self.events.append(("deleted", event))


class FailingPublisher(TaskEventPublisher):
    """Publisher whose broker is always unreachable."""

    async def publish_task_created(self, event: TaskCreatedEvent) -> None:
        raise EventPublishError("broker unavailable")

    async def publish_task_updated(self, event: TaskUpdatedEvent) -> None:
        raise EventPublishError("broker unavailable")

    async def publish_task_completed(self, event: TaskCompletedEvent) -> None:
        raise EventPublishError("broker unavailable")

    async def publish_task_deleted(self, event: TaskDeletedEvent) -> None:
        raise EventPublishError("broker unavailable")


@pytest.fixture
def env_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Provide environment variables read by the settings classes."""
    monkeypatch.setenv("APP_NAME", "Test API")
    monkeypatch.setenv("APP_VERSION", "0.1.0")
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("METRICS_ENABLED", "false")
    monkeypatch.setenv("STREAM_ENABLED", "false")


def _patch_inject_instance(
    monkeypatch: pytest.MonkeyPatch,
    bindings: dict[type, object],
) -> Callable[[object], object]:
    """Patch `inject.instance` to resolve only the given bindings."""
    import inject

    def fake_instance(interface: object) -> object:
        if interface in bindings:
            return bindings[interface]
        raise RuntimeError(f"Unexpected dependency request: {interface}")

    monkeypatch.setattr(inject, "instance", fake_instance)
    return fake_instance


@pytest.fixture
def repository() -> StubTaskRepository:
    return StubTaskRepository()


@pytest.fixture
def tx_manager() -> PassThroughTransactionManager:
    return PassThroughTransactionManager()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def failing_publisher() -> FailingPublisher:
    return FailingPublisher()


@pytest.fixture
def stubbed_injector(
    monkeypatch: pytest.MonkeyPatch,
    repository: StubTaskRepository,
    tx_manager: PassThroughTransactionManager,
    publisher: RecordingPublisher,
) -> Callable[[object], object]:
    return _patch_inject_instance(
        monkeypatch,
        {
            TaskRepository: repository,
            TransactionManager: tx_manager,
            TaskEventPublisher: publisher,
        },
    )


def _build_client(
    monkeypatch: pytest.MonkeyPatch,
    repository: StubTaskRepository,
    publisher: TaskEventPublisher,
) -> TestClient:
    from src.setup.api_config import get_api_settings
    from src.task_service.application.services import TaskService
    from src.task_service.presentation.main import create_app

    service = TaskService(
        repository=repository,
        tx_manager=PassThroughTransactionManager(),
        publisher=publisher,
    )
    _patch_inject_instance(monkeypatch, {TaskService: service})
    return TestClient(create_app(get_api_settings()))


@pytest.fixture
def api_client(
    env_settings: None,
    monkeypatch: pytest.MonkeyPatch,
    repository: StubTaskRepository,
    publisher: RecordingPublisher,
):
    """FastAPI test client with the task service wired to in-memory stubs."""
    client = _build_client(monkeypatch, repository, publisher)
    return client, repository, publisher


@pytest.fixture
def failing_api_client(
    env_settings: None,
    monkeypatch: pytest.MonkeyPatch,
    repository: StubTaskRepository,
    failing_publisher: FailingPublisher,
):
    """Client whose event broker rejects every publish."""
    return _build_client(monkeypatch, repository, failing_publisher), repository
