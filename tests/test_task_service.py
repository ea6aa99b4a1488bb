import pytest
from prometheus_client import CollectorRegistry

from src.task_service.application.dtos import CreateTaskInput, UpdateTaskInput
from src.task_service.application.services import TaskService
from src.task_service.domain.exceptions import (
    InvalidStateError,
    TaskNotFoundError,
    TaskValidationError,
)
from src.task_service.domain.models import TaskFilter, TaskPriority, TaskStatus
from src.task_service.infrastructure.metrics.metrics import Metrics


def _input(name: str = "Write report", **overrides) -> CreateTaskInput:
    overrides.setdefault("created_by", 7)
    return CreateTaskInput(name=name, **overrides)


@pytest.fixture
def service(repository, tx_manager, publisher) -> TaskService:
    return TaskService(repository=repository, tx_manager=tx_manager, publisher=publisher)


@pytest.mark.asyncio
async def test_service_resolves_collaborators_from_injector(stubbed_injector, repository) -> None:
    service = TaskService()

    task = await service.create_task(_input())

    assert task.id in repository.tasks


@pytest.mark.asyncio
async def test_create_task_assigns_id_and_publishes(service, repository, publisher) -> None:
    task = await service.create_task(_input(priority=TaskPriority.HIGH))

    assert task.id == 1
    assert task.status == TaskStatus.PENDING
    assert task.created_at is not None
    assert repository.tasks[1].priority == TaskPriority.HIGH
    assert publisher.kinds == ["created"]
    kind, event = publisher.events[0]
    assert event.task_id == 1
    assert event.key == "task-1"


@pytest.mark.asyncio
async def test_create_invalid_task_stores_and_publishes_nothing(
    service, repository, tx_manager, publisher
) -> None:
    with pytest.raises(TaskValidationError):
        await service.create_task(_input(name=""))

    assert repository.tasks == {}
    assert tx_manager.calls == 0
    assert publisher.events == []


@pytest.mark.asyncio
async def test_publish_failure_does_not_fail_the_operation(
    repository, tx_manager, failing_publisher
) -> None:
    service = TaskService(
        repository=repository, tx_manager=tx_manager, publisher=failing_publisher
    )

    task = await service.create_task(_input())
    await service.complete_task(task.id)

    assert repository.tasks[task.id].status == TaskStatus.COMPLETED


@pytest.mark.asyncio
async def test_get_missing_task_raises_not_found(service) -> None:
    with pytest.raises(TaskNotFoundError):
        await service.get_task(99)


@pytest.mark.asyncio
async def test_list_tasks_is_newest_first_and_paginated(service) -> None:
    created = [await service.create_task(_input(name=f"task {i}")) for i in range(1, 6)]

    page = await service.list_tasks(TaskFilter(limit=2, offset=0))

    assert [task.id for task in page] == [created[4].id, created[3].id]


@pytest.mark.asyncio
async def test_list_tasks_normalizes_limits(service) -> None:
    for i in range(3):
        await service.create_task(_input(name=f"task {i}"))

    tasks = await service.list_tasks(TaskFilter(limit=0, offset=-4))

    assert len(tasks) == 3


@pytest.mark.asyncio
async def test_list_tasks_filters_are_conjunctive(service) -> None:
    low = await service.create_task(_input(name="low", priority=TaskPriority.LOW))
    await service.create_task(_input(name="high", priority=TaskPriority.HIGH))
    await service.assign_task(low.id, 5)

    tasks = await service.list_tasks(
        TaskFilter(status=TaskStatus.IN_PROGRESS, priority=TaskPriority.LOW, assigned_to=5)
    )
    none = await service.list_tasks(TaskFilter(status=TaskStatus.PENDING, priority=TaskPriority.LOW))

    assert [task.id for task in tasks] == [low.id]
    assert none == []


@pytest.mark.asyncio
async def test_update_task_applies_present_fields_only(service, publisher) -> None:
    task = await service.create_task(_input(description="keep me"))

    updated = await service.update_task(task.id, UpdateTaskInput(name="Renamed"))

    assert updated.name == "Renamed"
    assert updated.description == "keep me"
    assert publisher.kinds == ["created", "updated"]


@pytest.mark.asyncio
async def test_update_to_completed_publishes_completion(service, publisher) -> None:
    task = await service.create_task(_input())

    updated = await service.update_task(task.id, UpdateTaskInput(status=TaskStatus.COMPLETED))

    assert updated.completed_at is not None
    assert publisher.kinds == ["created", "updated", "completed"]


@pytest.mark.asyncio
async def test_invalid_update_leaves_stored_task_untouched(service, repository) -> None:
    task = await service.create_task(_input())

    with pytest.raises(TaskValidationError):
        await service.update_task(task.id, UpdateTaskInput(name="x" * 256))

    assert repository.tasks[task.id].name == "Write report"


@pytest.mark.asyncio
async def test_update_rejects_reopening_a_completed_task(service) -> None:
    task = await service.create_task(_input())
    await service.complete_task(task.id)

    with pytest.raises(InvalidStateError):
        await service.update_task(task.id, UpdateTaskInput(status=TaskStatus.PENDING))


@pytest.mark.asyncio
async def test_assign_task_persists_assignee(service, repository, publisher) -> None:
    task = await service.create_task(_input())

    await service.assign_task(task.id, 42)

    stored = repository.tasks[task.id]
    assert stored.assigned_to == 42
    assert stored.status == TaskStatus.IN_PROGRESS
    assert publisher.kinds == ["created", "updated"]


@pytest.mark.asyncio
async def test_assign_completed_task_is_rejected(service, repository) -> None:
    task = await service.create_task(_input())
    await service.complete_task(task.id)

    with pytest.raises(InvalidStateError):
        await service.assign_task(task.id, 42)

    assert repository.tasks[task.id].assigned_to is None


@pytest.mark.asyncio
async def test_complete_twice_is_rejected(service, publisher) -> None:
    task = await service.create_task(_input())
    await service.complete_task(task.id)

    with pytest.raises(InvalidStateError):
        await service.complete_task(task.id)

    assert publisher.kinds == ["created", "completed"]


@pytest.mark.asyncio
async def test_cancel_task(service, repository, publisher) -> None:
    task = await service.create_task(_input())

    await service.cancel_task(task.id)

    assert repository.tasks[task.id].status == TaskStatus.CANCELLED
    assert publisher.kinds == ["created", "updated"]


@pytest.mark.asyncio
async def test_delete_twice_raises_not_found(service, repository, publisher) -> None:
    task = await service.create_task(_input())

    await service.delete_task(task.id)
    with pytest.raises(TaskNotFoundError):
        await service.delete_task(task.id)

    assert repository.tasks == {}
    assert publisher.kinds == ["created", "deleted"]


@pytest.mark.asyncio
async def test_metrics_count_task_outcomes(repository, tx_manager, publisher) -> None:
    metrics = Metrics("test", "0.0.0", enabled=False, registry=CollectorRegistry())
    service = TaskService(
        repository=repository, tx_manager=tx_manager, publisher=publisher, metrics=metrics
    )

    first = await service.create_task(_input())
    second = await service.create_task(_input())
    await service.complete_task(first.id)
    await service.delete_task(second.id)

    assert metrics.registry.get_sample_value("tasks_created_total") == 2
    assert metrics.registry.get_sample_value("tasks_completed_total") == 1
    assert metrics.registry.get_sample_value("tasks_deleted_total") == 1
