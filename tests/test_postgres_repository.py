import pytest
import pytest_asyncio

from src.task_service.domain.exceptions import TaskNotFoundError
from src.task_service.domain.models import Task, TaskFilter, TaskPriority, TaskStatus
from src.task_service.infrastructure.postgres.orm import PostgresOrm
from src.task_service.infrastructure.postgres.repositories import PostgresTaskRepository
from src.task_service.infrastructure.postgres.transaction import (
    SqlAlchemyTransactionManager,
    current_session,
)


@pytest_asyncio.fixture
async def orm(tmp_path):
    orm = PostgresOrm(f"sqlite+aiosqlite:///{tmp_path}/tasks.db")
    await orm.create_schema()
    await orm.start()
    yield orm
    await orm.stop()


@pytest.fixture
def repository(orm) -> PostgresTaskRepository:
    return PostgresTaskRepository(orm)


@pytest.fixture
def tx_manager(orm) -> SqlAlchemyTransactionManager:
    return SqlAlchemyTransactionManager(orm)


def _task(name: str = "Write report", **overrides) -> Task:
    overrides.setdefault("created_by", 7)
    return Task(name=name, **overrides)


@pytest.mark.asyncio
async def test_create_and_get_round_trip(repository) -> None:
    created = await repository.create(_task(description="Q3", priority=TaskPriority.HIGH))

    loaded = await repository.get_by_id(created.id)

    assert created.id is not None
    assert loaded.name == "Write report"
    assert loaded.description == "Q3"
    assert loaded.priority == TaskPriority.HIGH
    assert loaded.status == TaskStatus.PENDING
    assert loaded.created_at is not None
    assert loaded.created_at.tzinfo is not None


@pytest.mark.asyncio
async def test_ids_are_unique(repository) -> None:
    first = await repository.create(_task())
    second = await repository.create(_task())

    assert first.id != second.id


@pytest.mark.asyncio
async def test_get_missing_task_raises_not_found(repository) -> None:
    with pytest.raises(TaskNotFoundError):
        await repository.get_by_id(404)


@pytest.mark.asyncio
async def test_update_persists_mutations(repository) -> None:
    task = await repository.create(_task())
    task.assign(9)
    task.complete()

    await repository.update(task)
    loaded = await repository.get_by_id(task.id)

    assert loaded.assigned_to == 9
    assert loaded.status == TaskStatus.COMPLETED
    assert loaded.completed_at is not None


@pytest.mark.asyncio
async def test_update_missing_task_raises_not_found(repository) -> None:
    with pytest.raises(TaskNotFoundError):
        await repository.update(_task(id=77))


@pytest.mark.asyncio
async def test_second_delete_raises_not_found(repository) -> None:
    task = await repository.create(_task())

    await repository.delete(task.id)

    with pytest.raises(TaskNotFoundError):
        await repository.delete(task.id)
    with pytest.raises(TaskNotFoundError):
        await repository.get_by_id(task.id)


@pytest.mark.asyncio
async def test_list_is_newest_first_and_paginated(repository) -> None:
    created = [await repository.create(_task(name=f"task {i}")) for i in range(1, 6)]

    first_page = await repository.list_tasks(TaskFilter(limit=2, offset=0))
    second_page = await repository.list_tasks(TaskFilter(limit=2, offset=2))

    assert [task.id for task in first_page] == [created[4].id, created[3].id]
    assert [task.id for task in second_page] == [created[2].id, created[1].id]


@pytest.mark.asyncio
async def test_list_applies_every_filter(repository) -> None:
    match = await repository.create(_task(priority=TaskPriority.LOW))
    match.assign(3)
    await repository.update(match)
    await repository.create(_task(priority=TaskPriority.LOW))
    await repository.create(_task(priority=TaskPriority.HIGH))

    tasks = await repository.list_tasks(
        TaskFilter(status=TaskStatus.IN_PROGRESS, priority=TaskPriority.LOW, assigned_to=3)
    )

    assert [task.id for task in tasks] == [match.id]


@pytest.mark.asyncio
async def test_transaction_commits_on_success(repository, tx_manager) -> None:
    async def unit_of_work() -> Task:
        assert current_session() is not None
        return await repository.create(_task())

    task = await tx_manager.within_transaction(unit_of_work)

    assert current_session() is None
    assert (await repository.get_by_id(task.id)).name == "Write report"


@pytest.mark.asyncio
async def test_transaction_rolls_back_on_error(repository, tx_manager) -> None:
    async def unit_of_work() -> None:
        await repository.create(_task(name="doomed"))
        raise RuntimeError("abort")

    with pytest.raises(RuntimeError):
        await tx_manager.within_transaction(unit_of_work)

    assert await repository.list_tasks(TaskFilter()) == []


@pytest.mark.asyncio
async def test_nested_transactions_are_refused(tx_manager) -> None:
    async def inner() -> None:
        return None

    async def outer() -> None:
        await tx_manager.within_transaction(inner)

    with pytest.raises(RuntimeError):
        await tx_manager.within_transaction(outer)
