from __future__ import annotations

from typing import cast

import inject
from fastapi import APIRouter, Depends, Query, Response, status

from src.task_service.application.dtos import CreateTaskInput, UpdateTaskInput
from src.task_service.application.services import TaskService
from src.task_service.domain.models import (
    DEFAULT_LIST_LIMIT,
    Task,
    TaskFilter,
    TaskPriority,
    TaskStatus,
)
from src.task_service.presentation.schemas import (
    AssignTaskRequest,
    CreateTaskRequest,
    ErrorResponse,
    HealthResponse,
    MessageResponse,
    UpdateTaskRequest,
)

router = APIRouter(tags=["tasks"])

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Task not found."}}
_BAD_REQUEST = {400: {"model": ErrorResponse, "description": "Invalid input."}}
_CONFLICT = {409: {"model": ErrorResponse, "description": "Not allowed in the current status."}}


def get_task_service() -> TaskService:
    return cast(TaskService, inject.instance(TaskService))


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health() -> HealthResponse:
    return HealthResponse()


@router.post(
    "/tasks",
    response_model=Task,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
    responses={**_BAD_REQUEST},
)
async def create_task(
    body: CreateTaskRequest,
    service: TaskService = Depends(get_task_service),
) -> Task:
    return await service.create_task(CreateTaskInput(**body.model_dump()))


@router.get(
    "/tasks",
    response_model=list[Task],
    summary="List tasks",
    description=(
        "Newest first. Filters are combined with AND. ``limit`` defaults to 50 and "
        "is capped at 100; a negative ``offset`` is treated as 0."
    ),
    responses={**_BAD_REQUEST},
)
async def list_tasks(
    task_status: TaskStatus | None = Query(default=None, alias="status"),
    priority: TaskPriority | None = Query(default=None),
    assigned_to: int | None = Query(default=None),
    limit: int = Query(default=DEFAULT_LIST_LIMIT),
    offset: int = Query(default=0),
    service: TaskService = Depends(get_task_service),
) -> list[Task]:
    task_filter = TaskFilter(
        status=task_status,
        priority=priority,
        assigned_to=assigned_to,
        limit=limit,
        offset=offset,
    )
    return await service.list_tasks(task_filter)


@router.get(
    "/tasks/{task_id}",
    response_model=Task,
    summary="Get a task",
    responses={**_NOT_FOUND},
)
async def get_task(task_id: int, service: TaskService = Depends(get_task_service)) -> Task:
    return await service.get_task(task_id)


@router.put(
    "/tasks/{task_id}",
    response_model=Task,
    summary="Update a task",
    description="Only the fields present in the body are changed.",
    responses={**_BAD_REQUEST, **_NOT_FOUND, **_CONFLICT},
)
async def update_task(
    task_id: int,
    body: UpdateTaskRequest,
    service: TaskService = Depends(get_task_service),
) -> Task:
    return await service.update_task(task_id, UpdateTaskInput(**body.model_dump()))


@router.delete(
    "/tasks/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a task",
    responses={**_NOT_FOUND},
)
async def delete_task(task_id: int, service: TaskService = Depends(get_task_service)) -> Response:
    await service.delete_task(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/tasks/{task_id}/assign",
    response_model=MessageResponse,
    summary="Assign a task",
    responses={**_BAD_REQUEST, **_NOT_FOUND, **_CONFLICT},
)
async def assign_task(
    task_id: int,
    body: AssignTaskRequest,
    service: TaskService = Depends(get_task_service),
) -> MessageResponse:
    await service.assign_task(task_id, body.user_id)
    return MessageResponse(message="task assigned successfully")


@router.post(
    "/tasks/{task_id}/complete",
    response_model=MessageResponse,
    summary="Complete a task",
    responses={**_NOT_FOUND, **_CONFLICT},
)
async def complete_task(
    task_id: int, service: TaskService = Depends(get_task_service)
) -> MessageResponse:
    await service.complete_task(task_id)
    return MessageResponse(message="task completed successfully")


@router.post(
    "/tasks/{task_id}/cancel",
    response_model=MessageResponse,
    summary="Cancel a task",
    responses={**_NOT_FOUND, **_CONFLICT},
)
async def cancel_task(
    task_id: int, service: TaskService = Depends(get_task_service)
) -> MessageResponse:
    await service.cancel_task(task_id)
    return MessageResponse(message="task cancelled successfully")
