from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.task_service.domain.exceptions import (
    DomainError,
    InvalidInputError,
    InvalidStateError,
    PersistenceError,
    TaskNotFoundError,
    TaskValidationError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "internal server error"

_STATUS_BY_ERROR: list[tuple[type[DomainError], int]] = [
    (TaskNotFoundError, status.HTTP_404_NOT_FOUND),
    (TaskValidationError, status.HTTP_400_BAD_REQUEST),
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (UnauthorizedError, status.HTTP_401_UNAUTHORIZED),
    (InvalidStateError, status.HTTP_409_CONFLICT),
]


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def status_for(exc: DomainError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Unmapped domain error", extra={"error": repr(exc)})
        return error_response(status_code, INTERNAL_ERROR_MESSAGE)
    return error_response(status_code, str(exc))


async def handle_persistence_error(request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error(
        "Persistence failure",
        extra={"operation": exc.operation, "cause": repr(exc.__cause__)},
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "invalid request"
    return error_response(status.HTTP_400_BAD_REQUEST, message)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, handle_domain_error)
    app.add_exception_handler(PersistenceError, handle_persistence_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
