from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from src.task_service.domain.repositories import TransactionManager
from src.task_service.infrastructure.postgres.orm import PostgresOrm

logger = logging.getLogger(__name__)

T = TypeVar("T")

_active_session: ContextVar[AsyncSession | None] = ContextVar("active_session", default=None)


def current_session() -> AsyncSession | None:
    """Return the session of the transaction attached to the current context, if any."""
    return _active_session.get()


@asynccontextmanager
async def session_scope(orm: PostgresOrm) -> AsyncIterator[AsyncSession]:
    """
    Yield the ambient transaction's session, or a fresh session whose own
    transaction commits when the block exits.
    """
    session = current_session()
    if session is not None:
        yield session
        return
    async with orm.session_factory() as session:
        async with session.begin():
            yield session


class SqlAlchemyTransactionManager(TransactionManager):
    """Begin/commit/rollback boundary exposed to repositories through a context variable."""

    def __init__(self, orm: PostgresOrm) -> None:
        self._orm = orm

    async def within_transaction(self, fn: Callable[[], Awaitable[T]]) -> T:
        if current_session() is not None:
            raise RuntimeError("Nested transactions are not supported.")

        async with self._orm.session_factory() as session:
            token = _active_session.set(session)
            try:
                # session.begin() rolls back on any exception, cancellation included,
                # and re-raises it; it commits only when the block completes.
                async with session.begin():
                    return await fn()
            except BaseException as exc:
                logger.debug("Transaction rolled back", extra={"error": repr(exc)})
                raise
            finally:
                _active_session.reset(token)
