from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, Text, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

logger = logging.getLogger(__name__)

# SQLite only auto-increments INTEGER PRIMARY KEY columns.
_Id = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    pass


class TaskRow(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        Index("idx_tasks_status", "status"),
        Index("idx_tasks_priority", "priority"),
        Index("idx_tasks_assigned_to", "assigned_to"),
    )

    id: Mapped[int] = mapped_column(_Id, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(50), nullable=False, server_default="pending")
    priority: Mapped[str] = mapped_column(String(50), nullable=False, server_default="medium")
    assigned_to: Mapped[int | None] = mapped_column(BigInteger)
    created_by: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


Index("idx_tasks_created_at", TaskRow.created_at.desc())


class PostgresOrm:
    """
    SQLAlchemy async ORM holder. Create once and inject where needed.
    Doubles as the lifecycle component that owns the connection pool.
    """

    name = "database"

    def __init__(
        self,
        database_url: str,
        *,
        echo: bool = False,
        pool_size: int | None = None,
        max_overflow: int | None = None,
    ) -> None:
        engine_options: dict[str, object] = {"echo": echo, "pool_pre_ping": True}
        if pool_size is not None:
            engine_options["pool_size"] = pool_size
        if max_overflow is not None:
            engine_options["max_overflow"] = max_overflow
        self._engine: AsyncEngine = create_async_engine(database_url, **engine_options)
        self._session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self._engine, expire_on_commit=False
        )

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory

    async def create_schema(self) -> None:
        """Create missing tables directly; production schemas come from Alembic."""
        async with self._engine.begin() as connection:
            await connection.run_sync(Base.metadata.create_all)

    async def start(self) -> None:
        async with self._engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
        logger.info("Database connection pool ready", extra={"url": self._engine.url.render_as_string()})

    async def stop(self) -> None:
        await self._engine.dispose()
        logger.info("Database connection pool closed")
