from __future__ import annotations

from dataclasses import dataclass

import inject

from src.setup.api_config import ApiSettings, get_api_settings
from src.setup.db_config import DatabaseSettings, get_database_settings
from src.setup.metrics_config import MetricsSettings, get_metrics_settings
from src.setup.stream_config import (
    StreamSettings,
    build_stream_consumer,
    build_stream_publisher,
    build_streams_client,
    get_stream_settings,
)
from src.task_service.application.services import TaskService
from src.task_service.domain.repositories import (
    TaskEventPublisher,
    TaskRepository,
    TransactionManager,
)
from src.task_service.infrastructure.metrics.metrics import Metrics
from src.task_service.infrastructure.postgres.orm import PostgresOrm
from src.task_service.infrastructure.postgres.repositories import PostgresTaskRepository
from src.task_service.infrastructure.postgres.transaction import SqlAlchemyTransactionManager
from src.task_service.infrastructure.streams.client import StreamsClient
from src.task_service.infrastructure.streams.consumer import StreamsConsumer
from src.task_service.infrastructure.streams.publisher import StreamsEventPublisher


@dataclass
class Container:
    """Process-scoped objects built once at startup."""

    api_settings: ApiSettings
    metrics: Metrics
    orm: PostgresOrm
    repository: PostgresTaskRepository
    tx_manager: SqlAlchemyTransactionManager
    streams_client: StreamsClient | None
    publisher: StreamsEventPublisher
    consumer: StreamsConsumer | None
    task_service: TaskService


def build_container(
    api_settings: ApiSettings | None = None,
    db_settings: DatabaseSettings | None = None,
    stream_settings: StreamSettings | None = None,
    metrics_settings: MetricsSettings | None = None,
) -> Container:
    api_settings = api_settings or get_api_settings()
    db_settings = db_settings or get_database_settings()
    stream_settings = stream_settings or get_stream_settings()
    metrics_settings = metrics_settings or get_metrics_settings()

    metrics = Metrics(
        api_settings.APP_NAME,
        api_settings.APP_VERSION,
        enabled=metrics_settings.METRICS_ENABLED,
        port=metrics_settings.METRICS_PORT,
    )
    orm = PostgresOrm(
        db_settings.DATABASE_URL,
        echo=db_settings.DB_ECHO,
        pool_size=db_settings.DB_POOL_SIZE,
        max_overflow=db_settings.DB_MAX_OVERFLOW,
    )
    streams_client = build_streams_client(stream_settings)
    publisher = build_stream_publisher(stream_settings, streams_client)
    repository = PostgresTaskRepository(orm)
    tx_manager = SqlAlchemyTransactionManager(orm)
    task_service = TaskService(
        repository=repository,
        tx_manager=tx_manager,
        publisher=publisher,
        metrics=metrics,
    )
    return Container(
        api_settings=api_settings,
        metrics=metrics,
        orm=orm,
        repository=repository,
        tx_manager=tx_manager,
        streams_client=streams_client,
        publisher=publisher,
        consumer=build_stream_consumer(stream_settings, streams_client),
        task_service=task_service,
    )


def configure_di(container: Container) -> None:
    """Bind the container's objects into the global injector."""

    def _config(binder: inject.Binder) -> None:
        binder.bind(Metrics, container.metrics)
        binder.bind(PostgresOrm, container.orm)
        binder.bind(TaskRepository, container.repository)
        binder.bind(TransactionManager, container.tx_manager)
        binder.bind(TaskEventPublisher, container.publisher)
        binder.bind(TaskService, container.task_service)

    inject.clear_and_configure(_config)
