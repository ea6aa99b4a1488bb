import logging

import inject
import pytest

from src.setup.api_config import ApiSettings
from src.setup.app_config import build_container, configure_di
from src.setup.db_config import DatabaseSettings
from src.setup.metrics_config import MetricsSettings
from src.setup.stream_config import StreamSettings, build_stream_consumer, build_streams_client
from src.task_service.application.services import TaskService
from src.task_service.bootstrap import build_lifecycle
from src.task_service.domain.repositories import TaskEventPublisher, TaskRepository
from src.task_service.infrastructure.request_context import (
    RequestContextFilter,
    set_request_id,
    set_trace_id,
)
from src.task_service.presentation.main import create_app
from src.task_service.presentation.server import HttpServer


@pytest.fixture
def container(tmp_path):
    container = build_container(
        api_settings=ApiSettings(APP_NAME="Test API"),
        db_settings=DatabaseSettings(DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path}/tasks.db"),
        stream_settings=StreamSettings(STREAM_ENABLED=False),
        metrics_settings=MetricsSettings(METRICS_ENABLED=False),
    )
    yield container
    inject.clear()


def test_container_without_streaming_has_disabled_publisher(container) -> None:
    assert container.streams_client is None
    assert container.consumer is None
    assert container.publisher.enabled is False


def test_configure_di_binds_task_service(container) -> None:
    configure_di(container)

    assert inject.instance(TaskService) is container.task_service
    assert inject.instance(TaskRepository) is container.repository
    assert inject.instance(TaskEventPublisher) is container.publisher


def test_lifecycle_registers_components_in_dependency_order(container) -> None:
    server = HttpServer(create_app(container.api_settings), host="127.0.0.1", port=0)

    lifecycle = build_lifecycle(container, server)

    assert lifecycle.names == ["metrics", "database", "http-server"]


def test_stream_consumer_requires_client_and_flag() -> None:
    settings = StreamSettings(STREAM_ENABLED=True, STREAM_CONSUMER_ENABLED=False)
    client = build_streams_client(settings)

    assert client is not None
    assert build_stream_consumer(settings, client) is None
    assert build_stream_consumer(StreamSettings(STREAM_CONSUMER_ENABLED=True), None) is None


def test_request_context_filter_stamps_ids() -> None:
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)
    set_request_id("req-9")
    set_trace_id("")

    assert RequestContextFilter().filter(record) is True
    assert record.request_id == "req-9"
    assert record.trace_id == "-"
