from __future__ import annotations

from fastapi import FastAPI

from src.setup.api_config import ApiSettings, get_api_settings
from src.task_service.infrastructure.metrics.metrics import Metrics
from src.task_service.presentation.errors import register_exception_handlers
from src.task_service.presentation.middleware import install_middleware
from src.task_service.presentation.routes import router as api_router


def create_app(settings: ApiSettings | None = None, metrics: Metrics | None = None) -> FastAPI:
    """Build the HTTP application. Configure DI before serving requests."""
    settings = settings or get_api_settings()
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Task management API",
    )
    register_exception_handlers(app)
    install_middleware(app, metrics=metrics, request_timeout=settings.REQUEST_TIMEOUT_SEC)
    app.include_router(api_router, prefix="")
    return app
