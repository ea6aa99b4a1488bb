from logging.config import dictConfig

LOG_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s [request:%(request_id)s][trace:%(trace_id)s] %(message)s"
)


def configure_logging(level: str = "INFO") -> None:
    """Install root logging with request and trace ids on every record."""
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "request_context": {
                    "()": "src.task_service.infrastructure.request_context.RequestContextFilter",
                },
            },
            "formatters": {
                "default": {"format": LOG_FORMAT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "filters": ["request_context"],
                },
            },
            "root": {"level": level.upper(), "handlers": ["console"]},
        }
    )
