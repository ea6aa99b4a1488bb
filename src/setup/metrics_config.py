from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class MetricsSettings(BaseSettings):
    """Configuration for the Prometheus exposition endpoint."""
    METRICS_ENABLED: bool = False
    METRICS_PORT: int = 9090

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_metrics_settings() -> MetricsSettings:
    return MetricsSettings()
