from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class ApiSettings(BaseSettings):
    APP_NAME: str = "task-service"
    APP_VERSION: str = "0.1.0"
    APP_ENVIRONMENT: str = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    REQUEST_TIMEOUT_SEC: float = 30.0
    SHUTDOWN_TIMEOUT_SEC: float = 30.0
    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_api_settings() -> ApiSettings:
    return ApiSettings()  # type: ignore[call-arg]
