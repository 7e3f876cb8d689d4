from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True)

    environment: Literal["development", "test", "production"] = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")

    database_url: str = Field(default="", alias="DATABASE_URL")

    sentry_dsn: str = Field(default="", alias="SENTRY_DSN")
    sentry_sample_rate: float = Field(default=0.05, alias="SENTRY_SAMPLE_RATE")
    metrics_sample_rate: float = Field(default=0.1, alias="METRICS_SAMPLE_RATE")
    slow_operation_thresholds_ms: dict[str, float] = Field(
        default_factory=lambda: {
            "database-query": 500.0,
            "api-request": 1000.0,
            "file-upload": 5000.0,
        },
        alias="SLOW_OPERATION_THRESHOLDS_MS",
    )
    default_slow_operation_threshold_ms: float = Field(default=1000.0, alias="DEFAULT_SLOW_OPERATION_THRESHOLD_MS")

    rate_limit_window_seconds: int = Field(default=15 * 60, alias="RATE_LIMIT_WINDOW_SECONDS")
    rate_limit_max_requests: int = Field(default=100, alias="RATE_LIMIT_MAX_REQUESTS")

    jwt_secret: str = Field(default="change-me", alias="JWT_SECRET")
    jwt_cookie_name: str = Field(default="jobtrack_session", alias="JWT_COOKIE_NAME")
    enable_metrics_endpoint: bool = Field(default=False, alias="ENABLE_METRICS_ENDPOINT")

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
