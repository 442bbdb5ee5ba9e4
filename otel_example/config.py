from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SERVICE_NAMESPACE = "OpenTelemetryExample"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = Field(default="OpenTelemetryExample", min_length=1, alias="APP_NAME")
    environment: str = Field(default="production", alias="ENVIRONMENT")
    log_level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = Field(default="INFO", alias="LOG_LEVEL")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8080, alias="PORT")

    otlp_endpoint: str | None = Field(default=None, alias="OTEL_EXPORTER_OTLP_ENDPOINT")
    otlp_export_enabled: bool = Field(default=True, alias="OTLP_EXPORT_ENABLED")
    console_export_enabled: bool = Field(default=True, alias="CONSOLE_EXPORT_ENABLED")
    xray_propagation_enabled: bool = Field(default=True, alias="XRAY_PROPAGATION_ENABLED")
    runtime_metrics_enabled: bool = Field(default=True, alias="RUNTIME_METRICS_ENABLED")
    http_client_instrumentation_enabled: bool = Field(default=True, alias="HTTP_CLIENT_INSTRUMENTATION_ENABLED")
    custom_meter_name: str = Field(default="OpenTelemetryExample", min_length=1, alias="CUSTOM_METER_NAME")
    metric_export_interval_ms: int = Field(default=60_000, gt=0, alias="METRIC_EXPORT_INTERVAL_MS")

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.strip().upper() if isinstance(value, str) else value

    @property
    def docs_enabled(self) -> bool:
        return self.environment.strip().lower() in {"development", "local"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
