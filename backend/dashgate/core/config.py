"""Application configuration via pydantic-settings.

All config is sourced from environment variables. Never use os.getenv() directly.
"""

import json

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational store holding the WIDGET_RESOURCE table."""

    model_config = SettingsConfigDict(env_prefix="")

    database_url_sync: str = "sqlite:///./dashgate.db"
    database_echo: bool = False

    @field_validator("database_url_sync")
    @classmethod
    def validate_database_url_not_empty(cls, v: str, info) -> str:
        if not v or not v.strip():
            raise ValueError(
                f"{info.field_name.upper()} must be set via environment variable."
            )
        return v


class AdminServiceSettings(BaseSettings):
    """Transport settings for the remote admin service (tenant id lookups).

    Credentials and the base URL are NOT here: they are read per call from
    the ``auth.configs`` deployment section.
    """

    model_config = SettingsConfigDict(env_prefix="")

    admin_service_timeout: float = 10.0  # seconds, applied by httpx
    admin_service_verify_tls: bool = True


class WidgetSettings(BaseSettings):
    """Where widget configuration bundles (widgetConf.json) live on disk."""

    model_config = SettingsConfigDict(env_prefix="")

    widgets_dir: str = "./widgets"


class Settings(BaseSettings):
    """Dashgate application settings.

    Environment variables are the single source of truth.
    Defaults are development-safe values only.
    """

    model_config = SettingsConfigDict(env_file=".env")

    app_env: str = "development"

    # Nested settings groups
    database: DatabaseSettings = DatabaseSettings()
    admin_service: AdminServiceSettings = AdminServiceSettings()
    widgets: WidgetSettings = WidgetSettings()

    # Named configuration sections, e.g. {"auth.configs": {"properties": {...}}}
    deployment_config: dict[str, dict | None] = {}

    # Observability
    log_level: str = "INFO"
    # Third-party loggers held at WARNING (admin service calls, SQL echo, access log)
    log_quiet_loggers: list[str] = ["uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore"]
    # Paths served without a request_completed log line (liveness checks and scrapes)
    log_skip_paths: list[str] = ["/metrics", "/health/live"]
    metrics_enabled: bool = True

    @field_validator("deployment_config", mode="before")
    @classmethod
    def parse_deployment_config(cls, v: str | dict) -> dict:
        if isinstance(v, str):
            return json.loads(v) if v.strip() else {}
        return v

    @model_validator(mode="after")
    def _validate_production_settings(self) -> "Settings":
        """Refuse to start against the bundled SQLite file outside development."""
        is_prod = self.app_env != "development"
        uses_dev_db = self.database.database_url_sync == "sqlite:///./dashgate.db"
        if is_prod and uses_dev_db:
            raise ValueError(
                f"DATABASE_URL_SYNC must be set when APP_ENV={self.app_env!r}. "
                "The development SQLite database is not allowed outside development."
            )
        return self


settings = Settings()
