"""Centralized configuration management with environment-aware defaults.

Configuration uses Pydantic Settings: every value is typed and validated,
can be overridden from environment variables or a ``.env`` file, and nested
sections are addressed with the ``__`` delimiter (for example
``SYNC_CONFIG__BACKEND=table``).

Configuration sources (in order of precedence):
1. Environment variables
2. .env file in project root
3. Default values in model definitions
4. Environment-based defaults (production vs development)
"""

import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.constants import (
    DEFAULT_COLLECTION_KEY,
    DEFAULT_FALLBACK_PATH,
    DEFAULT_READ_TIMEOUT_MS,
    DEFAULT_WRITE_TIMEOUT_MS,
)

SUPPORTED_DATABASE_DRIVERS = ("postgresql+asyncpg://", "sqlite+aiosqlite://")


class LogConfig(BaseModel):
    """Logging configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_formatter_type: Literal["console", "json"] | None = Field(
        default=None,
        description="Log output formatter. Auto-detected if not specified.",
    )
    excluded_paths: list[str] = Field(
        default_factory=lambda: ["/health", "/api/settings/stream"],
        description="Paths to exclude from request logging",
    )
    slow_request_threshold_ms: int = Field(
        default=1000,
        gt=0,
        description="Threshold for slow request warnings (milliseconds)",
    )
    enable_sql_logging: bool = Field(
        default=False,
        description="Log slow SQL statements issued by the table and document stores",
    )
    slow_query_threshold_ms: int = Field(
        default=100,
        gt=0,
        description="Threshold for slow query warnings (milliseconds)",
    )
    sensitive_fields: list[str] = Field(
        default_factory=lambda: [
            "password",
            "token",
            "secret",
            "api_key",
            "authorization",
        ],
        description="Extra log field names to redact",
    )


class ObservabilityConfig(BaseModel):
    """OpenTelemetry tracing configuration."""

    enable_tracing: bool = Field(
        default=True,
        description="Enable OpenTelemetry tracing",
    )
    exporter_type: Literal["console", "otlp", "none"] = Field(
        default="console",
        description="Trace exporter type. Defaults to console for development.",
    )
    exporter_endpoint: str | None = Field(
        default=None,
        description="OTLP exporter endpoint",
    )
    trace_sample_rate: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="Trace sampling rate (0.0 to 1.0)",
    )

    @field_validator("exporter_endpoint", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for nullable fields."""
        if v == "":
            return None
        return v


class DatabaseConfig(BaseModel):
    """Database configuration for the SQL-backed settings stores."""

    database_url: str = Field(
        default="sqlite+aiosqlite:///var/vatcalc.db",
        description=(
            "Database connection URL (postgresql+asyncpg:// or sqlite+aiosqlite://)"
        ),
    )
    pool_size: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Number of connections to maintain in the pool (PostgreSQL only)",
    )
    max_overflow: int = Field(
        default=5,
        ge=0,
        le=50,
        description="Maximum overflow connections above pool_size (PostgreSQL only)",
    )
    pool_timeout: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Timeout in seconds for acquiring a connection from the pool",
    )
    echo: bool = Field(
        default=False,
        description="Whether to log SQL statements (use only for debugging)",
    )

    @field_validator("database_url", mode="after")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate the database URL uses one of the supported async drivers."""
        if not v.startswith(SUPPORTED_DATABASE_DRIVERS):
            msg = (
                "Database URL must use the postgresql+asyncpg:// or "
                "sqlite+aiosqlite:// driver for async support"
            )
            raise ValueError(msg)
        return v

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured database is SQLite."""
        return self.database_url.startswith("sqlite+aiosqlite://")


class SyncConfig(BaseModel):
    """Settings synchronization configuration."""

    backend: Literal["memory", "document", "table"] = Field(
        default="memory",
        description=(
            "Remote settings store: in-process memory, a composite JSON "
            "document per collection, or one table row per field"
        ),
    )
    collection_key: str = Field(
        default=DEFAULT_COLLECTION_KEY,
        min_length=1,
        description="Key addressing the settings record in the remote store",
    )
    read_timeout_ms: int = Field(
        default=DEFAULT_READ_TIMEOUT_MS,
        gt=0,
        description="Time budget for remote reads (milliseconds)",
    )
    write_timeout_ms: int = Field(
        default=DEFAULT_WRITE_TIMEOUT_MS,
        gt=0,
        description="Time budget for remote writes (milliseconds)",
    )
    fallback_path: str = Field(
        default=DEFAULT_FALLBACK_PATH,
        description="Local JSON file mirroring the last known settings",
    )


class Settings(BaseSettings):
    """Main settings class for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        env_nested_delimiter="__",
    )

    # Application settings
    app_name: str = Field(default="VATCalc", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Environment the application is running in",
    )
    debug: bool = Field(default=True, description="Debug mode flag")

    # API settings
    api_host: str = Field(default="127.0.0.1", description="API host")
    api_port: int = Field(default=8000, description="API port")
    docs_url: str | None = Field(default="/docs", description="Swagger UI URL")
    redoc_url: str | None = Field(default="/redoc", description="ReDoc URL")
    openapi_url: str | None = Field(
        default="/openapi.json", description="OpenAPI schema URL"
    )

    log_config: LogConfig = Field(
        default_factory=LogConfig, description="Logging configuration"
    )
    observability_config: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig, description="Observability configuration"
    )
    database_config: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    sync_config: SyncConfig = Field(
        default_factory=SyncConfig, description="Settings synchronization"
    )

    def model_post_init(self, __context: object) -> None:
        """Post initialization to set environment-based defaults."""
        super().model_post_init(__context)

        if self.log_config.log_formatter_type is None:
            self.log_config.log_formatter_type = self._detect_formatter()

        if self.environment == "production":
            if self.observability_config.exporter_type == "console":
                self.observability_config.exporter_type = "otlp"
            if self.observability_config.trace_sample_rate == 1.0:
                self.observability_config.trace_sample_rate = 0.1

    def _detect_formatter(self) -> Literal["console", "json"]:
        """Auto-detect log formatter based on environment."""
        # Containers on managed platforms expect one JSON object per line
        if os.getenv("K_SERVICE") or os.getenv("AWS_EXECUTION_ENV"):
            return "json"
        if self.environment == "development":
            return "console"
        return "json"

    @field_validator("docs_url", "redoc_url", "openapi_url", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for nullable fields."""
        _ = cls
        if v == "":
            return None
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
