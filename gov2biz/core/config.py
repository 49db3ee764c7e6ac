"""Centralized configuration management with environment-aware defaults.

Settings are loaded with Pydantic Settings, so every value is typed and
validated and can be overridden through environment variables or a ``.env``
file. Nested sections use the ``__`` delimiter, for example
``TENANT_CONFIG__HEADER_NAME=X-Org-ID`` or
``LOG_CONFIG__MAX_BODY_CAPTURE_BYTES=4096``.

Configuration sources (in order of precedence):
1. Environment variables
2. .env file in project root
3. Default values in model definitions
4. Environment-based defaults (production vs development)

Everything here is loaded once at startup and treated as read-only by the
request pipeline.
"""

import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogConfig(BaseModel):
    """Logging and request logging configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_formatter_type: Literal["console", "json"] | None = Field(
        default=None,
        description="Log output formatter. Auto-detected if not specified.",
    )
    log_file_path: str | None = Field(
        default=None,
        description="Optional path of a rolling JSON log file",
    )
    log_file_retention: int = Field(
        default=30,
        ge=1,
        description="Number of rotated log files to keep",
    )
    slow_request_threshold_ms: int = Field(
        default=1000,
        gt=0,
        description="Threshold for slow request warnings (milliseconds)",
    )
    max_body_capture_bytes: int = Field(
        default=2048,
        ge=0,
        description="Request bodies at or above this size are never captured",
    )
    body_capture_methods: list[str] = Field(
        default_factory=lambda: ["POST", "PUT", "PATCH", "DELETE"],
        description="Non-GET HTTP methods whose request body may be captured",
    )
    sensitive_fields: list[str] = Field(
        default_factory=lambda: [
            "password",
            "token",
            "secret",
            "api_key",
            "authorization",
        ],
        description="Field names to redact",
    )

    @field_validator("log_file_path", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for nullable fields."""
        if v == "":
            return None
        return v

    @field_validator("body_capture_methods", mode="after")
    @classmethod
    def uppercase_methods(cls, v: list[str]) -> list[str]:
        """Normalize HTTP method names to upper case."""
        return [method.upper() for method in v]


class TenantConfig(BaseModel):
    """Tenant resolution configuration."""

    header_name: str = Field(
        default="X-Tenant-ID",
        min_length=1,
        description="Request header carrying the tenant identifier",
    )
    exempt_path_prefixes: list[str] = Field(
        default_factory=lambda: ["/healthz", "/health", "/api/auth"],
        description="Path prefixes that are reachable without a tenant",
    )

    @field_validator("exempt_path_prefixes", mode="after")
    @classmethod
    def normalize_prefixes(cls, v: list[str]) -> list[str]:
        """Require absolute prefixes and drop trailing slashes."""
        normalized = []
        for prefix in v:
            if not prefix.startswith("/"):
                msg = f"Exempt path prefix must start with '/': {prefix!r}"
                raise ValueError(msg)
            normalized.append(prefix.rstrip("/") or "/")
        return normalized


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


class Settings(BaseSettings):
    """Main settings class for a Gov2Biz service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        env_nested_delimiter="__",
    )

    # Application settings
    app_name: str = Field(default="Gov2Biz", description="Service name")
    app_version: str = Field(default="1.0.0", description="Service version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Environment the service is running in",
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
    tenant_config: TenantConfig = Field(
        default_factory=TenantConfig, description="Tenant resolution configuration"
    )
    observability_config: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig, description="Tracing configuration"
    )

    def model_post_init(self, __context: object) -> None:
        """Post initialization to set environment-based defaults."""
        super().model_post_init(__context)

        if self.log_config.log_formatter_type is None:
            self.log_config.log_formatter_type = self._detect_formatter()

        if (
            self.environment == "production"
            and self.observability_config.trace_sample_rate == 1.0
        ):
            self.observability_config.trace_sample_rate = 0.1

    def _detect_formatter(self) -> Literal["console", "json"]:
        """Auto-detect log formatter based on environment."""
        # Containers usually ship logs to a collector that wants JSON
        if os.getenv("KUBERNETES_SERVICE_HOST"):
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
