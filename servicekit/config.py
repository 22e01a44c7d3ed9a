"""Base configuration using Pydantic Settings.

Service settings should inherit from ``BaseServiceSettings``.
Values are loaded from environment variables and .env files.
"""

from __future__ import annotations

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseServiceSettings(BaseSettings):
    """Common settings shared by every HTTP service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── General ───────────────────────────────
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("environment", "app_env"),
    )
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool | None = None
    service_name: str = "service"
    version: str = Field(
        default="1.0.0",
        validation_alias=AliasChoices("version", "app_version"),
    )

    # ── HTTP ──────────────────────────────────
    host: str = "0.0.0.0"
    port: int = Field(
        default=8000,
        validation_alias=AliasChoices("port", "service_port"),
    )
    max_body_bytes: int = 10 * 1024 * 1024

    @field_validator("port")
    @classmethod
    def validate_port(cls, value: int) -> int:
        if not (1 <= value <= 65535):
            raise ValueError("PORT must be between 1 and 65535")
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def json_logs(self) -> bool:
        if self.log_json is not None:
            return self.log_json
        return self.is_production
