"""my-app — environment-based configuration."""

from __future__ import annotations

from fastapi import Request
from pydantic import AliasChoices, Field

from servicekit.config import BaseServiceSettings


class AppSettings(BaseServiceSettings):
    """Settings specific to my-app."""

    service_name: str = "my-app"
    port: int = Field(
        default=3000,
        validation_alias=AliasChoices("port", "service_port"),
    )

    # Seconds to wait for in-flight requests after SIGTERM before exit(1)
    shutdown_timeout: float = 30.0


settings = AppSettings()


def get_settings(request: Request) -> AppSettings:
    """FastAPI dependency returning the settings the app was built with."""
    return request.app.state.settings
