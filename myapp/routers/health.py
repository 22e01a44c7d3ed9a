"""my-app — health-check endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from myapp.core.config import AppSettings
from servicekit.health import create_health_router


def build_router(settings: AppSettings) -> APIRouter:
    # Readiness reports the placeholder checks until real dependencies exist
    return create_health_router(
        environment=settings.environment,
        version=settings.version,
    )
