"""my-app — welcome endpoint."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends

from myapp.core.config import AppSettings, get_settings
from myapp.schemas.info import Welcome
from servicekit.process import utc_now_iso

router = APIRouter(tags=["root"])

log = structlog.get_logger()

WELCOME_MESSAGE = "Welcome to My App!"


@router.get("/", response_model=Welcome, summary="Welcome message")
async def root(settings: AppSettings = Depends(get_settings)) -> Welcome:
    response = Welcome(
        message=WELCOME_MESSAGE,
        timestamp=utc_now_iso(),
        environment=settings.environment,
        version=settings.version,
    )
    log.info("root_endpoint_accessed", response=response.model_dump())
    return response
