"""my-app — application lifespan (startup / shutdown hooks)."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = app.state.settings
    log.info(
        "my-app starting up",
        environment=settings.environment,
        version=settings.version,
    )
    yield
    log.info("my-app shutting down")
