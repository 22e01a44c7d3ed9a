"""Reusable health-check router.

Provides ``/health`` (liveness) and ``/ready`` (readiness) endpoints.
The readiness probe runs named async callables that must all succeed; without
explicit checks it reports the placeholder set ``database``, ``redis`` and
``external_apis`` as ``ok``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping

import structlog
from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from servicekit.process import uptime_seconds, utc_now_iso

log = structlog.get_logger()

HealthCheck = Callable[[], Awaitable[bool]]


class HealthStatus(BaseModel):
    status: str
    timestamp: str
    uptime: float
    environment: str
    version: str


class ReadinessStatus(BaseModel):
    status: str
    timestamp: str
    checks: dict[str, str]


async def placeholder_check() -> bool:
    """Stand-in probe for a dependency the service does not talk to yet."""
    return True


DEFAULT_READINESS_CHECKS: Mapping[str, HealthCheck] = {
    "database": placeholder_check,
    "redis": placeholder_check,
    "external_apis": placeholder_check,
}


def create_health_router(
    *,
    environment: str,
    version: str,
    readiness_checks: Mapping[str, HealthCheck] | None = None,
) -> APIRouter:
    """Build a health router with optional readiness probes.

    Args:
        environment: Deployment environment reported by the liveness probe.
        version: Application version reported by the liveness probe.
        readiness_checks: Check name to async callable returning True if healthy.

    Returns:
        A FastAPI ``APIRouter`` with ``/health`` and ``/ready``.
    """
    router = APIRouter(tags=["health"])
    checks = dict(
        readiness_checks if readiness_checks is not None else DEFAULT_READINESS_CHECKS
    )

    @router.get("/health", summary="Liveness probe", response_model=HealthStatus)
    async def liveness() -> HealthStatus:
        health = HealthStatus(
            status="healthy",
            timestamp=utc_now_iso(),
            uptime=uptime_seconds(),
            environment=environment,
            version=version,
        )
        log.info("health_check_requested", health=health.model_dump())
        return health

    @router.get("/ready", summary="Readiness probe", response_model=ReadinessStatus)
    async def readiness(response: Response) -> ReadinessStatus:
        results: dict[str, str] = {}
        all_ok = True

        for name, check in checks.items():
            try:
                ok = await check()
                results[name] = "ok" if ok else "failing"
                if not ok:
                    all_ok = False
            except Exception as exc:
                log.warning("readiness_check_error", check=name, error=str(exc))
                results[name] = f"error: {exc}"
                all_ok = False

        if not all_ok:
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

        ready = ReadinessStatus(
            status="ready" if all_ok else "unavailable",
            timestamp=utc_now_iso(),
            checks=results,
        )
        log.info("readiness_check_requested", ready=ready.model_dump())
        return ready

    return router
