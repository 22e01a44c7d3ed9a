"""my-app — informational and echo API endpoints."""

from __future__ import annotations

import json
import os
import platform

import structlog
from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from myapp.core.config import AppSettings, get_settings
from myapp.errors import describe_validation_errors
from myapp.schemas.echo import EchoRequest, EchoResponse
from myapp.schemas.info import AppInfo, CpuUsage, MemoryUsage
from servicekit.errors import BadRequestError
from servicekit.process import cpu_usage, memory_usage, uptime_seconds, utc_now_iso

router = APIRouter(prefix="/api", tags=["api"])

log = structlog.get_logger()


@router.get("/info", response_model=AppInfo, summary="Process metadata")
async def info(settings: AppSettings = Depends(get_settings)) -> AppInfo:
    """Report version, uptime and resource usage of the serving process."""
    app_info = AppInfo(
        application=settings.service_name,
        version=settings.version,
        environment=settings.environment,
        python_version=platform.python_version(),
        pid=os.getpid(),
        uptime=uptime_seconds(),
        memory=MemoryUsage(**memory_usage()),
        cpu=CpuUsage(**cpu_usage()),
    )
    log.info("info_endpoint_accessed", info=app_info.model_dump())
    return app_info


_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


async def read_echo_payload(request: Request) -> EchoRequest | None:
    """Parse the echo body from JSON or from a URL-encoded form."""
    content_type = request.headers.get("content-type", "")
    if content_type.split(";")[0].strip().lower() == _FORM_CONTENT_TYPE:
        form = await request.form()
        data: object = dict(form)
    else:
        body = await request.body()
        if not body.strip():
            return None
        try:
            data = json.loads(body)
        except ValueError as exc:
            raise BadRequestError(f"body: Invalid JSON ({exc})") from exc

    if data is None:
        return None
    try:
        return EchoRequest.model_validate(data)
    except ValidationError as exc:
        raise BadRequestError(describe_validation_errors(exc.errors())) from exc


@router.post("/echo", response_model=EchoResponse, summary="Echo a message back")
async def echo(
    payload: EchoRequest | None = Depends(read_echo_payload),
) -> EchoResponse:
    """Return the submitted message with its length in characters."""
    if payload is None or not payload.message:
        raise BadRequestError("Message is required")

    response = EchoResponse(
        echo=payload.message,
        timestamp=utc_now_iso(),
        length=len(payload.message),
    )
    log.info("echo_endpoint_accessed", request=payload.message, response=response.model_dump())
    return response
