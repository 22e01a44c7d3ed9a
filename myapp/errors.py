"""my-app — exception handlers mapping failures onto JSON error bodies."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from servicekit.errors import (
    AppError,
    ErrorResponse,
    InternalServerError,
    NotFoundError,
    PayloadTooLargeError,
)

log = structlog.get_logger()

# Express-style routing: a path served only for other methods is still unmatched
_UNMATCHED_STATUSES = {status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED}


def _json(error: ErrorResponse, status_code: int) -> JSONResponse:
    return JSONResponse(error.model_dump(), status_code=status_code)


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


def describe_validation_errors(errors: list[dict[str, Any]]) -> str:
    """Flatten pydantic validation errors into one readable sentence."""
    parts = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        where = ".".join(loc) or "body"
        parts.append(f"{where}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    # The body limit middleware logs and answers oversized bodies itself
    if isinstance(exc, PayloadTooLargeError):
        return _json(exc.to_response(), int(exc.status_code))
    log.warning(
        "request_rejected",
        url=str(request.url),
        method=request.method,
        status_code=int(exc.status_code),
        error=exc.message,
    )
    return _json(exc.to_response(), int(exc.status_code))


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    message = describe_validation_errors(list(exc.errors()))
    log.warning(
        "request_validation_failed",
        url=str(request.url),
        method=request.method,
        error=message,
    )
    return _json(
        ErrorResponse(error=HTTPStatus.BAD_REQUEST.phrase, message=message),
        status.HTTP_400_BAD_REQUEST,
    )


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if exc.status_code in _UNMATCHED_STATUSES:
        log.warning(
            "404 - Not Found",
            url=str(request.url),
            method=request.method,
            ip=_client_ip(request),
        )
        return _json(NotFoundError().to_response(), status.HTTP_404_NOT_FOUND)

    log.warning(
        "http_error",
        url=str(request.url),
        method=request.method,
        status_code=exc.status_code,
        error=exc.detail,
    )
    try:
        reason = HTTPStatus(exc.status_code).phrase
    except ValueError:
        reason = "Error"
    response = _json(
        ErrorResponse(error=reason, message=str(exc.detail)), exc.status_code
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error(
        "unhandled_error",
        url=str(request.url),
        method=request.method,
        error=str(exc),
        exc_info=exc,
    )
    return _json(
        InternalServerError().to_response(), status.HTTP_500_INTERNAL_SERVER_ERROR
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
