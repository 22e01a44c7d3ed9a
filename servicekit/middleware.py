"""ASGI middleware shared by HTTP services.

- ``RequestContextMiddleware`` binds a per-request ``X-Request-ID`` into
  structlog context vars and writes one access-log event per request.
- ``SecurityHeadersMiddleware`` stamps conservative security headers.
- ``UnhandledErrorMiddleware`` answers uncaught exceptions from inside the stack.
- ``BodySizeLimitMiddleware`` rejects request bodies above a byte limit.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Awaitable, Callable, Mapping

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from servicekit.errors import PayloadTooLargeError
from servicekit.logging import get_logger

logger = get_logger("http")

_REQUEST_HEADER = "X-Request-ID"

DEFAULT_SECURITY_HEADERS: Mapping[str, str] = {
    "Content-Security-Policy": (
        "default-src 'self';base-uri 'self';font-src 'self' https: data:;"
        "form-action 'self';frame-ancestors 'self';img-src 'self' data:;"
        "object-src 'none';script-src 'self';script-src-attr 'none';"
        "style-src 'self' https: 'unsafe-inline';upgrade-insecure-requests"
    ),
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Injects a request ID into each request and logs the completed exchange."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(_REQUEST_HEADER) or str(uuid.uuid4())

        # Bind to structlog context vars so every log line includes the ID
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        status_code = 500
        try:
            response: Response = await call_next(request)
            status_code = response.status_code
        finally:
            logger.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                query=request.url.query or None,
                status_code=status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 3),
                client_ip=request.client.host if request.client else None,
                user_agent=request.headers.get("user-agent"),
                referrer=request.headers.get("referer"),
                http_version=request.scope.get("http_version"),
            )

        response.headers[_REQUEST_HEADER] = request_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds security headers that the handler did not set itself."""

    def __init__(
        self, app: ASGIApp, headers: Mapping[str, str] | None = None
    ) -> None:
        super().__init__(app)
        self._headers = dict(headers if headers is not None else DEFAULT_SECURITY_HEADERS)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        for name, value in self._headers.items():
            response.headers.setdefault(name, value)
        return response


ExceptionHandler = Callable[[Request, Exception], Awaitable[Response]]


class UnhandledErrorMiddleware:
    """Turns uncaught exceptions into a response inside the middleware stack.

    Installed innermost, so the outer middleware still stamps request IDs,
    CORS and security headers on the error response. Exceptions raised after
    the response has started are re-raised to the server.
    """

    def __init__(self, app: ASGIApp, handler: ExceptionHandler) -> None:
        self.app = app
        self.handler = handler

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, tracking_send)
        except Exception as exc:
            if response_started:
                raise
            response = await self.handler(Request(scope, receive), exc)
            await response(scope, receive, send)


class BodySizeLimitMiddleware:
    """Rejects request bodies larger than ``max_body_bytes`` with 413.

    A declared ``Content-Length`` over the limit is answered before the app
    runs. Streamed bodies are counted as they are received; once they cross the
    limit the app's own response is discarded and replaced by the 413.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = _content_length(scope)
        if declared is not None and declared > self.max_body_bytes:
            await self._reject(scope, receive, send, size=declared)
            return

        received = 0
        exceeded = False

        async def limited_receive() -> Message:
            nonlocal received, exceeded
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    exceeded = True
                    raise PayloadTooLargeError(self.max_body_bytes)
            return message

        async def guarded_send(message: Message) -> None:
            if not exceeded:
                await send(message)

        try:
            await self.app(scope, limited_receive, guarded_send)
        except Exception:
            if not exceeded:
                raise

        if exceeded:
            await self._reject(scope, receive, send, size=received)

    async def _reject(
        self, scope: Scope, receive: Receive, send: Send, *, size: int
    ) -> None:
        error = PayloadTooLargeError(self.max_body_bytes)
        logger.warning(
            "payload_too_large",
            path=scope.get("path"),
            method=scope.get("method"),
            size=size,
            limit=self.max_body_bytes,
        )
        response = JSONResponse(
            error.to_response().model_dump(), status_code=int(error.status_code)
        )
        await response(scope, receive, send)


def _content_length(scope: Scope) -> int | None:
    for name, value in scope.get("headers", []):
        if name == b"content-length":
            try:
                return int(value)
            except ValueError:
                return None
    return None
