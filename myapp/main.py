"""my-app — FastAPI application factory.

Serves health, readiness, info and echo endpoints behind the shared
middleware stack.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from myapp.core.config import AppSettings, settings as default_settings
from myapp.core.events import lifespan
from myapp.errors import register_error_handlers, unhandled_error_handler
from myapp.routers import health
from myapp.routers.api import router as api_router
from myapp.routers.root import router as root_router

from servicekit.logging import setup_logging
from servicekit.middleware import (
    BodySizeLimitMiddleware,
    RequestContextMiddleware,
    SecurityHeadersMiddleware,
    UnhandledErrorMiddleware,
)


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Construct and return the FastAPI application."""
    settings = settings or default_settings

    setup_logging(
        log_level=settings.log_level,
        json_logs=settings.json_logs,
        service_name=settings.service_name,
    )

    application = FastAPI(
        title="My App",
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )
    application.state.settings = settings

    register_error_handlers(application)

    # Added innermost first: request context wraps everything else
    application.add_middleware(UnhandledErrorMiddleware, handler=unhandled_error_handler)
    application.add_middleware(
        BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(SecurityHeadersMiddleware)
    application.add_middleware(RequestContextMiddleware)

    # Routers
    application.include_router(health.build_router(settings))
    application.include_router(root_router)
    application.include_router(api_router)

    return application
