"""Shared plumbing for small FastAPI services."""

from servicekit.config import BaseServiceSettings
from servicekit.errors import AppError, BadRequestError, ErrorResponse
from servicekit.logging import setup_logging

__all__ = [
    "AppError",
    "BadRequestError",
    "BaseServiceSettings",
    "ErrorResponse",
    "setup_logging",
]
