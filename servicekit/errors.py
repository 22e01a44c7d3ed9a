"""Service error types and the JSON error envelope.

Every error leaves the service as ``{"error": <reason>, "message": <detail>}``.
"""

from __future__ import annotations

from http import HTTPStatus

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str
    message: str


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def error(self) -> str:
        return HTTPStatus(self.status_code).phrase

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.error, message=self.message)


class BadRequestError(AppError):
    status_code = HTTPStatus.BAD_REQUEST


class NotFoundError(AppError):
    status_code = HTTPStatus.NOT_FOUND

    def __init__(self, message: str = "The requested resource was not found") -> None:
        super().__init__(message)


class PayloadTooLargeError(AppError):
    status_code = HTTPStatus.REQUEST_ENTITY_TOO_LARGE

    def __init__(self, limit: int) -> None:
        super().__init__(f"Request body exceeds {limit} bytes")
        self.limit = limit

    @property
    def error(self) -> str:
        return "Payload Too Large"


class InternalServerError(AppError):
    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(message)
