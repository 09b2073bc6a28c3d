"""
Error classification and the FastAPI handlers that render it.

Stores and services raise these instead of HTTPException so that the kind of
failure (validation, not-found, conflict, ...) stays independent of the
transport. Handlers registered by `register_error_handlers` map each kind to
its status code.

Response body for every error:
    {"detail": "<message>", "code": "<ERROR_CODE>"}
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

GENERIC_INTERNAL_MESSAGE = "Internal server error."


class AppError(Exception):
    """Base class for all classified application errors."""

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AppError):
    """Malformed or out-of-range input."""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class UnauthorizedError(AppError):
    status_code = 401
    error_code = "UNAUTHORIZED"


class NotFoundError(AppError):
    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, **identifiers: Any):
        super().__init__(f"{resource} not found", resource=resource, **identifiers)


class ConflictError(AppError):
    status_code = 409
    error_code = "CONFLICT"


class ReferentialError(AppError):
    """A car names an engine that does not exist."""

    status_code = 409
    error_code = "REFERENTIAL_ERROR"


class InternalError(AppError):
    """
    Transaction or connectivity failure.

    The message is logged, never sent to the client.
    """

    status_code = 500
    error_code = "INTERNAL_ERROR"


def _error_response(status_code: int, error_code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "code": error_code},
    )


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = str(first.get("msg") or "Invalid value.")
    return f"{location}: {message}" if location else message


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        if isinstance(exc, InternalError):
            logger.error(
                "internal_error method=%s path=%s message=%s details=%s",
                request.method,
                request.url.path,
                exc.message,
                exc.details,
                exc_info=exc,
            )
            return _error_response(exc.status_code, exc.error_code, GENERIC_INTERNAL_MESSAGE)

        logger.warning(
            "request_failed method=%s path=%s code=%s message=%s",
            request.method,
            request.url.path,
            exc.error_code,
            exc.message,
        )
        return _error_response(exc.status_code, exc.error_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = _first_validation_message(exc)
        logger.warning(
            "request_invalid method=%s path=%s message=%s",
            request.method,
            request.url.path,
            message,
        )
        return _error_response(ValidationError.status_code, ValidationError.error_code, message)

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unhandled_error method=%s path=%s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return _error_response(500, InternalError.error_code, GENERIC_INTERNAL_MESSAGE)
