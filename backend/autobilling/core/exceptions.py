"""
Application exceptions and global exception handlers for the FastAPI application.
Serializes exceptions into structured logs and JSON error bodies.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
from typing import Any

from autobilling.core.integrations.observability import record_exception


logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""
    def __init__(self, message: str, status_code: int = 500, details: Any = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class InvalidBillingConfiguration(AppException):
    """Raised when a service's billing configuration cannot produce a valid period."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, details=details)


class BillingRunError(AppException):
    """Raised when an auto-billing run cannot start (the due-services query failed)."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, details=details)


def error_response(request: Request, status_code: int, message: Any, **fields) -> JSONResponse:
    """Build the JSON error body shared by every handler except the run trigger."""
    body = {"message": message, "path": request.url.path}
    body.update({key: value for key, value in fields.items() if value is not None})
    return JSONResponse(status_code=status_code, content={"error": body})


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle application exceptions raised outside a billing run."""
    logger.error(
        f"{type(exc).__name__}: {exc.message}",
        extra={"status_code": exc.status_code, "path": request.url.path, "details": exc.details},
    )
    record_exception(exc, request)
    return error_response(request, exc.status_code, exc.message, details=exc.details)


async def billing_run_error_handler(request: Request, exc: BillingRunError) -> JSONResponse:
    """
    Answer a run that could not start.

    The cron trigger reads ``{"status": "error", "error": ...}``, so this body
    does not use the shared error envelope.
    """
    logger.error(f"Auto-billing run failed: {exc.message}", extra={"path": request.url.path})
    record_exception(exc, request)
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": "error", "error": exc.message},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions such as unknown payment ids."""
    logger.warning(
        f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}",
        extra={"status_code": exc.status_code},
    )
    return error_response(request, exc.status_code, exc.detail)


def _jsonable_errors(errors: list) -> list:
    """Stringify exception objects pydantic leaves in validation error contexts."""
    cleaned = []
    for error in errors:
        error = dict(error)
        ctx = error.get("ctx")
        if isinstance(ctx, dict):
            error["ctx"] = {key: str(value) if isinstance(value, Exception) else value for key, value in ctx.items()}
        cleaned.append({key: str(value) if isinstance(value, Exception) else value for key, value in error.items()})
    return cleaned


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle malformed query parameters, e.g. a ``today`` that is not an ISO date."""
    errors = _jsonable_errors(exc.errors())
    logger.warning(f"Validation error on {request.url.path}", extra={"errors": errors})
    return error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error", details=errors)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without leaking their text."""
    logger.exception(
        f"Unhandled exception on {request.url.path}",
        extra={"exception_type": type(exc).__name__},
    )
    record_exception(exc, request)
    return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(BillingRunError, billing_run_error_handler)
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
