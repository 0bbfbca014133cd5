"""
Observability hooks.
Exceptions and billing run outcomes are reported through structured logs.
"""

from typing import Any, Optional
from fastapi import Request
import logging

from autobilling.core.config import settings

logger = logging.getLogger(__name__)


def setup_observability() -> None:
    """
    Initialize observability for the process.

    TODO: Export traces through an OpenTelemetry OTLP exporter once the
    collector endpoint is provisioned for this service.
    """
    logger.info(
        "Setting up observability",
        extra={
            "service_name": settings.OTEL_SERVICE_NAME,
            "environment": settings.OTEL_ENVIRONMENT,
        },
    )


def record_exception(exc: Exception, request: Optional[Request] = None) -> None:
    """
    Record an exception in the observability backend.

    Args:
        exc: The exception that occurred
        request: The FastAPI request object, if raised while serving one
    """
    logger.error(
        f"Exception recorded: {type(exc).__name__}",
        extra={
            "exception_message": str(exc),
            "path": request.url.path if request is not None else None,
        },
    )


def record_billing_run(results: Any) -> None:
    """
    Record the outcome of an auto-billing run.

    Args:
        results: RunReport produced by the run
    """
    logger.info(
        "Auto-billing run recorded",
        extra={
            "service_name": settings.OTEL_SERVICE_NAME,
            "processed_count": results.processed,
            "created_count": results.created,
            "skipped_count": results.skipped,
            "error_count": len(results.errors),
        },
    )
