"""Conversion of buildreg exceptions into structured JSON error responses."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from buildreg.api.schemas import APIError, ErrorDetail, PerformanceInfo
from buildreg.core.exceptions import (
    BuildregError,
    NotFoundError,
    UpstreamTimeoutError,
    ValidationError,
)
from buildreg.core.types import ErrorCode

logger = logging.getLogger(__name__)


def status_for(exc: Exception) -> int:
    """HTTP status for an exception: 504 timeout, 400 bad input, 500 otherwise."""
    if isinstance(exc, UpstreamTimeoutError):
        return 504
    if isinstance(exc, (ValidationError, RequestValidationError)):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    return 500


def error_response(
    exc: Exception,
    *,
    performance: PerformanceInfo | None = None,
) -> JSONResponse:
    """Build the ``{"error": {message, code, timestamp}}`` response for ``exc``."""
    if isinstance(exc, BuildregError):
        message, code = exc.message, exc.code
    elif isinstance(exc, RequestValidationError):
        message, code = _validation_message(exc), ErrorCode.BAD_REQUEST
    else:
        message, code = str(exc) or "Unknown error", ErrorCode.INTERNAL_ERROR

    body = APIError(
        error=ErrorDetail(message=message, code=code, timestamp=datetime.now(timezone.utc)),
        performance=performance,
    )
    return JSONResponse(
        status_code=status_for(exc),
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg", "Invalid request")


async def buildreg_error_handler(request: Request, exc: BuildregError) -> JSONResponse:
    if status_for(exc) >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", extra={"details": exc.details})
    return error_response(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(exc)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"{request.method} {request.url.path} failed unexpectedly: {exc}")
    return error_response(exc)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BuildregError, buildreg_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
