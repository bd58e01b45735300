"""Exceptions and exception handlers.

Worksheet endpoints raise ``WorksheetAPIError`` and answer with a flat
``{"message": ..., "error": ...}`` body. Everything else (auth failures,
malformed requests, cloud SDK errors, crashes) answers with the
``{"error": {"code", "message", "request_id", ...}}`` envelope.
"""

import traceback
import uuid
from typing import Any, Dict, Optional

import structlog
from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from google.api_core.exceptions import GoogleAPIError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class WorksheetAPIError(Exception):
    """Error rendered as the worksheet endpoints' ``{"message", "error"}`` body."""

    def __init__(
        self,
        status_code: int,
        message: str,
        cause: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.cause = cause


def current_request_id() -> str:
    """Request id bound by the request middleware, or a fresh short id."""
    request_id = structlog.contextvars.get_contextvars().get("request_id")
    return request_id or uuid.uuid4().hex[:8]


def create_error_response(
    status_code: int,
    message: str,
    error_code: str = "INTERNAL_ERROR",
    details: Optional[Dict[str, Any]] = None,
    request_path: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Create the standard error envelope."""
    body: Dict[str, Any] = {
        "code": error_code,
        "message": message,
        "request_id": current_request_id(),
    }
    if details:
        body["details"] = details
    if request_path:
        body["path"] = request_path

    return JSONResponse(status_code=status_code, content={"error": body}, headers=headers)


async def worksheet_api_exception_handler(
    request: Request, exc: WorksheetAPIError
) -> JSONResponse:
    """Render worksheet endpoint errors as ``{"message": ..., "error": ...}``."""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "Worksheet request failed",
        status_code=exc.status_code,
        message=exc.message,
        cause=exc.cause,
        path=request.url.path,
        method=request.method,
    )

    content: Dict[str, Any] = {"message": exc.message}
    if exc.cause is not None:
        content["error"] = exc.cause

    return JSONResponse(status_code=exc.status_code, content=content)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle FastAPI and Starlette HTTP exceptions (401s from the bearer gate, 404s, 405s)."""
    logger.warning(
        "HTTP exception occurred",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
        method=request.method,
    )

    error_code = (
        "UNAUTHORIZED"
        if exc.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)
        else "HTTP_ERROR"
    )
    return create_error_response(
        status_code=exc.status_code,
        message=str(exc.detail),
        error_code=error_code,
        request_path=request.url.path,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors."""
    logger.warning(
        "Validation exception occurred",
        errors=exc.errors(),
        path=request.url.path,
        method=request.method,
    )

    # Raw inputs may be uploaded bytes and are left out
    formatted_errors = [
        {
            "field": ".".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message="Request validation failed",
        error_code="VALIDATION_ERROR",
        details={"validation_errors": formatted_errors},
        request_path=request.url.path,
    )


async def google_api_exception_handler(
    request: Request, exc: GoogleAPIError
) -> JSONResponse:
    """Handle Google Cloud API errors that escaped the GCS client wrapper."""
    logger.error(
        "Google API exception occurred",
        error=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )

    # Don't expose internal errors in production
    message = "Cloud service error occurred" if settings.is_production else str(exc)

    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message=message,
        error_code="CLOUD_SERVICE_ERROR",
        request_path=request.url.path,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other unhandled exceptions."""
    logger.error(
        "Unhandled exception occurred",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )

    if settings.is_development:
        details = {
            "error_type": type(exc).__name__,
            "traceback": traceback.format_exception(exc),
        }
        message = str(exc)
    else:
        details = None
        message = "An unexpected error occurred"

    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message=message,
        error_code="INTERNAL_ERROR",
        details=details,
        request_path=request.url.path,
    )


def setup_exception_handlers(app):
    """Setup all exception handlers for the FastAPI app."""

    # Worksheet endpoint errors ({"message", "error"} body)
    app.add_exception_handler(WorksheetAPIError, worksheet_api_exception_handler)

    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(GoogleAPIError, google_api_exception_handler)

    # Catch-all
    app.add_exception_handler(Exception, general_exception_handler)
