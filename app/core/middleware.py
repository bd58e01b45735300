"""Middleware configuration for FastAPI application.

Provides:
- Request context middleware (request id, timing, structured request logs)
- CORS middleware setup
"""

import time
import uuid

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import MutableHeaders

from app.core.config import settings
from app.core.logging import HEALTH_ENDPOINTS, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware:
    """Bind a request id to the logging context and log each request.

    The id is taken from an incoming ``X-Request-ID`` header or generated, and
    echoed back on the response together with ``X-Process-Time``. Written as
    plain ASGI so streamed download bodies pass through untouched.
    """

    def __init__(self, app):
        self.app = app
        self.logger = get_logger("request")

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = None
        for key, value in scope.get("headers", []):
            if key.lower() == REQUEST_ID_HEADER.lower().encode():
                request_id = value.decode("latin-1")
                break
        request_id = request_id or uuid.uuid4().hex

        path = scope["path"]
        is_probe = path in HEALTH_ENDPOINTS
        start_time = time.perf_counter()
        status_code = 500

        structlog.contextvars.bind_contextvars(request_id=request_id)

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                headers = MutableHeaders(scope=message)
                headers[REQUEST_ID_HEADER] = request_id
                headers["X-Process-Time"] = str(round(time.perf_counter() - start_time, 4))
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            self.logger.exception("Request failed", method=scope["method"], path=path)
            raise
        else:
            if not is_probe:
                self.logger.info(
                    "Request completed",
                    method=scope["method"],
                    path=path,
                    status_code=status_code,
                    duration=round(time.perf_counter() - start_time, 4),
                )
        finally:
            structlog.contextvars.clear_contextvars()


def setup_cors_middleware(app: FastAPI) -> None:
    """Configure CORS middleware with settings from config.

    Args:
        app: FastAPI application instance
    """
    cors_origins = settings.resolved_cors_origins

    logger.info(
        "CORS configuration",
        origins=cors_origins,
        credentials=settings.CORS_CREDENTIALS,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=settings.CORS_CREDENTIALS,
        allow_methods=settings.CORS_METHODS,
        allow_headers=[*settings.CORS_HEADERS, REQUEST_ID_HEADER],
        # Readable by browser clients
        expose_headers=["Content-Disposition", REQUEST_ID_HEADER],
    )


def setup_all_middleware(app: FastAPI) -> None:
    """Setup all middleware in correct order.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(RequestContextMiddleware)

    # Added last so it is outermost and answers OPTIONS preflights first
    setup_cors_middleware(app)
