import logging
import logging.config
from typing import Any, Dict, Optional

import structlog

from app.core.config import Settings, settings

HEALTH_ENDPOINTS = ("/health", "/ready", "/live")

# Chatty client libraries (HTTP, GCS SDK, drivers, Pillow) only report warnings
QUIET_LOGGERS = ("httpx", "httpcore", "google", "urllib3", "PIL", "asyncpg", "aiosqlite")


def _renderer(config: Settings):
    if config.LOG_FORMAT == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def build_logging_config(config: Settings) -> Dict[str, Any]:
    """Build the ``dictConfig`` for stdlib, uvicorn and library loggers."""
    if config.LOG_FORMAT == "json":
        formatter: Dict[str, Any] = {
            "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
            "fmt": "%(asctime)s %(name)s %(levelname)s %(message)s",
        }
    else:
        formatter = {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        }

    loggers: Dict[str, Any] = {
        "": {"level": config.LOG_LEVEL, "handlers": ["default"], "propagate": False},
        "uvicorn.error": {"level": "INFO", "handlers": ["default"], "propagate": False},
        "uvicorn.access": {"level": "INFO", "handlers": ["access"], "propagate": False},
        "sqlalchemy.engine": {
            "level": "INFO" if config.DB_ECHO else "WARNING",
            "handlers": ["default"],
            "propagate": False,
        },
    }
    for name in QUIET_LOGGERS:
        loggers[name] = {"level": "WARNING", "handlers": ["default"], "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "health_check_filter": {"()": "app.core.logging.HealthCheckFilter"},
        },
        "formatters": {"default": formatter},
        "handlers": {
            "default": {
                "formatter": "default",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
            },
            "access": {
                "formatter": "default",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "filters": ["health_check_filter"],
            },
        },
        "loggers": loggers,
    }


def configure_logging(config: Optional[Settings] = None) -> None:
    """Configure structlog and standard logging based on settings."""
    config = config or settings

    structlog.configure(
        processors=[
            # request_id bound by RequestContextMiddleware
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _renderer(config),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(build_logging_config(config))


class HealthCheckFilter(logging.Filter):
    """Filter out probe requests from uvicorn access logs."""

    def filter(self, record):
        message = record.getMessage()
        return not any(f'"GET {endpoint} ' in message for endpoint in HEALTH_ENDPOINTS)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def get_api_logger() -> structlog.BoundLogger:
    return get_logger("api")


def get_auth_logger() -> structlog.BoundLogger:
    return get_logger("auth")


def get_service_logger(service_name: str) -> structlog.BoundLogger:
    """Get service-specific logger."""
    return get_logger(f"service.{service_name}")
