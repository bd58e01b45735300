"""Service info and health probes (``/``, ``/health``, ``/ready``, ``/live``)."""

import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.db_client import DatabaseManager, get_db
from app.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])

DB_PROBE_TIMEOUT = 5.0


async def _database_failure(db: DatabaseManager) -> Optional[str]:
    """Return why the metadata store is unusable, or None when it answers."""
    try:
        if await db.test_connection(timeout=DB_PROBE_TIMEOUT):
            return None
        return "Database not ready"
    except Exception as e:
        logger.error("Database probe raised", error=str(e))
        return str(e)


async def _storage_status(request: Request) -> str:
    storage = getattr(request.app.state, "storage", None)
    if storage is None or not storage.is_initialized:
        return "disabled"
    if await storage.health_check_async():
        return "connected"
    return "unreachable"


@router.get("/")
async def root() -> Dict[str, Any]:
    return {
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "status": "running",
        "docs": "/docs" if settings.DEBUG else None,
        "health": "/health",
        "worksheets": f"{settings.API_PREFIX}/worksheets",
    }


@router.get("/health")
async def health_check(request: Request, db: DatabaseManager = Depends(get_db)):
    """Report database and storage state.

    Answers 503 while the database cannot be reached. Storage state
    (disabled, connected or unreachable bucket) is reported but does not
    fail the check.
    """
    failure = await _database_failure(db)
    body: Dict[str, Any] = {
        "status": "unhealthy" if failure else "healthy",
        "timestamp": time.time(),
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "database": "unavailable" if failure else "connected",
        "storage": await _storage_status(request),
    }

    if failure:
        logger.warning("Health check failed", reason=failure)
        body["error"] = failure
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return body


@router.get("/ready")
async def readiness_check(db: DatabaseManager = Depends(get_db)):
    failure = await _database_failure(db)
    if failure:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"ready": False, "reason": failure, "timestamp": time.time()},
        )
    return {"ready": True, "timestamp": time.time()}


@router.get("/live")
async def liveness_check() -> Dict[str, Any]:
    return {"alive": True, "timestamp": time.time()}
