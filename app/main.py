"""FastAPI Application Entry Point.

Worksheet library backend built with FastAPI, featuring:
- File upload and storage (Google Cloud Storage)
- Worksheet metadata in PostgreSQL (SQLAlchemy async)
- Listing, editing, deletion and downloads
- JWT bearer gate on mutating endpoints
"""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from app.core.config import settings
from app.core.logging import configure_logging, get_logger
from app.core.exceptions import setup_exception_handlers
from app.core.db_client import DatabaseManager
from app.core.gcs_client import GCSClient
from app.core.middleware import setup_all_middleware
from app.api.health import router as health_router
from app.api.v1.worksheets_main import router as worksheets_router

# Configure logging first
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management.

    Creates the metadata store handle, the blob store client and the HTTP
    client used for downloads, keeps them on ``app.state`` and closes them at
    shutdown.
    """
    logger.info(
        "Starting application",
        project_name=settings.PROJECT_NAME,
        version=settings.VERSION,
        environment=settings.ENVIRONMENT,
        debug=settings.DEBUG,
    )

    startup_tasks = []

    db = DatabaseManager.from_settings(settings)
    app.state.db = db
    try:
        await db.connect()
        if settings.DB_CREATE_TABLES:
            await db.create_tables()
            startup_tasks.append("Database tables created/verified")

        if await db.test_connection():
            startup_tasks.append("Database connected")
        else:
            logger.warning("Database connection test failed")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        if settings.is_production:
            raise

    storage = GCSClient.from_settings(settings)
    app.state.storage = storage
    if storage.is_initialized:
        startup_tasks.append(f"GCS bucket {storage.bucket_name} connected")
    else:
        logger.warning(
            "GCS client disabled, uploads will fail",
            reason=storage.initialization_error,
        )

    app.state.http_client = httpx.AsyncClient(
        timeout=settings.DOWNLOAD_TIMEOUT_SECONDS, follow_redirects=True
    )
    app.state.settings = settings

    logger.info("Application startup completed", tasks=startup_tasks)

    yield

    logger.info("Shutting down application")

    shutdown_tasks = []

    try:
        await app.state.http_client.aclose()
        shutdown_tasks.append("HTTP client closed")
    except Exception as e:
        logger.error("Error closing HTTP client", error=str(e))

    try:
        await db.close()
        shutdown_tasks.append("Database connections closed")
    except Exception as e:
        logger.error("Error closing database", error=str(e))

    logger.info("Application shutdown completed", tasks=shutdown_tasks)


# API Description
API_DESCRIPTION = """# Worksheet Library API

## Overview
Upload, browse and download printable worksheets. Files live in Google Cloud
Storage; metadata lives in PostgreSQL.

## Authentication
Uploading, editing and deleting require `Authorization: Bearer <token>`.
Listing, reading and downloading are public.

## Endpoints
- `POST /api/worksheets/upload` - Upload a worksheet
- `GET /api/worksheets` - List worksheets (`subject`, `category`, `grade` filters)
- `GET /api/worksheets/popular`, `GET /api/worksheets/recent` - Feeds
- `GET /api/worksheets/{id}` - Get one worksheet
- `PUT /api/worksheets/{id}` - Edit a worksheet
- `DELETE /api/worksheets/{id}` - Delete a worksheet
- `GET /api/worksheets/download/{id}` - Download the file
"""


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description=API_DESCRIPTION,
        openapi_url=f"{settings.API_PREFIX}/openapi.json" if settings.DEBUG else None,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    setup_all_middleware(app)
    setup_exception_handlers(app)

    # Health router (root level endpoints)
    app.include_router(health_router, tags=["Health"])

    # Worksheet router
    app.include_router(
        worksheets_router,
        prefix=f"{settings.API_PREFIX}/worksheets",
        tags=["Worksheets"],
    )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=True,
    )
