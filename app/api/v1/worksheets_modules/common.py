"""
Shared utilities and dependencies for worksheet API endpoints.

Service exceptions are translated here into ``WorksheetAPIError`` so every
worksheet endpoint answers with the same ``{"message", "error"}`` body.
"""

from typing import Any, Dict

from fastapi import Depends, status

from app.core.exceptions import WorksheetAPIError
from app.core.logging import get_api_logger
from app.core.security import require_admin
from app.services.worksheet import (
    WorksheetDownloadError,
    WorksheetFileNotFoundError,
    WorksheetNotFoundError,
    WorksheetService,
    WorksheetStoreError,
    WorksheetThumbnailError,
    WorksheetUploadError,
    WorksheetValidationError,
    get_worksheet_service,
)

# Shared logger instance
logger = get_api_logger()

NOT_FOUND_MESSAGE = "Not found"
FILE_NOT_FOUND_MESSAGE = "File not found"


def get_worksheet_dependencies(
    worksheet_service: WorksheetService = Depends(get_worksheet_service),
) -> Dict[str, Any]:
    """Get common dependencies for worksheet endpoints."""
    return {"worksheet_service": worksheet_service, "logger": logger}


def get_admin_context(
    admin: Dict[str, Any] = Depends(require_admin),
) -> Dict[str, str]:
    """Extract the caller identity for mutating endpoints."""
    return {"admin": admin["subject"]}


def handle_worksheet_not_found_error(
    e: WorksheetNotFoundError, operation: str, **context
) -> WorksheetAPIError:
    """Handle WorksheetNotFoundError consistently across endpoints."""
    logger.info(f"Worksheet not found for {operation}", error=str(e), **context)
    return WorksheetAPIError(status.HTTP_404_NOT_FOUND, NOT_FOUND_MESSAGE)


def handle_file_not_found_error(
    e: WorksheetFileNotFoundError, operation: str, **context
) -> WorksheetAPIError:
    """Handle WorksheetFileNotFoundError consistently across endpoints."""
    logger.info(f"File not found for {operation}", error=str(e), **context)
    return WorksheetAPIError(status.HTTP_404_NOT_FOUND, FILE_NOT_FOUND_MESSAGE)


def handle_worksheet_validation_error(
    e: WorksheetValidationError, operation: str, **context
) -> WorksheetAPIError:
    """Handle WorksheetValidationError consistently across endpoints."""
    logger.warning(f"Worksheet validation failed for {operation}", error=str(e), **context)
    return WorksheetAPIError(status.HTTP_400_BAD_REQUEST, str(e))


def handle_worksheet_upload_error(
    e: WorksheetUploadError, operation: str, **context
) -> WorksheetAPIError:
    """Handle blob store failures during upload."""
    logger.error(f"Storage error during {operation}", error=str(e), **context)
    return WorksheetAPIError(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to upload to storage", str(e)
    )


def handle_worksheet_thumbnail_error(
    e: WorksheetThumbnailError, operation: str, **context
) -> WorksheetAPIError:
    """Handle preview rendering or storage failures."""
    logger.error(f"Thumbnail error during {operation}", error=str(e), **context)
    return WorksheetAPIError(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to generate thumbnail", str(e)
    )


def handle_worksheet_download_error(
    e: WorksheetDownloadError, operation: str, **context
) -> WorksheetAPIError:
    """Handle upstream failures while fetching a stored file."""
    logger.error(f"Download error during {operation}", error=str(e), **context)
    return WorksheetAPIError(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Download failed", str(e)
    )


def handle_server_error(
    e: Exception, operation: str, message: str, **context
) -> WorksheetAPIError:
    """Handle metadata store and unexpected failures consistently across endpoints."""
    if isinstance(e, WorksheetStoreError):
        logger.error(f"Metadata store error during {operation}", error=str(e), **context)
    else:
        logger.error(
            f"Unexpected error during {operation}",
            error=str(e),
            error_type=type(e).__name__,
            **context,
        )
    return WorksheetAPIError(status.HTTP_500_INTERNAL_SERVER_ERROR, message, str(e))


def log_operation_start(operation: str, **context) -> None:
    """Log the start of an operation consistently."""
    logger.info(f"{operation} started", **context)


def log_operation_success(operation: str, **context) -> None:
    """Log successful operation completion consistently."""
    logger.info(f"{operation} completed successfully", **context)
