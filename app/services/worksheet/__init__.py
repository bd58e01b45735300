"""
Worksheet services package.

Services:
- worksheet_base_service: Exceptions and shared functionality
- worksheet_upload_service: Upload workflow
- worksheet_thumbnail_service: Preview image rendering
- worksheet_query_service: Listing and lookups
- worksheet_mutation_service: Edits and deletions
- worksheet_download_service: File streaming
- worksheet_service: Orchestration facade (main interface)
"""

from .worksheet_base_service import (
    WorksheetDownloadError,
    WorksheetFileNotFoundError,
    WorksheetNotFoundError,
    WorksheetStoreError,
    WorksheetThumbnailError,
    WorksheetUploadError,
    WorksheetValidationError,
)
from .worksheet_service import WorksheetService, get_worksheet_service

__all__ = [
    "WorksheetService",
    "get_worksheet_service",
    "WorksheetDownloadError",
    "WorksheetFileNotFoundError",
    "WorksheetNotFoundError",
    "WorksheetStoreError",
    "WorksheetThumbnailError",
    "WorksheetUploadError",
    "WorksheetValidationError",
]
