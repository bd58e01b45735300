"""API schemas package."""

from app.models.schemas.errors import (
    APIErrorResponse,
    ErrorResponse,
    MessageResponse,
    UnauthorizedErrorResponse,
)
from app.models.schemas.worksheet import (
    WorksheetDeleteResponse,
    WorksheetFilters,
    WorksheetResponse,
    WorksheetUpdateRequest,
    WorksheetUploadResponse,
)

__all__ = [
    "APIErrorResponse",
    "ErrorResponse",
    "MessageResponse",
    "UnauthorizedErrorResponse",
    "WorksheetDeleteResponse",
    "WorksheetFilters",
    "WorksheetResponse",
    "WorksheetUpdateRequest",
    "WorksheetUploadResponse",
]
