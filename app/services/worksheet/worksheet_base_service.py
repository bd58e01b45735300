"""
Worksheet Base Service - Common utilities and shared functionality.

This service provides the foundation for all worksheet services with:
- Common exception classes
- Shared configuration and logging
- Metadata store and blob store access
- ORM row to record conversion
"""

from typing import Optional

from app.core.config import Settings, settings as default_settings
from app.core.db_client import DatabaseManager
from app.core.gcs_client import GCSClient
from app.core.logging import get_service_logger
from app.models.db import WorksheetModel
from app.models.worksheet import Worksheet


# Exception classes
class WorksheetNotFoundError(Exception):
    """Worksheet not found error."""

    pass


class WorksheetFileNotFoundError(Exception):
    """The stored file behind a worksheet could not be found."""

    pass


class WorksheetValidationError(Exception):
    """Worksheet validation error."""

    pass


class WorksheetUploadError(Exception):
    """The blob store rejected or failed a file upload."""

    pass


class WorksheetThumbnailError(Exception):
    """Preview image could not be rendered or stored."""

    pass


class WorksheetDownloadError(Exception):
    """Fetching the stored file failed."""

    pass


class WorksheetStoreError(Exception):
    """Metadata store read or write failed."""

    pass


class WorksheetBaseService:
    """Base service with common functionality shared across all worksheet services."""

    def __init__(
        self,
        db: DatabaseManager,
        storage: GCSClient,
        config: Optional[Settings] = None,
    ):
        """Initialize base service with common configuration."""
        self.logger = get_service_logger("worksheet")
        self.db = db
        self.storage = storage
        self.config = config or default_settings

    @staticmethod
    def _model_to_record(model: WorksheetModel) -> Worksheet:
        """Convert SQLAlchemy model to Pydantic model."""
        return Worksheet.model_validate(model)
