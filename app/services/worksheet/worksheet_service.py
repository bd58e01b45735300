"""
Worksheet Service - Main orchestration facade for worksheet operations.

The service delegates operations to specialized services:
- WorksheetUploadService: Upload workflow (blob store + metadata store)
- WorksheetQueryService: Listing, lookups and the popular/recent feeds
- WorksheetMutationService: Edits and deletions
- WorksheetDownloadService: File streaming
"""

from typing import Any, Dict, List, Optional, Union

import httpx
from fastapi import Request

from app.core.config import Settings
from app.core.db_client import DatabaseManager
from app.core.gcs_client import GCSClient
from app.models.schemas import WorksheetFilters
from app.models.worksheet import Worksheet, WorksheetChanges, WorksheetCreate

from .worksheet_base_service import WorksheetBaseService
from .worksheet_download_service import WorksheetDownload, WorksheetDownloadService
from .worksheet_mutation_service import WorksheetMutationService
from .worksheet_query_service import WorksheetQueryService
from .worksheet_upload_service import WorksheetUploadService


class WorksheetService(WorksheetBaseService):
    """
    Main worksheet service implementing facade pattern.

    Built per request from the resources held on the application state.
    """

    def __init__(
        self,
        db: DatabaseManager,
        storage: GCSClient,
        http_client: httpx.AsyncClient,
        config: Optional[Settings] = None,
    ):
        """Initialize the orchestration service with all specialized services."""
        super().__init__(db, storage, config)

        self.upload_service = WorksheetUploadService(db, storage, config)
        self.query_service = WorksheetQueryService(db, storage, config)
        self.mutation_service = WorksheetMutationService(db, storage, config)
        self.download_service = WorksheetDownloadService(
            db, storage, http_client, config
        )

    # ========================================
    # UPLOAD
    # ========================================

    async def upload_worksheet(
        self,
        filename: Optional[str],
        content: bytes,
        content_type: Optional[str] = None,
        fields: Union[WorksheetCreate, Dict[str, Any], None] = None,
        generate_thumbnail: Optional[bool] = None,
    ) -> Worksheet:
        """Delegate to upload service."""
        return await self.upload_service.upload_worksheet(
            filename=filename,
            content=content,
            content_type=content_type,
            fields=fields,
            generate_thumbnail=generate_thumbnail,
        )

    # ========================================
    # QUERIES
    # ========================================

    async def list_worksheets(
        self, filters: Optional[WorksheetFilters] = None
    ) -> List[Worksheet]:
        """Delegate to query service."""
        return await self.query_service.list_worksheets(filters)

    async def get_worksheet(self, worksheet_id: str) -> Worksheet:
        """Delegate to query service."""
        return await self.query_service.get_worksheet(worksheet_id)

    async def popular_worksheets(self) -> List[Worksheet]:
        """Delegate to query service."""
        return await self.query_service.popular_worksheets()

    async def recent_worksheets(self) -> List[Worksheet]:
        """Delegate to query service."""
        return await self.query_service.recent_worksheets()

    # ========================================
    # MUTATIONS
    # ========================================

    async def update_worksheet(
        self,
        worksheet_id: str,
        changes: Union[WorksheetChanges, Dict[str, Any]],
    ) -> Worksheet:
        """Delegate to mutation service."""
        return await self.mutation_service.update_worksheet(worksheet_id, changes)

    async def delete_worksheet(self, worksheet_id: str) -> None:
        """Delegate to mutation service."""
        await self.mutation_service.delete_worksheet(worksheet_id)

    # ========================================
    # DOWNLOADS
    # ========================================

    async def open_download(self, worksheet_id: str) -> WorksheetDownload:
        """Delegate to download service."""
        return await self.download_service.open_download(worksheet_id)


def get_worksheet_service(request: Request) -> WorksheetService:
    """Dependency injection helper for FastAPI."""
    state = request.app.state
    return WorksheetService(
        db=state.db,
        storage=state.storage,
        http_client=state.http_client,
        config=getattr(state, "settings", None),
    )
