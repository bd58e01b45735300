"""
Worksheet Query Service - listing, filtering and lookups.

Read-only; no authorization is applied here.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.models.db import WorksheetModel
from app.models.schemas import WorksheetFilters
from app.models.worksheet import Worksheet
from .worksheet_base_service import (
    WorksheetBaseService,
    WorksheetNotFoundError,
    WorksheetStoreError,
)

# Size of the popular and recent feeds
FEED_LIMIT = 3


class WorksheetQueryService(WorksheetBaseService):
    """Service for worksheet queries."""

    async def list_worksheets(
        self, filters: Optional[WorksheetFilters] = None
    ) -> List[Worksheet]:
        """
        List worksheets, newest first.

        ``subject`` and ``category`` both filter the category column, with
        ``category`` taking precedence. ``"All"`` or a blank value disables a
        filter. No pagination is applied.
        """
        filters = filters or WorksheetFilters()
        stmt = select(WorksheetModel)

        category = filters.category_filter
        if category:
            stmt = stmt.where(WorksheetModel.category == category)
        if filters.grade:
            stmt = stmt.where(WorksheetModel.grade == filters.grade)

        stmt = stmt.order_by(WorksheetModel.upload_date.desc())

        self.logger.debug(
            "Listing worksheets", category=category, grade=filters.grade
        )

        try:
            async with self.db.session() as session:
                result = await session.execute(stmt)
                return [self._model_to_record(m) for m in result.scalars().all()]
        except SQLAlchemyError as e:
            self.logger.error("Failed to list worksheets", error=str(e))
            raise WorksheetStoreError(str(e)) from e

    async def get_worksheet(self, worksheet_id: str) -> Worksheet:
        """
        Get a worksheet by id.

        Raises:
            WorksheetNotFoundError: No worksheet with this id
        """
        try:
            async with self.db.session() as session:
                model = await session.get(WorksheetModel, worksheet_id)
                if model is None:
                    raise WorksheetNotFoundError(f"Worksheet {worksheet_id} not found")
                return self._model_to_record(model)
        except SQLAlchemyError as e:
            self.logger.error(
                "Failed to get worksheet", worksheet_id=worksheet_id, error=str(e)
            )
            raise WorksheetStoreError(str(e)) from e

    async def recent_worksheets(self, limit: int = FEED_LIMIT) -> List[Worksheet]:
        """Get the most recently uploaded worksheets, newest first."""
        stmt = (
            select(WorksheetModel)
            .order_by(WorksheetModel.upload_date.desc())
            .limit(limit)
        )
        try:
            async with self.db.session() as session:
                result = await session.execute(stmt)
                return [self._model_to_record(m) for m in result.scalars().all()]
        except SQLAlchemyError as e:
            self.logger.error("Failed to list recent worksheets", error=str(e))
            raise WorksheetStoreError(str(e)) from e

    async def popular_worksheets(self, limit: int = FEED_LIMIT) -> List[Worksheet]:
        """Popular feed. There is no popularity metric, so this is the recent feed."""
        return await self.recent_worksheets(limit)
