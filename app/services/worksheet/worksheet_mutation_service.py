"""
Worksheet Mutation Service - edits and deletions.

Edits replace only the fields present in the request. Deletion removes the
stored blobs first (best effort) and then always removes the metadata row.
"""

from typing import Any, Dict, List, Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from app.models.db import WorksheetModel
from app.models.worksheet import Worksheet, WorksheetChanges
from .worksheet_base_service import (
    WorksheetBaseService,
    WorksheetNotFoundError,
    WorksheetStoreError,
    WorksheetValidationError,
)


class WorksheetMutationService(WorksheetBaseService):
    """Service for worksheet edits and deletions."""

    async def update_worksheet(
        self,
        worksheet_id: str,
        changes: Union[WorksheetChanges, Dict[str, Any]],
    ) -> Worksheet:
        """
        Replace the supplied fields of a worksheet.

        Args:
            worksheet_id: Worksheet id
            changes: Fields to replace; ``tags`` replaces the whole list

        Returns:
            The updated worksheet

        Raises:
            WorksheetNotFoundError: No worksheet with this id
            WorksheetStoreError: The metadata store failed
        """
        if not isinstance(changes, WorksheetChanges):
            try:
                changes = WorksheetChanges.model_validate(changes)
            except ValidationError as e:
                raise WorksheetValidationError(str(e)) from e

        values = changes.supplied()

        try:
            async with self.db.session() as session:
                model = await session.get(WorksheetModel, worksheet_id)
                if model is None:
                    raise WorksheetNotFoundError(f"Worksheet {worksheet_id} not found")

                for field, value in values.items():
                    setattr(model, field, value)

                await session.flush()
                worksheet = self._model_to_record(model)
        except SQLAlchemyError as e:
            self.logger.error(
                "Failed to update worksheet", worksheet_id=worksheet_id, error=str(e)
            )
            raise WorksheetStoreError(str(e)) from e

        self.logger.info(
            "Worksheet updated", worksheet_id=worksheet_id, fields=sorted(values)
        )
        return worksheet

    async def _delete_blob(self, worksheet_id: str, key: str) -> None:
        """Delete one blob. Failures are logged and never raised."""
        try:
            deleted = await self.storage.delete_object_async(key)
        except Exception as e:
            self.logger.warning(
                "Failed to delete stored blob, continuing with metadata removal",
                worksheet_id=worksheet_id,
                key=key,
                error=str(e),
            )
            return

        if not deleted:
            self.logger.debug(
                "Stored blob already absent", worksheet_id=worksheet_id, key=key
            )

    async def delete_worksheet(self, worksheet_id: str) -> None:
        """
        Delete a worksheet, its file and its preview image.

        Raises:
            WorksheetNotFoundError: No worksheet with this id
            WorksheetStoreError: The metadata store failed
        """
        try:
            async with self.db.session() as session:
                model = await session.get(WorksheetModel, worksheet_id)
                if model is None:
                    raise WorksheetNotFoundError(f"Worksheet {worksheet_id} not found")

                keys: List[str] = [model.file_name]
                if model.thumbnail_name:
                    keys.append(model.thumbnail_name)

                for key in keys:
                    await self._delete_blob(worksheet_id, key)

                await session.delete(model)
        except SQLAlchemyError as e:
            self.logger.error(
                "Failed to delete worksheet", worksheet_id=worksheet_id, error=str(e)
            )
            raise WorksheetStoreError(str(e)) from e

        self.logger.info("Worksheet deleted", worksheet_id=worksheet_id)
