"""
Worksheet Upload Service - coordinates the blob store with the metadata store.

Upload workflow:
1. Validate the payload and normalize the descriptive fields
2. Store the file under a timestamped key (never overwriting)
3. Optionally render and store a preview image
4. Persist the metadata row only after every blob write succeeded
"""

import asyncio
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from app.core.gcs_client import GCSClientError, GCSObjectExistsError
from app.models.db import WorksheetModel
from app.models.worksheet import (
    Worksheet,
    WorksheetCreate,
    WorksheetFile,
    build_storage_key,
    build_thumbnail_key,
)
from .worksheet_base_service import (
    WorksheetBaseService,
    WorksheetStoreError,
    WorksheetThumbnailError,
    WorksheetUploadError,
    WorksheetValidationError,
)
from .worksheet_thumbnail_service import render_thumbnail


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    message = error["msg"]
    # Model-level checks come back as "Value error, <message>"
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return message


def validate_upload_payload(
    filename: Optional[str],
    content_type: Optional[str],
    content: bytes,
    max_size: int,
) -> WorksheetFile:
    """
    Validate the binary part of an upload.

    Raises:
        WorksheetValidationError: Missing filename, empty payload or payload too large
    """
    try:
        return WorksheetFile(
            filename=filename or "",
            content_type=content_type,
            content=content,
            max_size=max_size,
        )
    except ValidationError as e:
        raise WorksheetValidationError(_first_error(e)) from e


class WorksheetUploadService(WorksheetBaseService):
    """Service for the upload workflow."""

    async def upload_worksheet(
        self,
        filename: Optional[str],
        content: bytes,
        content_type: Optional[str] = None,
        fields: Union[WorksheetCreate, Dict[str, Any], None] = None,
        generate_thumbnail: Optional[bool] = None,
    ) -> Worksheet:
        """
        Store an uploaded file and create its worksheet record.

        Args:
            filename: Client-supplied filename
            content: File bytes
            content_type: Declared MIME type
            fields: Descriptive fields (title, description, category, subject, tags, grade, age_group)
            generate_thumbnail: Render a preview image; defaults to GENERATE_THUMBNAIL

        Returns:
            The persisted worksheet record

        Raises:
            WorksheetValidationError: Invalid payload
            WorksheetUploadError: The file could not be stored
            WorksheetThumbnailError: The preview could not be rendered or stored
            WorksheetStoreError: The metadata write failed (the blobs are left behind)
        """
        upload = validate_upload_payload(
            filename, content_type, content, self.config.MAX_FILE_SIZE
        )
        if isinstance(fields, WorksheetCreate):
            metadata = fields
        else:
            try:
                metadata = WorksheetCreate.model_validate(fields or {})
            except ValidationError as e:
                raise WorksheetValidationError(_first_error(e)) from e

        if generate_thumbnail is None:
            generate_thumbnail = self.config.GENERATE_THUMBNAIL

        storage_key = build_storage_key(upload.filename)

        self.logger.info(
            "Starting worksheet upload",
            original_name=upload.filename,
            storage_key=storage_key,
            content_type=upload.content_type,
            size=upload.size,
            subject=metadata.subject,
        )

        try:
            file_url = await self.storage.upload_object_async(
                storage_key, upload.content, upload.content_type
            )
        except GCSObjectExistsError as e:
            self.logger.error("Storage key collision", storage_key=storage_key)
            raise WorksheetUploadError(str(e)) from e
        except GCSClientError as e:
            self.logger.error(
                "Failed to upload worksheet file", storage_key=storage_key, error=str(e)
            )
            raise WorksheetUploadError(str(e)) from e

        stored_keys: List[str] = [storage_key]
        thumbnail_key: Optional[str] = None
        thumbnail_url: Optional[str] = None

        if generate_thumbnail:
            thumbnail_key = build_thumbnail_key(storage_key)
            try:
                preview = await asyncio.to_thread(
                    render_thumbnail,
                    upload.content,
                    upload.content_type,
                    upload.filename,
                    metadata.title,
                    self.config.THUMBNAIL_SIZE,
                )
                thumbnail_url = await self.storage.upload_object_async(
                    thumbnail_key, preview, "image/png"
                )
            except Exception as e:
                self.logger.error(
                    "Thumbnail generation failed, worksheet not recorded",
                    storage_key=storage_key,
                    thumbnail_key=thumbnail_key,
                    orphaned_keys=stored_keys,
                    error=str(e),
                )
                raise WorksheetThumbnailError(str(e)) from e
            stored_keys.append(thumbnail_key)

        try:
            async with self.db.session() as session:
                model = WorksheetModel(
                    title=metadata.title,
                    description=metadata.description,
                    category=metadata.category,
                    subject=metadata.subject,
                    tags=metadata.tags,
                    grade=metadata.grade,
                    age_group=metadata.age_group,
                    file_url=file_url,
                    file_name=storage_key,
                    original_name=upload.filename,
                    thumbnail_url=thumbnail_url,
                    thumbnail_name=thumbnail_key,
                )
                session.add(model)
                await session.flush()
                worksheet = self._model_to_record(model)
        except SQLAlchemyError as e:
            self.logger.error(
                "Failed to record worksheet, stored blobs are orphaned",
                orphaned_keys=stored_keys,
                error=str(e),
            )
            raise WorksheetStoreError(str(e)) from e

        self.logger.info(
            "Worksheet uploaded",
            worksheet_id=worksheet.id,
            storage_key=storage_key,
            thumbnail_key=thumbnail_key,
        )
        return worksheet
