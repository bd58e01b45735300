"""
Unit tests for the worksheet upload workflow.

Uses a real in-memory metadata store and a mocked blob store.
"""

from unittest.mock import AsyncMock, Mock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.core.gcs_client import GCSClientError, GCSObjectExistsError
from app.models.db import WorksheetModel
from app.services.worksheet import (
    WorksheetStoreError,
    WorksheetThumbnailError,
    WorksheetUploadError,
    WorksheetValidationError,
)
from app.services.worksheet.worksheet_upload_service import (
    WorksheetUploadService,
    validate_upload_payload,
)

PUBLIC_BASE_URL = "https://storage.googleapis.com/test-bucket"


async def count_rows(db_manager) -> int:
    async with db_manager.session() as session:
        result = await session.execute(select(func.count()).select_from(WorksheetModel))
        return result.scalar_one()


@pytest.fixture
def upload_service(db_manager, mock_storage):
    return WorksheetUploadService(db_manager, mock_storage)


class TestValidateUploadPayload:
    """Tests for payload validation."""

    @pytest.mark.unit
    def test_empty_payload(self):
        with pytest.raises(WorksheetValidationError, match="empty"):
            validate_upload_payload("a.pdf", "application/pdf", b"", 100)

    @pytest.mark.unit
    def test_missing_filename(self):
        with pytest.raises(WorksheetValidationError, match="Filename"):
            validate_upload_payload(None, "application/pdf", b"abc", 100)

    @pytest.mark.unit
    def test_too_large(self):
        with pytest.raises(WorksheetValidationError, match="exceeds"):
            validate_upload_payload("a.pdf", "application/pdf", b"x" * 101, 100)


class TestUploadWorkflow:
    """Tests for the upload workflow."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_upload_persists_record(
        self, upload_service, mock_storage, db_manager, sample_pdf_content, worksheet_fields
    ):
        worksheet = await upload_service.upload_worksheet(
            filename="fractions.pdf",
            content=sample_pdf_content,
            content_type="application/pdf",
            fields=worksheet_fields,
            generate_thumbnail=False,
        )

        key = mock_storage.upload_object_async.await_args.args[0]
        assert key.endswith("-fractions.pdf")
        assert key.split("-", 1)[0].isdigit()
        mock_storage.upload_object_async.assert_awaited_once_with(
            key, sample_pdf_content, "application/pdf"
        )

        assert worksheet.file_name == key
        assert worksheet.file_url == f"{PUBLIC_BASE_URL}/{key}"
        assert worksheet.original_name == "fractions.pdf"
        assert worksheet.subject == "Math"
        assert worksheet.category == "Math"
        assert worksheet.tags == ["fractions", "grade3"]
        assert worksheet.age_group == "8-9"
        assert worksheet.thumbnail_url is None
        assert worksheet.upload_date is not None
        assert await count_rows(db_manager) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_client_path_stored_verbatim(self, upload_service, mock_storage, sample_pdf_content):
        worksheet = await upload_service.upload_worksheet(
            filename="unit1\\fractions.pdf",
            content=sample_pdf_content,
            content_type="application/pdf",
            fields={},
            generate_thumbnail=False,
        )

        assert worksheet.original_name == "unit1\\fractions.pdf"
        assert worksheet.file_name.endswith("-fractions.pdf")
        assert "\\" not in mock_storage.upload_object_async.await_args.args[0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_blank_subject_becomes_other(self, upload_service, sample_pdf_content):
        worksheet = await upload_service.upload_worksheet(
            filename="a.pdf",
            content=sample_pdf_content,
            content_type="application/pdf",
            fields={"subject": "  "},
            generate_thumbnail=False,
        )

        assert worksheet.subject == "Other"
        assert worksheet.category == "Other"
        assert worksheet.tags == []
        assert worksheet.title is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_uses_thumbnail_setting_by_default(
        self, upload_service, mock_storage, sample_pdf_content
    ):
        # GENERATE_THUMBNAIL defaults to False
        await upload_service.upload_worksheet(
            filename="a.pdf", content=sample_pdf_content, content_type="application/pdf"
        )

        assert mock_storage.upload_object_async.await_count == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_payload_rejected_before_storage(
        self, upload_service, mock_storage, db_manager
    ):
        with pytest.raises(WorksheetValidationError):
            await upload_service.upload_worksheet(filename="a.pdf", content=b"")

        mock_storage.upload_object_async.assert_not_awaited()
        assert await count_rows(db_manager) == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_storage_failure_creates_no_record(
        self, upload_service, mock_storage, db_manager, sample_pdf_content
    ):
        mock_storage.upload_object_async = AsyncMock(side_effect=GCSClientError("403 Forbidden"))

        with pytest.raises(WorksheetUploadError, match="403 Forbidden"):
            await upload_service.upload_worksheet(
                filename="a.pdf", content=sample_pdf_content, content_type="application/pdf"
            )

        assert await count_rows(db_manager) == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_key_collision_creates_no_record(
        self, upload_service, mock_storage, db_manager, sample_pdf_content
    ):
        mock_storage.upload_object_async = AsyncMock(
            side_effect=GCSObjectExistsError("Object already exists")
        )

        with pytest.raises(WorksheetUploadError):
            await upload_service.upload_worksheet(
                filename="a.pdf", content=sample_pdf_content, content_type="application/pdf"
            )

        assert await count_rows(db_manager) == 0


class TestThumbnails:
    """Tests for the optional preview image."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_thumbnail_stored_with_record(
        self, upload_service, mock_storage, sample_png_content
    ):
        worksheet = await upload_service.upload_worksheet(
            filename="shapes.png",
            content=sample_png_content,
            content_type="image/png",
            fields={"title": "Shapes"},
            generate_thumbnail=True,
        )

        assert mock_storage.upload_object_async.await_count == 2
        thumb_call = mock_storage.upload_object_async.await_args_list[1]
        thumb_key, thumb_bytes, thumb_type = thumb_call.args
        assert thumb_key == f"thumbnails/{worksheet.file_name.rsplit('.', 1)[0]}.png"
        assert thumb_bytes.startswith(b"\x89PNG")
        assert thumb_type == "image/png"
        assert worksheet.thumbnail_name == thumb_key
        assert worksheet.thumbnail_url == f"{PUBLIC_BASE_URL}/{thumb_key}"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_thumbnail_upload_failure_aborts(
        self, upload_service, mock_storage, db_manager, sample_pdf_content
    ):
        async def _upload(key, content, content_type=None):
            if key.startswith("thumbnails/"):
                raise GCSClientError("thumbnail rejected")
            return f"{PUBLIC_BASE_URL}/{key}"

        mock_storage.upload_object_async = AsyncMock(side_effect=_upload)

        with pytest.raises(WorksheetThumbnailError):
            await upload_service.upload_worksheet(
                filename="a.pdf",
                content=sample_pdf_content,
                content_type="application/pdf",
                generate_thumbnail=True,
            )

        assert await count_rows(db_manager) == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_thumbnail_render_failure_aborts(
        self, upload_service, db_manager, sample_pdf_content
    ):
        with patch(
            "app.services.worksheet.worksheet_upload_service.render_thumbnail",
            side_effect=OSError("render failed"),
        ):
            with pytest.raises(WorksheetThumbnailError, match="render failed"):
                await upload_service.upload_worksheet(
                    filename="a.pdf",
                    content=sample_pdf_content,
                    content_type="application/pdf",
                    generate_thumbnail=True,
                )

        assert await count_rows(db_manager) == 0


class TestMetadataFailure:
    """Tests for metadata write failures after a successful blob upload."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_store_failure_reports_orphan(
        self, upload_service, mock_storage, db_manager, sample_pdf_content
    ):
        upload_service.logger = Mock()

        with patch(
            "sqlalchemy.ext.asyncio.AsyncSession.flush",
            side_effect=OperationalError("INSERT", {}, Exception("disk full")),
        ):
            with pytest.raises(WorksheetStoreError):
                await upload_service.upload_worksheet(
                    filename="a.pdf", content=sample_pdf_content, content_type="application/pdf"
                )

        key = mock_storage.upload_object_async.await_args.args[0]
        assert upload_service.logger.error.call_args.kwargs["orphaned_keys"] == [key]
        assert await count_rows(db_manager) == 0
