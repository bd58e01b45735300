"""
Worksheet Download Service - streams stored files back to clients.

Files are fetched from their public URL with the shared httpx client and
relayed as-is; the response carries the uploader's original filename.
"""

from dataclasses import dataclass
from typing import AsyncIterator, Optional
from urllib.parse import quote

import httpx

from app.core.config import Settings
from app.core.db_client import DatabaseManager
from app.core.gcs_client import GCSClient
from app.models.worksheet import Worksheet
from .worksheet_base_service import (
    WorksheetBaseService,
    WorksheetDownloadError,
    WorksheetFileNotFoundError,
    WorksheetNotFoundError,
)
from .worksheet_query_service import WorksheetQueryService

CHUNK_SIZE = 64 * 1024


def build_content_disposition(filename: str) -> str:
    """
    Build an attachment ``Content-Disposition`` value for ``filename``.

    Non-ASCII names get an RFC 5987 ``filename*`` parameter next to an
    ASCII fallback.
    """
    if filename.isascii():
        return f'attachment; filename="{_escape_quoted(filename)}"'

    fallback = filename.encode("ascii", "replace").decode("ascii").replace("?", "_")
    return (
        f'attachment; filename="{_escape_quoted(fallback)}"; '
        f"filename*=UTF-8''{quote(filename, safe='')}"
    )


def _escape_quoted(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


@dataclass
class WorksheetDownload:
    """An open upstream response for a worksheet file."""

    worksheet: Worksheet
    response: httpx.Response

    @property
    def filename(self) -> str:
        return self.worksheet.original_name

    @property
    def content_type(self) -> str:
        return self.response.headers.get("content-type", "application/octet-stream")

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        async for chunk in self.response.aiter_bytes(CHUNK_SIZE):
            yield chunk

    async def aclose(self) -> None:
        await self.response.aclose()


class WorksheetDownloadService(WorksheetBaseService):
    """Service for file downloads."""

    def __init__(
        self,
        db: DatabaseManager,
        storage: GCSClient,
        http_client: httpx.AsyncClient,
        config: Optional[Settings] = None,
    ):
        super().__init__(db, storage, config)
        self.http_client = http_client
        self.query_service = WorksheetQueryService(db, storage, config)

    async def open_download(self, worksheet_id: str) -> WorksheetDownload:
        """
        Open a streaming download of a worksheet's stored file.

        The caller must close the returned download once the body is consumed.

        Raises:
            WorksheetFileNotFoundError: Unknown worksheet, no file URL, or the file is gone
            WorksheetDownloadError: The upstream fetch failed
        """
        try:
            worksheet = await self.query_service.get_worksheet(worksheet_id)
        except WorksheetNotFoundError as e:
            raise WorksheetFileNotFoundError(str(e)) from e

        if not worksheet.file_url:
            raise WorksheetFileNotFoundError(f"Worksheet {worksheet_id} has no file")

        request = self.http_client.build_request("GET", worksheet.file_url)
        try:
            response = await self.http_client.send(request, stream=True)
        except httpx.HTTPError as e:
            self.logger.error(
                "Failed to fetch worksheet file",
                worksheet_id=worksheet_id,
                file_url=worksheet.file_url,
                error=str(e),
            )
            raise WorksheetDownloadError(str(e)) from e

        if response.status_code == httpx.codes.NOT_FOUND:
            await response.aclose()
            self.logger.warning(
                "Stored file missing", worksheet_id=worksheet_id, key=worksheet.file_name
            )
            raise WorksheetFileNotFoundError(f"File for worksheet {worksheet_id} not found")

        if response.is_error:
            await response.aclose()
            self.logger.error(
                "Upstream error fetching worksheet file",
                worksheet_id=worksheet_id,
                status_code=response.status_code,
            )
            raise WorksheetDownloadError(
                f"Upstream returned HTTP {response.status_code}"
            )

        self.logger.info(
            "Streaming worksheet file",
            worksheet_id=worksheet_id,
            original_name=worksheet.original_name,
        )
        return WorksheetDownload(worksheet=worksheet, response=response)
