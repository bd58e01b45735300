"""
Worksheet download endpoint.

Streams the stored file back with its original filename.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from app.models.schemas import MessageResponse
from app.services.worksheet import WorksheetDownloadError, WorksheetFileNotFoundError
from app.services.worksheet.worksheet_download_service import build_content_disposition
from .common import (
    get_worksheet_dependencies,
    handle_file_not_found_error,
    handle_server_error,
    handle_worksheet_download_error,
)

router = APIRouter()


@router.get(
    "/download/{worksheet_id}",
    summary="Download Worksheet",
    operation_id="downloadWorksheet",
    description="""Download the stored file of a worksheet.

The response is the file body with
`Content-Disposition: attachment; filename="<originalName>"`.""",
    response_class=StreamingResponse,
    responses={
        200: {"description": "File content"},
        404: {"model": MessageResponse, "description": "Worksheet or file not found"},
        500: {"model": MessageResponse, "description": "Upstream fetch failed"},
    },
)
async def download_worksheet(
    worksheet_id: str, deps=Depends(get_worksheet_dependencies)
):
    """Stream a worksheet's file to the client."""
    worksheet_service = deps["worksheet_service"]

    try:
        download = await worksheet_service.open_download(worksheet_id)
    except WorksheetFileNotFoundError as e:
        raise handle_file_not_found_error(e, "worksheet download", worksheet_id=worksheet_id)
    except WorksheetDownloadError as e:
        raise handle_worksheet_download_error(
            e, "worksheet download", worksheet_id=worksheet_id
        )
    except Exception as e:
        raise handle_server_error(
            e, "worksheet download", "Download failed", worksheet_id=worksheet_id
        )

    headers = {"Content-Disposition": build_content_disposition(download.filename)}

    return StreamingResponse(
        download.iter_bytes(),
        media_type=download.content_type,
        headers=headers,
        background=BackgroundTask(download.aclose),
    )
