"""
Worksheet upload endpoint.

This module handles the upload workflow over HTTP:
- Multipart file plus descriptive form fields
- Admin access gate
- Translation of workflow failures into error bodies
"""

from typing import Dict, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.models.schemas import (
    APIErrorResponse,
    MessageResponse,
    UnauthorizedErrorResponse,
    WorksheetResponse,
    WorksheetUploadResponse,
)
from app.models.worksheet import WorksheetCreate
from app.services.worksheet import (
    WorksheetThumbnailError,
    WorksheetUploadError,
    WorksheetValidationError,
)
from .common import (
    get_admin_context,
    get_worksheet_dependencies,
    handle_server_error,
    handle_worksheet_thumbnail_error,
    handle_worksheet_upload_error,
    handle_worksheet_validation_error,
    log_operation_start,
    log_operation_success,
)

router = APIRouter()


@router.post(
    "/upload",
    response_model=WorksheetUploadResponse,
    summary="Upload Worksheet",
    operation_id="uploadWorksheet",
    description="""Upload a worksheet file with its descriptive fields.

**Form fields:**
- **file**: the worksheet file (required)
- **title**, **description**, **category**, **grade**, **ageGroup**: optional text
- **subject**: optional; blank or missing becomes `"Other"`
- **tags**: comma-separated list, e.g. `"math, grade3"`

`category` defaults to the subject when omitted. The file is stored under
`{epoch_ms}-{filename}` and is never overwritten.

**Authentication Required:** `Authorization: Bearer <token>` header

**Example Request:**
```bash
curl -X POST "http://localhost:5000/api/worksheets/upload" \\
  -H "Authorization: Bearer <token>" \\
  -F "file=@fractions.pdf" \\
  -F "title=Adding fractions" \\
  -F "subject=Math" \\
  -F "tags=fractions,grade3"
```""",
    responses={
        400: {"model": MessageResponse, "description": "Invalid file"},
        401: {"model": UnauthorizedErrorResponse, "description": "Missing or invalid token"},
        422: {"model": APIErrorResponse, "description": "Malformed multipart request"},
        500: {"model": MessageResponse, "description": "Storage or metadata store failure"},
    },
)
async def upload_worksheet(
    file: UploadFile = File(..., description="Worksheet file"),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    subject: Optional[str] = Form(None),
    tags: Optional[str] = Form(None, description="Comma-separated tags"),
    grade: Optional[str] = Form(None),
    age_group: Optional[str] = Form(None, alias="ageGroup"),
    admin_context: Dict[str, str] = Depends(get_admin_context),
    deps=Depends(get_worksheet_dependencies),
):
    """Upload a worksheet: store the file, then record its metadata."""
    worksheet_service = deps["worksheet_service"]

    log_operation_start(
        "Worksheet upload",
        filename=file.filename,
        content_type=file.content_type,
        subject=subject,
        **admin_context,
    )

    try:
        content = await file.read()
        fields = WorksheetCreate(
            title=title,
            description=description,
            category=category,
            subject=subject,
            tags=tags,
            grade=grade,
            age_group=age_group,
        )

        worksheet = await worksheet_service.upload_worksheet(
            filename=file.filename,
            content=content,
            content_type=file.content_type,
            fields=fields,
        )

        log_operation_success(
            "Worksheet upload",
            worksheet_id=worksheet.id,
            storage_key=worksheet.file_name,
            **admin_context,
        )

        return WorksheetUploadResponse(
            success=True, worksheet=WorksheetResponse.model_validate(worksheet)
        )

    except WorksheetValidationError as e:
        raise handle_worksheet_validation_error(e, "worksheet upload", **admin_context)
    except WorksheetUploadError as e:
        raise handle_worksheet_upload_error(e, "worksheet upload", **admin_context)
    except WorksheetThumbnailError as e:
        raise handle_worksheet_thumbnail_error(e, "worksheet upload", **admin_context)
    except Exception as e:
        raise handle_server_error(e, "worksheet upload", "Upload failed", **admin_context)
    finally:
        await file.close()
