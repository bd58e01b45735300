"""
Worksheet management endpoints.

This module handles:
- Listing worksheets with equality filters
- Popular and recent feeds
- Retrieving, editing and deleting individual worksheets
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from app.models.schemas import (
    APIErrorResponse,
    MessageResponse,
    UnauthorizedErrorResponse,
    WorksheetDeleteResponse,
    WorksheetFilters,
    WorksheetResponse,
    WorksheetUpdateRequest,
    WorksheetUploadResponse,
)
from app.services.worksheet import (
    WorksheetNotFoundError,
    WorksheetValidationError,
)
from .common import (
    get_admin_context,
    get_worksheet_dependencies,
    handle_server_error,
    handle_worksheet_not_found_error,
    handle_worksheet_validation_error,
    log_operation_start,
    log_operation_success,
)

router = APIRouter()


@router.get(
    "",
    response_model=List[WorksheetResponse],
    summary="List Worksheets",
    operation_id="listWorksheets",
    description="""List worksheets, newest first.

**Query Parameters:**
- `subject`: filter on category (alias)
- `category`: filter on category; wins over `subject`
- `grade`: filter on grade

`All` or an empty value disables a filter.

**Example Requests:**
```bash
GET /api/worksheets?subject=Math
GET /api/worksheets?category=Science&grade=Grade%203
GET /api/worksheets?subject=All
```""",
    responses={500: {"model": MessageResponse}},
)
async def list_worksheets(
    subject: Optional[str] = Query(None, description="Category filter (alias)"),
    grade: Optional[str] = Query(None, description="Grade filter"),
    category: Optional[str] = Query(None, description="Category filter"),
    deps=Depends(get_worksheet_dependencies),
):
    """List worksheets matching the filters."""
    worksheet_service = deps["worksheet_service"]
    filters = WorksheetFilters(subject=subject, grade=grade, category=category)

    try:
        worksheets = await worksheet_service.list_worksheets(filters)
        return [WorksheetResponse.model_validate(w) for w in worksheets]
    except Exception as e:
        raise handle_server_error(e, "listing worksheets", "Server error")


@router.get(
    "/popular",
    response_model=List[WorksheetResponse],
    summary="Popular Worksheets",
    operation_id="popularWorksheets",
    description="Up to three worksheets for the popular feed (currently the most recent ones).",
    responses={500: {"model": MessageResponse}},
)
async def popular_worksheets(deps=Depends(get_worksheet_dependencies)):
    """Popular feed."""
    worksheet_service = deps["worksheet_service"]
    try:
        worksheets = await worksheet_service.popular_worksheets()
        return [WorksheetResponse.model_validate(w) for w in worksheets]
    except Exception as e:
        raise handle_server_error(e, "listing popular worksheets", "Server error")


@router.get(
    "/recent",
    response_model=List[WorksheetResponse],
    summary="Recent Worksheets",
    operation_id="recentWorksheets",
    description="The three most recently uploaded worksheets, newest first.",
    responses={500: {"model": MessageResponse}},
)
async def recent_worksheets(deps=Depends(get_worksheet_dependencies)):
    """Recent feed."""
    worksheet_service = deps["worksheet_service"]
    try:
        worksheets = await worksheet_service.recent_worksheets()
        return [WorksheetResponse.model_validate(w) for w in worksheets]
    except Exception as e:
        raise handle_server_error(e, "listing recent worksheets", "Server error")


@router.get(
    "/{worksheet_id}",
    response_model=WorksheetResponse,
    summary="Get Worksheet",
    operation_id="getWorksheet",
    responses={
        404: {"model": MessageResponse, "description": "Worksheet not found"},
        500: {"model": MessageResponse},
    },
)
async def get_worksheet(worksheet_id: str, deps=Depends(get_worksheet_dependencies)):
    """Get a single worksheet by id."""
    worksheet_service = deps["worksheet_service"]
    try:
        worksheet = await worksheet_service.get_worksheet(worksheet_id)
        return WorksheetResponse.model_validate(worksheet)
    except WorksheetNotFoundError as e:
        raise handle_worksheet_not_found_error(e, "get worksheet", worksheet_id=worksheet_id)
    except Exception as e:
        raise handle_server_error(
            e, "get worksheet", "Server error", worksheet_id=worksheet_id
        )


@router.put(
    "/{worksheet_id}",
    response_model=WorksheetUploadResponse,
    summary="Edit Worksheet",
    operation_id="updateWorksheet",
    description="""Replace the supplied fields of a worksheet.

Only fields present in the body are changed. `tags` is a comma-separated
string and replaces the whole tag list.

**Authentication Required:** `Authorization: Bearer <token>` header""",
    responses={
        401: {"model": UnauthorizedErrorResponse, "description": "Missing or invalid token"},
        422: {"model": APIErrorResponse, "description": "Malformed body"},
        404: {"model": MessageResponse, "description": "Worksheet not found"},
        500: {"model": MessageResponse},
    },
)
async def update_worksheet(
    worksheet_id: str,
    body: WorksheetUpdateRequest,
    admin_context: Dict[str, str] = Depends(get_admin_context),
    deps=Depends(get_worksheet_dependencies),
):
    """Edit a worksheet's descriptive fields."""
    worksheet_service = deps["worksheet_service"]
    changes = body.model_dump(exclude_unset=True)

    log_operation_start(
        "Worksheet update",
        worksheet_id=worksheet_id,
        fields=sorted(changes),
        **admin_context,
    )

    try:
        worksheet = await worksheet_service.update_worksheet(worksheet_id, changes)
        log_operation_success("Worksheet update", worksheet_id=worksheet_id, **admin_context)
        return WorksheetUploadResponse(
            success=True, worksheet=WorksheetResponse.model_validate(worksheet)
        )
    except WorksheetNotFoundError as e:
        raise handle_worksheet_not_found_error(
            e, "worksheet update", worksheet_id=worksheet_id, **admin_context
        )
    except WorksheetValidationError as e:
        raise handle_worksheet_validation_error(
            e, "worksheet update", worksheet_id=worksheet_id, **admin_context
        )
    except Exception as e:
        raise handle_server_error(
            e, "worksheet update", "Update failed", worksheet_id=worksheet_id, **admin_context
        )


@router.delete(
    "/{worksheet_id}",
    response_model=WorksheetDeleteResponse,
    summary="Delete Worksheet",
    operation_id="deleteWorksheet",
    description="""Delete a worksheet, its stored file and its preview image.

Stored files that are already gone are ignored; other storage failures are
logged and do not prevent the record from being removed.

**Authentication Required:** `Authorization: Bearer <token>` header""",
    responses={
        401: {"model": UnauthorizedErrorResponse, "description": "Missing or invalid token"},
        404: {"model": MessageResponse, "description": "Worksheet not found"},
        500: {"model": MessageResponse},
    },
)
async def delete_worksheet(
    worksheet_id: str,
    admin_context: Dict[str, str] = Depends(get_admin_context),
    deps=Depends(get_worksheet_dependencies),
):
    """Delete a worksheet."""
    worksheet_service = deps["worksheet_service"]

    log_operation_start("Worksheet delete", worksheet_id=worksheet_id, **admin_context)

    try:
        await worksheet_service.delete_worksheet(worksheet_id)
        log_operation_success("Worksheet delete", worksheet_id=worksheet_id, **admin_context)
        return WorksheetDeleteResponse(success=True)
    except WorksheetNotFoundError as e:
        raise handle_worksheet_not_found_error(
            e, "worksheet delete", worksheet_id=worksheet_id, **admin_context
        )
    except Exception as e:
        raise handle_server_error(
            e, "worksheet delete", "Delete failed", worksheet_id=worksheet_id, **admin_context
        )
