"""
Worksheet API Router

Aggregates the worksheet endpoints from focused sub-modules:

- worksheet_upload.py: Upload workflow
- worksheet_download.py: File streaming
- worksheet_management.py: Listing, feeds, get, edit and delete
- common.py: Shared dependencies and error translation
"""

from fastapi import APIRouter

from app.api.v1.worksheets_modules.worksheet_upload import router as upload_router
from app.api.v1.worksheets_modules.worksheet_management import router as management_router
from app.api.v1.worksheets_modules.worksheet_download import router as download_router

router = APIRouter()

# Order matters: specific routes must come before generic path parameter routes

# 1. Routes without path parameters
router.include_router(
    upload_router,
    tags=["Worksheet Upload"],
)

# 2. Download router with specific paths (must come before /{worksheet_id})
router.include_router(
    download_router,
    tags=["Worksheet Download"],
)

# 3. Generic path parameter routes (MUST BE LAST - has /{worksheet_id})
router.include_router(
    management_router,
    tags=["Worksheet Management"],
)
