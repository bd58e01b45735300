"""
Pytest configuration and fixtures for the test suite.

This module provides shared fixtures for unit and integration tests.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator, Callable, Dict
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
import pytest_asyncio
from faker import Faker
from httpx import AsyncClient, ASGITransport

# Set test environment before importing app modules
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-testing-purposes-only-32chars")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("GCS_BUCKET_NAME", "test-bucket")

fake = Faker()

PUBLIC_BASE_URL = "https://storage.googleapis.com/test-bucket"


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (API)")
    config.addinivalue_line("markers", "db: Database tests")
    config.addinivalue_line("markers", "api: API endpoint tests")


# =============================================================================
# Test Data Generators
# =============================================================================

@pytest.fixture
def worksheet_fields() -> Dict[str, Any]:
    """Generate random descriptive fields for an upload."""
    return {
        "title": fake.sentence(nb_words=4).rstrip("."),
        "description": fake.paragraph(nb_sentences=2),
        "subject": "Math",
        "tags": "fractions, grade3",
        "grade": "Grade 3",
        "age_group": "8-9",
    }


@pytest.fixture
def sample_pdf_content() -> bytes:
    """Generate minimal PDF content for testing."""
    return b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF"


@pytest.fixture
def sample_png_content() -> bytes:
    """Generate a small PNG image for testing."""
    from io import BytesIO

    from PIL import Image

    buffer = BytesIO()
    Image.new("RGBA", (640, 480), (255, 0, 0, 128)).save(buffer, format="PNG")
    return buffer.getvalue()


# =============================================================================
# Authentication Fixtures
# =============================================================================

@pytest.fixture
def admin_token() -> str:
    """Create a valid access token."""
    from app.core.security import create_access_token

    return create_access_token("admin")


@pytest.fixture
def auth_headers(admin_token: str) -> Dict[str, str]:
    """Authorization header with a valid bearer token."""
    return create_auth_header(admin_token)


# =============================================================================
# Metadata Store Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def db_manager():
    """A real DatabaseManager over an in-memory SQLite database."""
    from app.core.db_client import DatabaseManager

    manager = DatabaseManager("sqlite+aiosqlite:///:memory:")
    await manager.create_tables()
    yield manager
    await manager.close()


@pytest.fixture
def insert_worksheet(db_manager) -> Callable:
    """Factory inserting worksheet rows directly into the metadata store."""
    from app.models.db import WorksheetModel
    from app.models.worksheet import Worksheet

    base_time = datetime(2024, 1, 1, tzinfo=timezone.utc)
    counter = {"n": 0}

    async def _insert(**overrides) -> Worksheet:
        counter["n"] += 1
        key = f"{1700000000000 + counter['n']}-{fake.file_name(extension='pdf')}"
        values = {
            "title": fake.sentence(nb_words=3).rstrip("."),
            "category": "Math",
            "subject": "Math",
            "tags": ["sample"],
            "grade": "Grade 3",
            "file_url": f"{PUBLIC_BASE_URL}/{key}",
            "file_name": key,
            "original_name": key.split("-", 1)[1],
            "upload_date": base_time + timedelta(minutes=counter["n"]),
        }
        values.update(overrides)
        async with db_manager.session() as session:
            model = WorksheetModel(**values)
            session.add(model)
            await session.flush()
            return Worksheet.model_validate(model)

    return _insert


# =============================================================================
# Blob Store Fixtures
# =============================================================================

@pytest.fixture
def mock_storage():
    """Mock GCSClient: uploads succeed and return the public URL."""
    storage = Mock()
    storage.is_initialized = True
    storage.bucket_name = "test-bucket"

    async def _upload(key, content, content_type=None):
        return f"{PUBLIC_BASE_URL}/{key}"

    storage.upload_object_async = AsyncMock(side_effect=_upload)
    storage.delete_object_async = AsyncMock(return_value=True)
    storage.health_check_async = AsyncMock(return_value=True)
    return storage


# =============================================================================
# Download Fixtures
# =============================================================================

@pytest.fixture
def remote_files() -> Dict[str, bytes]:
    """Files served by the mocked public URL host, keyed by URL."""
    return {}


@pytest_asyncio.fixture
async def http_client(remote_files) -> AsyncGenerator[httpx.AsyncClient, None]:
    """httpx client whose transport serves ``remote_files`` and 404s otherwise."""

    def handler(request: httpx.Request) -> httpx.Response:
        served = {str(httpx.URL(url)): body for url, body in remote_files.items()}
        content = served.get(str(request.url))
        if content is None:
            return httpx.Response(404, text="No such object")
        return httpx.Response(
            200, content=content, headers={"content-type": "application/pdf"}
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        yield client


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def worksheet_service(db_manager, mock_storage, http_client):
    """WorksheetService over the test database and mocked collaborators."""
    from app.services.worksheet import WorksheetService

    return WorksheetService(db_manager, mock_storage, http_client)


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def app(db_manager, mock_storage, http_client):
    """Create a test FastAPI application with its state populated."""
    # Import here to ensure test environment is set
    from app.core.config import settings
    from app.main import create_app

    fastapi_app = create_app()
    fastapi_app.state.db = db_manager
    fastapi_app.state.storage = mock_storage
    fastapi_app.state.http_client = http_client
    fastapi_app.state.settings = settings
    return fastapi_app


@pytest_asyncio.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client


# =============================================================================
# Helper Functions
# =============================================================================

def create_auth_header(token: str) -> Dict[str, str]:
    """Create an authorization header with a bearer token."""
    return {"Authorization": f"Bearer {token}"}


__all__ = [
    "fake",
    "create_auth_header",
    "PUBLIC_BASE_URL",
]
