"""Worksheet schemas for API requests and responses.

Responses use the camelCase wire names (``fileUrl``, ``uploadDate`` ...);
request bodies accept either camelCase or snake_case.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from app.models.worksheet import DEFAULT_SUBJECT
from app.models.schemas.validators import clean_filter_value


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class WorksheetResponse(CamelModel):
    """Worksheet record as returned to clients."""

    id: str = Field(..., description="Worksheet identifier", example="9b2f6c1e-4a0e-4c38-9d7e-1f0f0c9e2a11")
    title: Optional[str] = Field(None, description="Worksheet title", example="Adding fractions")
    description: Optional[str] = Field(None, description="Free-text description")
    category: Optional[str] = Field(None, description="Category used by list filters", example="Math")
    subject: str = Field(DEFAULT_SUBJECT, description="Subject, never empty", example="Math")
    tags: List[str] = Field(default_factory=list, example=["fractions", "grade3"])
    grade: Optional[str] = Field(None, example="Grade 3")
    age_group: Optional[str] = Field(None, example="8-9")
    file_url: str = Field(..., description="Public URL of the stored file")
    file_name: str = Field(..., description="Storage key of the stored file")
    original_name: str = Field(..., description="Filename supplied by the uploader")
    thumbnail_url: Optional[str] = Field(None, description="Public URL of the preview image")
    thumbnail_name: Optional[str] = Field(None, description="Storage key of the preview image")
    upload_date: datetime = Field(..., description="When the worksheet was uploaded")

    @field_serializer("upload_date")
    def serialize_datetime(self, value: datetime) -> Optional[str]:
        """Serialize datetime fields to ISO format."""
        return value.isoformat() if value else None


class WorksheetUploadResponse(BaseModel):
    """Response for a successful upload or edit."""

    success: bool = Field(True, description="Operation succeeded")
    worksheet: WorksheetResponse


class WorksheetDeleteResponse(BaseModel):
    """Response for a successful deletion."""

    success: bool = Field(True, description="Operation succeeded")


class WorksheetUpdateRequest(CamelModel):
    """Editable worksheet fields. Omitted fields are left unchanged."""

    title: Optional[str] = Field(None, example="Adding fractions (revised)")
    description: Optional[str] = None
    category: Optional[str] = Field(None, example="Math")
    tags: Optional[str] = Field(
        None,
        description="Comma-separated tags; replaces the existing list",
        example="math,grade3",
    )
    grade: Optional[str] = Field(None, example="Grade 3")


class WorksheetFilters(BaseModel):
    """Equality filters for worksheet listing."""

    subject: Optional[str] = Field(None, description="Alias of category", example="Math")
    category: Optional[str] = Field(None, description="Category filter", example="Math")
    grade: Optional[str] = Field(None, description="Grade filter", example="Grade 3")

    @field_validator("subject", "category", "grade", mode="before")
    @classmethod
    def validate_filters(cls, v: Optional[str]) -> Optional[str]:
        """Drop blank and wildcard filter values."""
        return clean_filter_value(v)

    @property
    def category_filter(self) -> Optional[str]:
        """Effective category filter: ``category`` wins over ``subject``."""
        return self.category or self.subject
