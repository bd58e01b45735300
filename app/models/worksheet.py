import time
from datetime import datetime
from pathlib import PurePosixPath
from typing import Any, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

DEFAULT_SUBJECT = "Other"

# Query token meaning "no filter on this field"
ALL_FILTER = "All"

THUMBNAIL_PREFIX = "thumbnails"


def normalize_subject(value: Optional[str]) -> str:
    """Coerce a blank or missing subject to the default subject."""
    if value is None or not str(value).strip():
        return DEFAULT_SUBJECT
    return str(value).strip()


def parse_tags(value: Any) -> List[str]:
    """
    Parse tags from a comma-separated string or a sequence.

    Whitespace around each tag is stripped and empty items are dropped:
    ``"math, grade3,"`` -> ``["math", "grade3"]``.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = list(value)
    return [str(item).strip() for item in items if str(item).strip()]


def base_filename(name: str) -> str:
    """Last component of a client path, for either separator style."""
    return name.replace("\\", "/").rsplit("/", 1)[-1]


def build_storage_key(original_name: str, now_ms: Optional[int] = None) -> str:
    """Derive a blob storage key from the upload time and the client filename.

    Directory parts of the client path stay out of the key.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{now_ms}-{base_filename(original_name)}"


def build_thumbnail_key(storage_key: str) -> str:
    """Derive the preview image key for a stored file."""
    stem = PurePosixPath(storage_key).stem or storage_key
    return f"{THUMBNAIL_PREFIX}/{stem}.png"


class Worksheet(BaseModel):
    """Typed worksheet record as read from the metadata store."""

    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    subject: str = DEFAULT_SUBJECT
    tags: List[str] = Field(default_factory=list)
    grade: Optional[str] = None
    age_group: Optional[str] = None
    file_url: str
    file_name: str
    original_name: str
    thumbnail_url: Optional[str] = None
    thumbnail_name: Optional[str] = None
    upload_date: datetime

    model_config = ConfigDict(from_attributes=True)

    def __repr__(self) -> str:
        return f"<Worksheet(id={self.id}, file_name='{self.file_name}', subject='{self.subject}')>"


class WorksheetCreate(BaseModel):
    """Descriptive fields supplied with an upload.

    Missing fields are accepted and stored empty; only ``subject`` and
    ``category`` receive defaults.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    subject: str = DEFAULT_SUBJECT
    tags: List[str] = Field(default_factory=list)
    grade: Optional[str] = None
    age_group: Optional[str] = None

    @field_validator("subject", mode="before")
    @classmethod
    def validate_subject(cls, v: Any) -> str:
        return normalize_subject(v)

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, v: Any) -> List[str]:
        return parse_tags(v)

    @model_validator(mode="after")
    def default_category_to_subject(self) -> "WorksheetCreate":
        if self.category is None or not self.category.strip():
            self.category = self.subject
        return self


class WorksheetFile(BaseModel):
    """Binary payload of an upload, validated at the workflow boundary."""

    filename: str
    content_type: str = "application/octet-stream"
    content: bytes
    max_size: int = Field(default=50 * 1024 * 1024, exclude=True)

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, v: str) -> str:
        # Kept verbatim; only the storage key drops directory parts
        if not v or not v.strip() or not base_filename(v).strip():
            raise ValueError("Filename cannot be empty")
        return v

    @field_validator("content_type", mode="before")
    @classmethod
    def validate_content_type(cls, v: Any) -> str:
        return v or "application/octet-stream"

    @model_validator(mode="after")
    def validate_content(self) -> "WorksheetFile":
        if not self.content:
            raise ValueError("Uploaded file is empty")
        if len(self.content) > self.max_size:
            max_mb = self.max_size // (1024 * 1024)
            raise ValueError(f"File size exceeds maximum limit of {max_mb}MB")
        return self

    @property
    def size(self) -> int:
        return len(self.content)


class WorksheetChanges(BaseModel):
    """Fields replaced by an edit. Only explicitly supplied fields are applied."""

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    grade: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, v: Any) -> List[str]:
        # An explicit null clears the list
        return parse_tags(v)

    def supplied(self) -> dict:
        """Return only the fields present in the caller's payload."""
        return self.model_dump(exclude_unset=True)
