"""SQLAlchemy ORM models for the metadata store."""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WorksheetModel(Base):
    """A worksheet row: descriptive metadata plus blob-store references."""

    __tablename__ = "worksheets"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    title: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    subject: Mapped[str] = mapped_column(String(255), nullable=False, default="Other")
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    grade: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    age_group: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Blob store references
    file_url: Mapped[str] = mapped_column(Text, nullable=False)
    file_name: Mapped[str] = mapped_column(String(1024), nullable=False)
    original_name: Mapped[str] = mapped_column(String(1024), nullable=False)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    thumbnail_name: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    upload_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    __table_args__ = (
        Index("ix_worksheets_upload_date", "upload_date"),
        Index("ix_worksheets_category", "category"),
        Index("ix_worksheets_grade", "grade"),
    )

    def __repr__(self) -> str:
        return f"<WorksheetModel(id={self.id}, file_name='{self.file_name}')>"
