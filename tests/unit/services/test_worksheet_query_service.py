"""
Unit tests for worksheet listing and lookups.
"""

from datetime import datetime, timezone

import pytest
import pytest_asyncio

from app.models.schemas import WorksheetFilters
from app.services.worksheet import WorksheetNotFoundError


@pytest_asyncio.fixture
async def catalog(insert_worksheet):
    """Four worksheets across two categories and two grades, oldest first."""
    return [
        await insert_worksheet(title="Addition", category="Math", grade="Grade 1"),
        await insert_worksheet(title="Plants", category="Science", subject="Science", grade="Grade 1"),
        await insert_worksheet(title="Fractions", category="Math", grade="Grade 3"),
        await insert_worksheet(title="Weather", category="Science", subject="Science", grade="Grade 3"),
    ]


class TestListWorksheets:
    """Tests for list_worksheets."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_newest_first(self, worksheet_service, catalog):
        result = await worksheet_service.list_worksheets()

        assert [w.title for w in result] == ["Weather", "Fractions", "Plants", "Addition"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_all_equals_no_filter(self, worksheet_service, catalog):
        unfiltered = await worksheet_service.list_worksheets()
        wildcard = await worksheet_service.list_worksheets(
            WorksheetFilters(subject="All", category="All", grade="All")
        )

        assert [w.id for w in wildcard] == [w.id for w in unfiltered]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_subject_filters_category(self, worksheet_service, catalog):
        result = await worksheet_service.list_worksheets(WorksheetFilters(subject="Math"))

        assert [w.title for w in result] == ["Fractions", "Addition"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_category_takes_precedence(self, worksheet_service, catalog):
        result = await worksheet_service.list_worksheets(
            WorksheetFilters(subject="Math", category="Science")
        )

        assert {w.category for w in result} == {"Science"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_grade_filter(self, worksheet_service, catalog):
        result = await worksheet_service.list_worksheets(
            WorksheetFilters(grade="Grade 3", category="Math")
        )

        assert [w.title for w in result] == ["Fractions"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_match(self, worksheet_service, catalog):
        assert await worksheet_service.list_worksheets(WorksheetFilters(grade="Grade 9")) == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_store(self, worksheet_service):
        assert await worksheet_service.list_worksheets() == []


class TestFeeds:
    """Tests for the popular and recent feeds."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_recent_limited_to_three(self, worksheet_service, catalog):
        result = await worksheet_service.recent_worksheets()

        assert [w.title for w in result] == ["Weather", "Fractions", "Plants"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_popular_matches_recent(self, worksheet_service, catalog):
        popular = await worksheet_service.popular_worksheets()
        recent = await worksheet_service.recent_worksheets()

        assert [w.id for w in popular] == [w.id for w in recent]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_feed_with_fewer_records(self, worksheet_service, insert_worksheet):
        only = await insert_worksheet(upload_date=datetime(2023, 5, 1, tzinfo=timezone.utc))

        result = await worksheet_service.recent_worksheets()

        assert [w.id for w in result] == [only.id]


class TestGetWorksheet:
    """Tests for get_worksheet."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_get_existing(self, worksheet_service, insert_worksheet):
        created = await insert_worksheet(title="Maps", tags=["geo", "maps"])

        fetched = await worksheet_service.get_worksheet(created.id)

        assert fetched.id == created.id
        assert fetched.title == "Maps"
        assert fetched.tags == ["geo", "maps"]
        assert fetched.file_name == created.file_name

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_get_unknown(self, worksheet_service):
        with pytest.raises(WorksheetNotFoundError):
            await worksheet_service.get_worksheet("missing-id")
