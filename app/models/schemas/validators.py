"""Shared validators for Pydantic schemas."""

from typing import Optional

from app.models.worksheet import ALL_FILTER


def clean_filter_value(v: Optional[str]) -> Optional[str]:
    """Normalize an equality filter value.

    Blank values and the ``"All"`` wildcard both mean "no filter".

    Args:
        v: Raw query parameter value

    Returns:
        Cleaned string or None when the field should not be filtered
    """
    if v is None:
        return None

    v = v.strip()
    if not v or v == ALL_FILTER:
        return None

    return v

