"""
Date and interval helpers.

Bookings cover inclusive calendar-date ranges. `overlaps` is the only
overlap rule in the codebase; `overlap_clause` is the same predicate
expressed as a SQL filter for queries that need to narrow rows in the
database.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any

from dateutil.parser import isoparse
from sqlalchemy import and_
from sqlalchemy.sql.elements import ColumnElement


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    Example:
        >>> utc_now().tzinfo is not None
        True
    """
    return datetime.now(timezone.utc)


def parse_date(value: Any) -> date | None:
    """
    Coerce a calendar date from a date, datetime or ISO string.

    Strings may be a bare date ("2025-06-10") or a date-time with a time and
    optional offset ("2025-06-10T09:00:00-04:00"). Only the date portion as
    written is kept; no timezone conversion is applied.

    Returns:
        The date, or None when the value is empty or unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    try:
        return isoparse(text).date()
    except (ValueError, OverflowError):
        # Fall back to whatever precedes the time separator.
        head = text.split("T", 1)[0]
        try:
            return date.fromisoformat(head)
        except ValueError:
            return None


def days_between(start: date, end: date) -> int:
    """
    Whole days from `start` to `end`, rounded up and clamped at zero.

    Used for pricing and display only. Overlap checks use `overlaps`.
    """
    seconds = (end - start).total_seconds()
    return max(0, math.ceil(seconds / 86400))


def overlaps(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """
    Return True if two inclusive date ranges share at least one day.

    Touching endpoints count as overlap: [10, 12] and [12, 14] overlap.

    Example:
        >>> overlaps(date(2025, 6, 10), date(2025, 6, 12), date(2025, 6, 13), date(2025, 6, 14))
        False
    """
    return a_start <= b_end and b_start <= a_end


def overlap_clause(
    start_column: Any, end_column: Any, start: date, end: date
) -> ColumnElement[bool]:
    """SQL form of `overlaps` for a row range against [start, end]."""
    return and_(start_column <= end, start <= end_column)
