"""
Unit tests for date and interval helpers.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from itertools import product

import pytest

from trailer_booking.utils.datetime import days_between, overlaps, parse_date, utc_now

JUNE = [date(2025, 6, d) for d in range(8, 17)]


@pytest.mark.unit
def test_utc_now_is_timezone_aware() -> None:
    assert utc_now().tzinfo is not None


@pytest.mark.unit
def test_touching_endpoints_overlap() -> None:
    """[10, 12] and [12, 14] share the 12th."""
    assert overlaps(date(2025, 6, 10), date(2025, 6, 12), date(2025, 6, 12), date(2025, 6, 14))


@pytest.mark.unit
def test_adjacent_ranges_do_not_overlap() -> None:
    assert not overlaps(date(2025, 6, 10), date(2025, 6, 12), date(2025, 6, 13), date(2025, 6, 14))


@pytest.mark.unit
def test_contained_range_overlaps() -> None:
    assert overlaps(date(2025, 6, 10), date(2025, 6, 20), date(2025, 6, 12), date(2025, 6, 13))


@pytest.mark.unit
def test_single_day_ranges() -> None:
    day = date(2025, 6, 10)
    assert overlaps(day, day, day, day)
    assert overlaps(day, day, date(2025, 6, 9), date(2025, 6, 10))
    assert not overlaps(day, day, date(2025, 6, 11), date(2025, 6, 11))


@pytest.mark.unit
def test_overlaps_is_symmetric() -> None:
    """Swapping the two ranges never changes the answer."""
    ranges = [(s, e) for s, e in product(JUNE, JUNE) if s <= e]
    for (a_start, a_end), (b_start, b_end) in product(ranges[::3], ranges[::5]):
        assert overlaps(a_start, a_end, b_start, b_end) == overlaps(b_start, b_end, a_start, a_end)


@pytest.mark.unit
@pytest.mark.parametrize(
    "start,end,expected",
    [
        (date(2025, 6, 10), date(2025, 6, 10), 0),
        (date(2025, 6, 10), date(2025, 6, 11), 1),
        (date(2025, 6, 10), date(2025, 6, 17), 7),
        (date(2025, 6, 12), date(2025, 6, 10), 0),
        (date(2025, 2, 27), date(2025, 3, 2), 3),
    ],
)
def test_days_between(start: date, end: date, expected: int) -> None:
    assert days_between(start, end) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "value,expected",
    [
        ("2025-06-10", date(2025, 6, 10)),
        ("2025-06-10T09:00:00-04:00", date(2025, 6, 10)),
        ("2025-06-10T23:30:00Z", date(2025, 6, 10)),
        (date(2025, 6, 10), date(2025, 6, 10)),
        (datetime(2025, 6, 10, 22, 0, tzinfo=timezone.utc), date(2025, 6, 10)),
        ("", None),
        (None, None),
        ("next tuesday", None),
        (20250610, None),
    ],
)
def test_parse_date(value: object, expected: date | None) -> None:
    assert parse_date(value) == expected
