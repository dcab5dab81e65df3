"""
Trailer availability.

A trailer is available for [start, end] when no Pending, Approved or Paid
booking on it overlaps that inclusive range. Closed and Rejected bookings
never block.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, Union

import structlog
from sqlalchemy.engine import Connection

from trailer_booking.db.readers.bookings import list_active_bookings_for_trailer
from trailer_booking.errors import DateUnavailable, ValidationError
from trailer_booking.metrics import availability_conflicts
from trailer_booking.models.records import Conflict
from trailer_booking.utils.datetime import days_between, overlaps

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    conflicts: list[Conflict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "available": self.available,
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


def validate_range(start: Optional[date], end: Optional[date]) -> tuple[date, date]:
    """Return (start, end), or raise ValidationError unless both are present and ordered."""
    if start is None:
        raise ValidationError("start_date", "Start date is required")
    if end is None:
        raise ValidationError("end_date", "End date is required")
    if start > end:
        raise ValidationError("end_date", "End date must not be before start date")
    return start, end


def check_availability(
    conn: Connection,
    trailer_id: str,
    start: date,
    end: date,
    exclude_booking_id: Optional[str] = None,
) -> AvailabilityResult:
    """
    Find active bookings that would collide with [start, end] on a trailer.

    Args:
        conn: Active database connection. Pass the connection of the
            transaction that will insert or update, so the check and the
            write commit together.
        trailer_id: Trailer to check
        start: First day of the requested range
        end: Last day of the requested range (inclusive)
        exclude_booking_id: Booking to ignore, used when rescheduling it

    Returns:
        AvailabilityResult listing every conflicting booking
    """
    validate_range(start, end)

    conflicts = [
        Conflict(
            booking_id=b.id,
            rental_id=b.rental_id,
            start_date=b.start_date,
            end_date=b.end_date,
            status=b.status,
        )
        for b in list_active_bookings_for_trailer(conn, trailer_id, exclude_booking_id)
        if overlaps(b.start_date, b.end_date, start, end)
    ]

    if conflicts:
        availability_conflicts.inc()
        logger.info(
            "availability_conflict",
            trailer_id=trailer_id,
            start_date=start.isoformat(),
            end_date=end.isoformat(),
            conflicts=len(conflicts),
        )
    return AvailabilityResult(available=not conflicts, conflicts=conflicts)


def ensure_available(
    conn: Connection,
    trailer_id: str,
    start: date,
    end: date,
    exclude_booking_id: Optional[str] = None,
) -> None:
    """Like check_availability, but raise DateUnavailable on any conflict."""
    result = check_availability(conn, trailer_id, start, end, exclude_booking_id)
    if not result.available:
        raise DateUnavailable(result.conflicts)


def rental_quote(rate_per_day: Union[Decimal, float, int], start: date, end: date) -> Decimal:
    """
    Display price for a rental: the daily rate times the day count, minimum one day.

    Example:
        >>> rental_quote(Decimal("45.00"), date(2025, 6, 10), date(2025, 6, 10))
        Decimal('45.00')
    """
    days = max(1, days_between(start, end))
    return Decimal(str(rate_per_day)) * days
