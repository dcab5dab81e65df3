"""Admin calendar aggregation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from sqlalchemy.engine import Engine

from trailer_booking.db.readers.bookings import list_bookings_in_window
from trailer_booking.services.availability import validate_range


@dataclass(frozen=True)
class CalendarEntry:
    booking_id: str
    rental_id: Optional[str]
    status: str
    start_date: date
    end_date: date
    customer_name: Optional[str]
    trailer_name: Optional[str]
    trailer_color_hex: Optional[str]
    delivery_requested: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.booking_id,
            "rentalId": self.rental_id,
            "status": self.status,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "customerName": self.customer_name,
            "trailerName": self.trailer_name,
            "trailerColorHex": self.trailer_color_hex,
            "deliveryRequested": self.delivery_requested,
        }


def calendar_window(engine: Engine, start: date, end: date) -> list[CalendarEntry]:
    """
    Bookings of any status that touch [start, end], earliest first.

    Rows without a rental ID are labelled "Blocked" instead of their stored status.
    """
    validate_range(start, end)
    with engine.connect() as conn:
        bookings = list_bookings_in_window(conn, start, end)

    return [
        CalendarEntry(
            booking_id=b.id,
            rental_id=b.rental_id,
            status=b.display_status,
            start_date=b.start_date,
            end_date=b.end_date,
            customer_name=b.customer_name,
            trailer_name=b.trailer.name if b.trailer else None,
            trailer_color_hex=b.trailer.color_hex if b.trailer else None,
            delivery_requested=b.delivery_requested,
        )
        for b in bookings
    ]
