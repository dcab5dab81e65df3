from typing import Any

from sqlalchemy import select
from sqlalchemy.engine import Connection

from trailer_booking.models.bookings import BookingEvent


def list_booking_events(conn: Connection, booking_id: str) -> list[dict[str, Any]]:
    """
    Return a booking's audit trail, oldest first.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        booking_id (str): Booking ID.

    Returns:
        list[dict[str, Any]]: Rows with `kind`, `details` and `created_at`.
    """
    result = conn.execute(
        select(BookingEvent.kind, BookingEvent.details, BookingEvent.created_at)
        .where(BookingEvent.booking_id == booking_id)
        .order_by(BookingEvent.created_at)
    )
    return [dict(row) for row in result.mappings()]
