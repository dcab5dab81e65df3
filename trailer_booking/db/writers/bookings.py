from typing import Any

import structlog
from sqlalchemy import insert, update
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from trailer_booking.errors import ConstraintViolation
from trailer_booking.models.bookings import Booking
from trailer_booking.models.base import new_id

logger = structlog.get_logger(__name__)

# Checked in order against the driver message; both SQLite and PostgreSQL
# name the column (or the check constraint) in their integrity errors.
_KNOWN_CONSTRAINTS = (
    "calendar_event_id",
    "rental_id",
    "ck_bookings_date_order",
    "trailer_id",
    "email",
)


def constraint_name(exc: IntegrityError) -> str:
    """Best-effort name of the constraint behind an IntegrityError."""
    message = str(exc.orig).lower()
    for name in _KNOWN_CONSTRAINTS:
        if name in message:
            return name
    return "unknown"


def insert_booking(conn: Connection, values: dict[str, Any]) -> str:
    """
    Insert a booking row and return its ID.

    The caller owns the transaction. An integrity failure aborts it, so the
    caller should let the ConstraintViolation propagate out of its
    `engine.begin()` block.

    Args:
        conn: Active database connection (within transaction)
        values: Column values; `id` is generated when absent

    Returns:
        The new booking ID

    Raises:
        ConstraintViolation: A unique or check constraint rejected the row
    """
    row = dict(values)
    row.setdefault("id", new_id())
    try:
        conn.execute(insert(Booking).values(**row))
    except IntegrityError as exc:
        name = constraint_name(exc)
        logger.warning(
            "booking_insert_rejected",
            constraint=name,
            rental_id=row.get("rental_id"),
            calendar_event_id=row.get("calendar_event_id"),
        )
        raise ConstraintViolation(name) from exc
    return row["id"]


def update_booking(conn: Connection, booking_id: str, values: dict[str, Any]) -> int:
    """
    Update columns on one booking.

    Args:
        conn: Active database connection (within transaction)
        booking_id: Booking to update
        values: Columns to set

    Returns:
        Number of rows updated (0 or 1)
    """
    if not values:
        return 0
    try:
        result = conn.execute(update(Booking).where(Booking.id == booking_id).values(**values))
    except IntegrityError as exc:
        raise ConstraintViolation(constraint_name(exc)) from exc
    return result.rowcount
