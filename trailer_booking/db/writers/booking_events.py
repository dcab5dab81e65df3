from typing import Any, Optional

import structlog
from sqlalchemy import insert
from sqlalchemy.engine import Connection

from trailer_booking.models.base import new_id
from trailer_booking.models.bookings import BookingEvent
from trailer_booking.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def log_booking_event(
    conn: Connection, booking_id: str, kind: str, details: Optional[dict[str, Any]] = None
) -> str:
    """
    Append an audit row for a booking transition.

    Runs in the same transaction as the transition it records.
    """
    event_id = new_id()
    conn.execute(
        insert(BookingEvent).values(
            id=event_id,
            booking_id=booking_id,
            kind=kind,
            details=details or {},
            created_at=utc_now(),
        )
    )
    logger.debug("booking_event_logged", booking_id=booking_id, kind=kind)
    return event_id
