"""
Push approved bookings to the shop's Google Calendar.

The event reads ``"<Customer> · <Trailer> · <Rental ID>"``. It has no
``" - "`` separator, so the importer never mistakes it for a phone booking,
and once linked its ID is skipped by the importer anyway.
"""

from __future__ import annotations

from datetime import date, time
from typing import Any, Optional, Protocol

import structlog

from trailer_booking.config import (
    RENTAL_DEFAULT_END_HOUR,
    RENTAL_DEFAULT_START_HOUR,
    RENTAL_TIMEZONE,
)
from trailer_booking.metrics import calendar_pushes
from trailer_booking.models.records import BookingDetail

logger = structlog.get_logger(__name__)

DEFAULT_CUSTOMER = "Client"

# Google only offers a fixed palette (colorId 1-11); trailer colours map onto it.
EVENT_COLOR_IDS = {
    "#60a5fa": "9",  # blueberry
    "#34d399": "10",  # basil
    "#f87171": "11",  # tomato
    "#fb923c": "6",  # tangerine
    "#a78bfa": "3",  # grape
    "#ffff00": "5",  # banana
    "#f472b6": "4",  # flamingo
}


class CalendarPublisher(Protocol):
    def create_event(self, body: dict[str, Any]) -> str:
        ...


def event_color_id(color_hex: Optional[str]) -> Optional[str]:
    if not color_hex:
        return None
    return EVENT_COLOR_IDS.get(color_hex.strip().lower())


def event_summary(booking: BookingDetail) -> str:
    """
    Example:
        >>> event_summary(booking)
        'Jane Doe · 6x12 Utility Trailer · JLA-123456'
    """
    parts = [booking.customer_name or DEFAULT_CUSTOMER]
    if booking.trailer is not None:
        parts.append(booking.trailer.name)
    parts.append(booking.rental_id or "")
    return " · ".join(parts)


def event_description(booking: BookingDetail) -> str:
    return "\n".join(
        [
            f"Rental: {booking.rental_id}",
            f"Customer: {booking.customer_name or '-'}",
            f"Trailer: {booking.trailer.name if booking.trailer else '-'}",
            f"Delivery requested: {'Yes' if booking.delivery_requested else 'No'}",
        ]
    )


def _local_time(day: date, at: time) -> dict[str, str]:
    return {
        "dateTime": f"{day.isoformat()}T{at.hour:02d}:{at.minute:02d}:00",
        "timeZone": RENTAL_TIMEZONE,
    }


def build_event(booking: BookingDetail) -> dict[str, Any]:
    """
    Google Calendar event body for a booking.

    With a pickup time the event runs from pickup on the first day to the
    same time on the last day; otherwise it uses the default shop hours.
    """
    start_at = booking.pickup_time or time(RENTAL_DEFAULT_START_HOUR)
    end_at = booking.pickup_time or time(RENTAL_DEFAULT_END_HOUR)
    body: dict[str, Any] = {
        "summary": event_summary(booking),
        "description": event_description(booking),
        "start": _local_time(booking.start_date, start_at),
        "end": _local_time(booking.end_date, end_at),
    }
    color_id = event_color_id(booking.trailer.color_hex if booking.trailer else None)
    if color_id:
        body["colorId"] = color_id
    return body


def push_booking(publisher: CalendarPublisher, booking: BookingDetail) -> Optional[str]:
    """
    Create the calendar event for a booking. Never raises.

    Returns:
        The new event ID, or None if the push failed.
    """
    try:
        event_id = publisher.create_event(build_event(booking))
    except Exception as e:
        calendar_pushes.labels(status="failure").inc()
        logger.error(
            "calendar_push_failed",
            booking_id=booking.id,
            rental_id=booking.rental_id,
            error=str(e),
        )
        return None

    calendar_pushes.labels(status="success").inc()
    return event_id
