"""
Booking queries.

Every booking read that callers see goes through `_to_detail`, which folds
the outer-joined client and trailer columns into single optional objects.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Optional

from sqlalchemy import Select, select
from sqlalchemy.engine import Connection, RowMapping

from trailer_booking.models.bookings import ACTIVE_STATUSES, Booking
from trailer_booking.models.clients import Client
from trailer_booking.models.records import BookingDetail, ClientSummary, TrailerSummary
from trailer_booking.models.trailers import Trailer
from trailer_booking.utils.datetime import overlap_clause

_BOOKING_COLUMNS = [c for c in Booking.__table__.c]

_JOINED_COLUMNS = [
    Client.email.label("client_email"),
    Client.first_name.label("client_first_name"),
    Client.last_name.label("client_last_name"),
    Client.phone.label("client_phone"),
    Client.towing_vehicle.label("client_towing_vehicle"),
    Trailer.name.label("trailer_name"),
    Trailer.rate_per_day.label("trailer_rate_per_day"),
    Trailer.active.label("trailer_active"),
    Trailer.color_hex.label("trailer_color_hex"),
]


def _detail_query() -> Select[Any]:
    return (
        select(*_BOOKING_COLUMNS, *_JOINED_COLUMNS)
        .select_from(Booking)
        .outerjoin(Client, Client.id == Booking.client_id)
        .outerjoin(Trailer, Trailer.id == Booking.trailer_id)
    )


def _to_detail(row: RowMapping) -> BookingDetail:
    client = None
    if row["client_id"] is not None and row["client_email"] is not None:
        client = ClientSummary(
            id=row["client_id"],
            email=row["client_email"],
            first_name=row["client_first_name"],
            last_name=row["client_last_name"],
            phone=row["client_phone"],
            towing_vehicle=row["client_towing_vehicle"],
        )

    trailer = None
    if row["trailer_name"] is not None:
        trailer = TrailerSummary(
            id=row["trailer_id"],
            name=row["trailer_name"],
            rate_per_day=row["trailer_rate_per_day"],
            active=bool(row["trailer_active"]),
            color_hex=row["trailer_color_hex"],
        )

    return BookingDetail(
        id=row["id"],
        rental_id=row["rental_id"],
        trailer_id=row["trailer_id"],
        client_id=row["client_id"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        status=row["status"],
        delivery_requested=bool(row["delivery_requested"]),
        pickup_time=row["pickup_time"],
        return_time=row["return_time"],
        access_key_hash=row["access_key_hash"],
        payment_link=row["payment_link"],
        close_outcome=row["close_outcome"],
        close_reason=row["close_reason"],
        calendar_event_id=row["calendar_event_id"],
        created_at=row["created_at"],
        approved_at=row["approved_at"],
        paid_at=row["paid_at"],
        payment_link_sent_at=row["payment_link_sent_at"],
        confirmation_sent_at=row["confirmation_sent_at"],
        client=client,
        trailer=trailer,
    )


def get_booking(
    conn: Connection, booking_id: str, for_update: bool = False
) -> Optional[BookingDetail]:
    """
    Fetch one booking with its client and trailer.

    Args:
        conn: Active database connection
        booking_id: Internal booking ID
        for_update: Lock the booking row until the surrounding transaction ends

    Returns:
        BookingDetail, or None if no booking has that ID
    """
    stmt = _detail_query().where(Booking.id == booking_id)
    if for_update:
        stmt = stmt.with_for_update(of=Booking.__table__)
    row = conn.execute(stmt).mappings().fetchone()
    return _to_detail(row) if row else None


def get_booking_by_rental_id(conn: Connection, rental_id: str) -> Optional[BookingDetail]:
    """Fetch one booking by its customer-facing rental ID."""
    row = conn.execute(_detail_query().where(Booking.rental_id == rental_id)).mappings().fetchone()
    return _to_detail(row) if row else None


def list_active_bookings_for_trailer(
    conn: Connection, trailer_id: str, exclude_booking_id: Optional[str] = None
) -> list[BookingDetail]:
    """
    Return every Pending, Approved or Paid booking on a trailer.

    Args:
        conn: Active database connection
        trailer_id: Trailer to inspect
        exclude_booking_id: Booking to leave out (the one being rescheduled)
    """
    stmt = (
        _detail_query()
        .where(Booking.trailer_id == trailer_id)
        .where(Booking.status.in_([s.value for s in ACTIVE_STATUSES]))
        .order_by(Booking.start_date)
    )
    if exclude_booking_id is not None:
        stmt = stmt.where(Booking.id != exclude_booking_id)
    return [_to_detail(row) for row in conn.execute(stmt).mappings()]


def list_bookings_in_window(conn: Connection, start: date, end: date) -> list[BookingDetail]:
    """Return bookings of any status whose range overlaps [start, end], earliest first."""
    stmt = (
        _detail_query()
        .where(overlap_clause(Booking.start_date, Booking.end_date, start, end))
        .order_by(Booking.start_date, Booking.created_at)
    )
    return [_to_detail(row) for row in conn.execute(stmt).mappings()]


def find_linked_event_ids(conn: Connection, event_ids: Iterable[str]) -> set[str]:
    """Return the subset of external calendar event IDs already attached to a booking."""
    ids = list(event_ids)
    if not ids:
        return set()
    result = conn.execute(
        select(Booking.calendar_event_id).where(Booking.calendar_event_id.in_(ids))
    )
    return {row[0] for row in result if row[0]}
