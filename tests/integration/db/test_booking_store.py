"""
Integration tests for the booking store readers and writers.
"""

from __future__ import annotations

from datetime import date
from typing import Callable

import pytest
from sqlalchemy.engine import Engine

from trailer_booking.db.readers.bookings import (
    find_linked_event_ids,
    get_booking,
    get_booking_by_rental_id,
    list_active_bookings_for_trailer,
)
from trailer_booking.db.readers.clients import get_client_id_by_email
from trailer_booking.db.writers.bookings import insert_booking, update_booking
from trailer_booking.db.writers.clients import upsert_client
from trailer_booking.errors import ConstraintViolation

UTILITY_TRAILER_ID = "trailer-utility"


def _row(**overrides: object) -> dict:
    row = {
        "trailer_id": UTILITY_TRAILER_ID,
        "start_date": date(2025, 6, 10),
        "end_date": date(2025, 6, 12),
        "status": "Pending",
    }
    row.update(overrides)
    return row


@pytest.mark.integration
@pytest.mark.parametrize(
    "first,second,constraint",
    [
        ({"rental_id": "JLA-100000"}, {"rental_id": "JLA-100000"}, "rental_id"),
        ({"calendar_event_id": "evt-1"}, {"calendar_event_id": "evt-1"}, "calendar_event_id"),
    ],
)
def test_insert_booking_maps_unique_violations(
    db_engine: Engine,
    seeded_trailers: dict[str, str],
    first: dict,
    second: dict,
    constraint: str,
) -> None:
    with db_engine.begin() as conn:
        insert_booking(conn, _row(**first))

    with pytest.raises(ConstraintViolation) as exc_info:
        with db_engine.begin() as conn:
            insert_booking(conn, _row(**second))

    assert exc_info.value.constraint == constraint


@pytest.mark.integration
def test_insert_booking_rejects_reversed_dates(
    db_engine: Engine, seeded_trailers: dict[str, str]
) -> None:
    with pytest.raises(ConstraintViolation) as exc_info:
        with db_engine.begin() as conn:
            insert_booking(conn, _row(start_date=date(2025, 6, 12), end_date=date(2025, 6, 10)))

    assert exc_info.value.constraint == "ck_bookings_date_order"


@pytest.mark.integration
def test_get_booking_normalizes_missing_relations(
    db_engine: Engine, seeded_trailers: dict[str, str]
) -> None:
    with db_engine.begin() as conn:
        booking_id = insert_booking(conn, _row(rental_id=None))
        booking = get_booking(conn, booking_id)

    assert booking is not None
    assert booking.client is None
    assert booking.customer_name is None
    assert booking.trailer is not None and booking.trailer.id == UTILITY_TRAILER_ID
    assert booking.display_status == "Blocked"


@pytest.mark.integration
def test_update_booking_reports_rowcount(
    db_engine: Engine, make_booking: Callable[..., str]
) -> None:
    booking_id = make_booking(date(2025, 6, 10), date(2025, 6, 12), rental_id="JLA-100001")

    with db_engine.begin() as conn:
        assert update_booking(conn, booking_id, {"status": "Approved"}) == 1
        assert update_booking(conn, "missing", {"status": "Approved"}) == 0
        assert update_booking(conn, booking_id, {}) == 0
        booking = get_booking_by_rental_id(conn, "JLA-100001")

    assert booking is not None and booking.status == "Approved"


@pytest.mark.integration
def test_list_active_bookings_skips_terminal_and_excluded(
    db_engine: Engine, make_booking: Callable[..., str]
) -> None:
    pending = make_booking(date(2025, 6, 1), date(2025, 6, 2))
    paid = make_booking(date(2025, 5, 1), date(2025, 5, 2), status="Paid")
    make_booking(date(2025, 6, 3), date(2025, 6, 4), status="Closed")
    make_booking(date(2025, 6, 5), date(2025, 6, 6), status="Rejected")
    make_booking(date(2025, 6, 7), date(2025, 6, 8), trailer_id="trailer-dump")

    with db_engine.connect() as conn:
        active = list_active_bookings_for_trailer(conn, UTILITY_TRAILER_ID)
        without_paid = list_active_bookings_for_trailer(conn, UTILITY_TRAILER_ID, exclude_booking_id=paid)

    assert [b.id for b in active] == [paid, pending]
    assert [b.id for b in without_paid] == [pending]


@pytest.mark.integration
def test_find_linked_event_ids(db_engine: Engine, make_booking: Callable[..., str]) -> None:
    make_booking(date(2025, 6, 1), date(2025, 6, 2), calendar_event_id="evt-a")

    with db_engine.connect() as conn:
        assert find_linked_event_ids(conn, ["evt-a", "evt-b"]) == {"evt-a"}
        assert find_linked_event_ids(conn, []) == set()


@pytest.mark.integration
def test_upsert_client_matches_email_case_insensitively(db_engine: Engine) -> None:
    with db_engine.begin() as conn:
        first = upsert_client(conn, "Jane@Example.com", first_name="Jane", phone="305-555-0100")
        second = upsert_client(conn, " jane@example.COM ", first_name="Janet", phone="")
        found = get_client_id_by_email(conn, "JANE@example.com")

    assert first == second == found


@pytest.mark.integration
def test_upsert_client_refresh_rules(
    db_engine: Engine, seeded_trailers: dict[str, str]
) -> None:
    with db_engine.begin() as conn:
        client_id = upsert_client(conn, "jane@example.com", first_name="Jane", phone="305-555-0100")
        upsert_client(conn, "jane@example.com", first_name="Janet", phone="")
        upsert_client(conn, "jane@example.com", first_name="Imported", refresh=False)
        booking_id = insert_booking(conn, _row(client_id=client_id))
        booking = get_booking(conn, booking_id)

    assert booking is not None and booking.client is not None
    assert booking.client.first_name == "Janet"
    assert booking.client.phone == "305-555-0100"
