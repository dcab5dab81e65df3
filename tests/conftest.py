"""
Shared fixtures.

Tests run against an in-memory SQLite database built from the model
metadata. Environment defaults are set before any trailer_booking import
because config reads them at import time.
"""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ACCESS_PEPPER", "test-pepper")
os.environ.setdefault("ADMIN_COOKIE_SECRET", "test-admin-secret")
os.environ["DRY_RUN"] = "false"
for _name in ("RESEND_API_KEY", "GOOGLE_CALENDAR_ID", "GOOGLE_CALENDAR_ACCESS_TOKEN"):
    os.environ.pop(_name, None)

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402
from typing import Any, Callable, Generator, Optional  # noqa: E402
from unittest.mock import Mock  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, insert  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from trailer_booking.config import ADMIN_COOKIE_NAME  # noqa: E402
from trailer_booking.db.writers.bookings import insert_booking  # noqa: E402
from trailer_booking.db.writers.clients import upsert_client  # noqa: E402
from trailer_booking.dependencies import (  # noqa: E402
    get_calendar_publisher,
    get_credentials,
    get_db_engine,
    get_notifier,
)
from trailer_booking.main import app  # noqa: E402
from trailer_booking.models import bookings, clients, trailers  # noqa: E402, F401
from trailer_booking.models.base import Base  # noqa: E402
from trailer_booking.models.trailers import Trailer  # noqa: E402
from trailer_booking.services.credentials import AccessCredentials  # noqa: E402
from trailer_booking.services.lifecycle import BookingLifecycle  # noqa: E402
from trailer_booking.services.notifications import NotifyResult  # noqa: E402

TEST_PEPPER = "test-pepper"
ADMIN_SECRET = os.environ["ADMIN_COOKIE_SECRET"]

UTILITY_TRAILER_ID = "trailer-utility"
DUMP_TRAILER_ID = "trailer-dump"
RETIRED_TRAILER_ID = "trailer-retired"


@pytest.fixture
def db_engine() -> Generator[Engine, None, None]:
    """Fresh in-memory database with all tables."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def seeded_trailers(db_engine: Engine) -> dict[str, str]:
    """Two active trailers and one retired one. Returns name -> id."""
    rows = [
        {
            "id": UTILITY_TRAILER_ID,
            "name": "6x12 Utility Trailer",
            "rate_per_day": Decimal("45.00"),
            "active": True,
            "color_hex": "#22c55e",
        },
        {
            "id": DUMP_TRAILER_ID,
            "name": "7x14 Dump Trailer",
            "rate_per_day": Decimal("95.00"),
            "active": True,
            "color_hex": "#3b82f6",
        },
        {
            "id": RETIRED_TRAILER_ID,
            "name": "5x8 Enclosed Trailer",
            "rate_per_day": Decimal("30.00"),
            "active": False,
            "color_hex": None,
        },
    ]
    with db_engine.begin() as conn:
        conn.execute(insert(Trailer), rows)
    return {row["name"]: row["id"] for row in rows}


@pytest.fixture
def credentials() -> AccessCredentials:
    return AccessCredentials(pepper=TEST_PEPPER)


@pytest.fixture
def notifier() -> Mock:
    """Notifier that always reports success."""
    mock = Mock()
    mock.send.return_value = NotifyResult(ok=True, message_id="msg_test")
    return mock


@pytest.fixture
def lifecycle(
    db_engine: Engine, seeded_trailers: dict[str, str], notifier: Mock, credentials: AccessCredentials
) -> BookingLifecycle:
    return BookingLifecycle(db_engine, notifier, credentials)


@pytest.fixture
def make_booking(
    db_engine: Engine, seeded_trailers: dict[str, str], credentials: AccessCredentials
) -> Callable[..., str]:
    """
    Insert a booking directly, bypassing availability checks.

    Returns a factory: make_booking(start, end, status="Pending", ...) -> booking_id
    """
    counter = {"n": 0}

    def _make(
        start: date,
        end: date,
        status: str = "Pending",
        trailer_id: str = UTILITY_TRAILER_ID,
        rental_id: Optional[str] = "auto",
        email: str = "renter@example.com",
        **extra: Any,
    ) -> str:
        counter["n"] += 1
        if rental_id == "auto":
            rental_id = f"JLA-{900000 + counter['n']}"
        with db_engine.begin() as conn:
            client_id = upsert_client(
                conn, email=email, first_name="Rita", last_name="Renter", phone="305-555-0199"
            )
            return insert_booking(
                conn,
                {
                    "rental_id": rental_id,
                    "trailer_id": trailer_id,
                    "client_id": client_id,
                    "start_date": start,
                    "end_date": end,
                    "status": status,
                    "access_key_hash": credentials.hash_access_key("123456"),
                    **extra,
                },
            )

    return _make


@pytest.fixture
def api_client(
    db_engine: Engine, seeded_trailers: dict[str, str], notifier: Mock, credentials: AccessCredentials
) -> Generator[TestClient, None, None]:
    """TestClient wired to the in-memory database and the mock notifier."""
    app.dependency_overrides[get_db_engine] = lambda: db_engine
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_credentials] = lambda: credentials
    app.dependency_overrides[get_calendar_publisher] = lambda: None
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(api_client: TestClient) -> TestClient:
    """api_client carrying a valid admin session cookie."""
    api_client.cookies.set(ADMIN_COOKIE_NAME, ADMIN_SECRET)
    return api_client
