"""
FastAPI dependency providers.

Routes receive the engine, the lifecycle manager, the credential issuer and
the calendar clients through these functions so tests can swap any of them
with ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Generator, Optional

from fastapi import Depends
from sqlalchemy.engine import Engine

from trailer_booking.config import (
    ACCESS_PEPPER,
    ADMIN_COOKIE_NAME,
    ADMIN_COOKIE_SECRET,
    GOOGLE_CALENDAR_ACCESS_TOKEN,
    GOOGLE_CALENDAR_ID,
)
from trailer_booking.db.engine import engine
from trailer_booking.errors import UpstreamUnavailable
from trailer_booking.network.calendar_client import GoogleCalendarSource
from trailer_booking.routes._booking_helpers import AdminCookieGuard
from trailer_booking.services.calendar_import import CalendarSource
from trailer_booking.services.calendar_push import CalendarPublisher
from trailer_booking.services.credentials import AccessCredentials
from trailer_booking.services.lifecycle import BookingLifecycle
from trailer_booking.services.notifications import Notifier, build_notifier


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide the database engine.

    Example:
        >>> app.dependency_overrides[get_db_engine] = lambda: test_engine
    """
    yield engine


def get_credentials() -> AccessCredentials:
    return AccessCredentials(pepper=ACCESS_PEPPER)


@lru_cache(maxsize=1)
def get_notifier() -> Notifier:
    return build_notifier()


def get_calendar_publisher() -> Optional[CalendarPublisher]:
    """Calendar that approved bookings are pushed to, or None when not configured."""
    if not GOOGLE_CALENDAR_ID or not GOOGLE_CALENDAR_ACCESS_TOKEN:
        return None
    return GoogleCalendarSource(GOOGLE_CALENDAR_ID, GOOGLE_CALENDAR_ACCESS_TOKEN)


def get_lifecycle(
    db_engine: Engine = Depends(get_db_engine),
    notifier: Notifier = Depends(get_notifier),
    credentials: AccessCredentials = Depends(get_credentials),
    calendar: Optional[CalendarPublisher] = Depends(get_calendar_publisher),
) -> BookingLifecycle:
    return BookingLifecycle(db_engine, notifier, credentials, calendar=calendar)


def get_calendar_source() -> CalendarSource:
    """
    Provide the configured Google calendar.

    Raises:
        UpstreamUnavailable: Calendar ID or access token is not configured.
    """
    if not GOOGLE_CALENDAR_ID or not GOOGLE_CALENDAR_ACCESS_TOKEN:
        raise UpstreamUnavailable("Calendar sync is not configured")
    return GoogleCalendarSource(GOOGLE_CALENDAR_ID, GOOGLE_CALENDAR_ACCESS_TOKEN)


require_admin = AdminCookieGuard(ADMIN_COOKIE_NAME, ADMIN_COOKIE_SECRET)
