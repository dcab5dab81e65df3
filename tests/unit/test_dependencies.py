"""
Unit tests for FastAPI dependency injection.
"""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from trailer_booking.dependencies import (
    get_calendar_publisher,
    get_calendar_source,
    get_credentials,
    get_db_engine,
    get_lifecycle,
)
from trailer_booking.errors import UpstreamUnavailable
from trailer_booking.network.calendar_client import GoogleCalendarSource
from trailer_booking.services.credentials import AccessCredentials
from trailer_booking.services.lifecycle import BookingLifecycle


@pytest.mark.unit
def test_get_db_engine_dependency() -> None:
    """get_db_engine yields the shared engine instance."""
    engine1 = next(get_db_engine())
    engine2 = next(get_db_engine())

    assert isinstance(engine1, Engine)
    assert engine1 is engine2


@pytest.mark.unit
def test_dependency_injection_can_be_overridden() -> None:
    app = FastAPI()

    @app.get("/test")
    def test_endpoint(engine: Engine = Depends(get_db_engine)) -> dict[str, str]:
        return {"engine_name": engine.name}

    mock_engine = Mock(spec=Engine)
    mock_engine.name = "mock_engine"
    app.dependency_overrides[get_db_engine] = lambda: mock_engine

    response = TestClient(app).get("/test")

    assert response.status_code == 200
    assert response.json() == {"engine_name": "mock_engine"}


@pytest.mark.unit
def test_get_lifecycle_wires_collaborators() -> None:
    engine = Mock(spec=Engine)
    notifier = Mock()
    credentials = get_credentials()

    lifecycle = get_lifecycle(
        db_engine=engine, notifier=notifier, credentials=credentials, calendar=None
    )

    assert isinstance(lifecycle, BookingLifecycle)
    assert isinstance(credentials, AccessCredentials)
    assert lifecycle.engine is engine
    assert lifecycle.notifier is notifier
    assert lifecycle.calendar is None


@pytest.mark.unit
def test_get_calendar_source_requires_configuration() -> None:
    with patch("trailer_booking.dependencies.GOOGLE_CALENDAR_ID", None):
        with pytest.raises(UpstreamUnavailable):
            get_calendar_source()


@pytest.mark.unit
def test_get_calendar_source_builds_google_client() -> None:
    with patch("trailer_booking.dependencies.GOOGLE_CALENDAR_ID", "shop@group.calendar.google.com"), patch(
        "trailer_booking.dependencies.GOOGLE_CALENDAR_ACCESS_TOKEN", "token"
    ):
        source = get_calendar_source()

    assert isinstance(source, GoogleCalendarSource)


@pytest.mark.unit
def test_get_calendar_publisher_is_none_when_unconfigured() -> None:
    with patch("trailer_booking.dependencies.GOOGLE_CALENDAR_ID", None):
        assert get_calendar_publisher() is None


@pytest.mark.unit
def test_get_calendar_publisher_builds_google_client() -> None:
    with patch("trailer_booking.dependencies.GOOGLE_CALENDAR_ID", "shop@group.calendar.google.com"), patch(
        "trailer_booking.dependencies.GOOGLE_CALENDAR_ACCESS_TOKEN", "token"
    ):
        publisher = get_calendar_publisher()

    assert isinstance(publisher, GoogleCalendarSource)
