"""
Unit tests for the calendar sync command.
"""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest

from trailer_booking.errors import UpstreamUnavailable
from trailer_booking.pollers import calendar_sync
from trailer_booking.services.calendar_import import ImportSummary


@pytest.mark.unit
def test_parse_args_defaults() -> None:
    args = calendar_sync.parse_args([])

    assert args.days_back == 1
    assert args.days_forward == 60
    assert args.dry_run is False


@pytest.mark.unit
@patch.object(calendar_sync, "GOOGLE_CALENDAR_ACCESS_TOKEN", "token")
@patch.object(calendar_sync, "GOOGLE_CALENDAR_ID", "shop@example.com")
@patch.object(calendar_sync, "sync_from_calendar")
def test_main_runs_sync_with_arguments(mock_sync: Mock) -> None:
    mock_sync.return_value = ImportSummary(created=1)

    exit_code = calendar_sync.main(["--days-back", "7", "--days-forward", "30", "--dry-run"])

    assert exit_code == 0
    kwargs = mock_sync.call_args.kwargs
    assert kwargs["days_back"] == 7
    assert kwargs["days_forward"] == 30
    assert kwargs["dry_run"] is True


@pytest.mark.unit
@patch.object(calendar_sync, "GOOGLE_CALENDAR_ACCESS_TOKEN", "token")
@patch.object(calendar_sync, "GOOGLE_CALENDAR_ID", "shop@example.com")
@patch.object(calendar_sync, "sync_from_calendar")
def test_main_returns_1_when_calendar_unreachable(mock_sync: Mock) -> None:
    mock_sync.side_effect = UpstreamUnavailable("Calendar provider unavailable: HTTP 503")

    assert calendar_sync.main([]) == 1


@pytest.mark.unit
@patch.object(calendar_sync, "GOOGLE_CALENDAR_ID", None)
@patch.object(calendar_sync, "sync_from_calendar")
def test_main_requires_configuration(mock_sync: Mock) -> None:
    assert calendar_sync.main([]) == 2
    mock_sync.assert_not_called()
