"""
Unit tests for notification delivery and templates.
"""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest

from trailer_booking.services.email_templates import render
from trailer_booking.services.notifications import (
    LogOnlyNotifier,
    NotificationKind,
    NotifyResult,
    ResendNotifier,
    build_notifier,
    notify_best_effort,
)

DATA = {
    "rental_id": "JLA-123456",
    "first_name": "Jane",
    "trailer_name": "6x12 Utility Trailer",
    "start_date": "2025-06-10",
    "end_date": "2025-06-12",
}


@pytest.mark.unit
def test_notify_best_effort_returns_notifier_result() -> None:
    notifier = Mock()
    notifier.send.return_value = NotifyResult(ok=True, message_id="m1")

    result = notify_best_effort(notifier, NotificationKind.BOOKING_RECEIVED, "jane@example.com", DATA)

    assert result.ok
    notifier.send.assert_called_once_with("booking_received", "jane@example.com", DATA)


@pytest.mark.unit
def test_notify_best_effort_swallows_exceptions() -> None:
    notifier = Mock()
    notifier.send.side_effect = ConnectionError("smtp down")

    result = notify_best_effort(notifier, NotificationKind.PAYMENT_RECEIVED, "jane@example.com", DATA)

    assert not result.ok
    assert "smtp down" in (result.error or "")


@pytest.mark.unit
def test_notify_best_effort_passes_through_failed_result() -> None:
    notifier = Mock()
    notifier.send.return_value = NotifyResult(ok=False, error="rejected")

    result = notify_best_effort(notifier, NotificationKind.CLOSED, "jane@example.com", DATA)

    assert result == NotifyResult(ok=False, error="rejected")


@pytest.mark.unit
def test_notify_best_effort_skips_missing_recipient() -> None:
    notifier = Mock()

    result = notify_best_effort(notifier, NotificationKind.RESCHEDULED, None, DATA)

    assert not result.ok
    notifier.send.assert_not_called()


@pytest.mark.unit
@patch("trailer_booking.services.notifications.resend.Emails.send")
def test_resend_notifier_sends_rendered_email(mock_send: Mock) -> None:
    mock_send.return_value = {"id": "re_abc"}
    notifier = ResendNotifier(api_key="re_test", sender="Rentals <no-reply@example.com>")

    result = notifier.send(
        "booking_approved", "jane@example.com", {**DATA, "payment_link": "https://pay.example/abc"}
    )

    assert result == NotifyResult(ok=True, message_id="re_abc")
    params = mock_send.call_args[0][0]
    assert params["from"] == "Rentals <no-reply@example.com>"
    assert params["to"] == ["jane@example.com"]
    assert "JLA-123456" in params["subject"]
    assert "https://pay.example/abc" in params["html"]


@pytest.mark.unit
@patch("trailer_booking.services.notifications.resend.Emails.send")
def test_resend_notifier_reports_api_errors(mock_send: Mock) -> None:
    mock_send.side_effect = RuntimeError("invalid api key")

    result = ResendNotifier(api_key="re_bad").send("payment_received", "jane@example.com", DATA)

    assert not result.ok
    assert result.error == "invalid api key"


@pytest.mark.unit
def test_log_only_notifier_succeeds() -> None:
    assert LogOnlyNotifier().send("booking_received", "jane@example.com", DATA).ok


@pytest.mark.unit
def test_build_notifier_without_key_logs_only() -> None:
    assert isinstance(build_notifier(api_key=None), LogOnlyNotifier)
    assert isinstance(build_notifier(api_key="re_test"), ResendNotifier)


@pytest.mark.unit
def test_booking_received_includes_access_key() -> None:
    subject, html = render("booking_received", {**DATA, "access_key": "482913"})

    assert subject == "We received your booking: JLA-123456"
    assert "482913" in html
    assert "Hi Jane," in html
    assert "Jun 10, 2025" in html


@pytest.mark.unit
def test_templates_escape_customer_input() -> None:
    _, html = render("booking_received", {**DATA, "first_name": "<script>x</script>"})

    assert "<script>" not in html
    assert "&lt;script&gt;" in html


@pytest.mark.unit
def test_rescheduled_shows_new_dates() -> None:
    _, html = render(
        "rescheduled", {**DATA, "new_start_date": "2025-07-01", "new_end_date": "2025-07-03"}
    )

    assert "Jul 01, 2025" in html
    assert "Jul 03, 2025" in html


@pytest.mark.unit
def test_closed_variants() -> None:
    completed_subject, _ = render("closed", {**DATA, "outcome": "completed"})
    cancelled_subject, cancelled_html = render(
        "closed", {**DATA, "outcome": "cancelled", "reason": "Customer asked"}
    )

    assert completed_subject.startswith("Thanks for renting")
    assert cancelled_subject.startswith("Booking cancelled")
    assert "Customer asked" in cancelled_html


@pytest.mark.unit
def test_unknown_kind_raises() -> None:
    with pytest.raises(ValueError):
        render("newsletter", DATA)
