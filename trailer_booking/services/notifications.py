"""
Customer notifications.

Delivery is best-effort: a notifier returns a NotifyResult instead of
raising, and `notify_best_effort` guarantees callers never see an exception
from the mail path. Lifecycle transitions call it only after their
transaction has committed.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol

import resend
import structlog

from trailer_booking.config import RESEND_API_KEY, RESEND_FROM
from trailer_booking.metrics import api_latency, api_requests, notifications_sent
from trailer_booking.services.email_templates import render

logger = structlog.get_logger(__name__)


class NotificationKind(str, Enum):
    BOOKING_RECEIVED = "booking_received"
    BOOKING_APPROVED = "booking_approved"
    PAYMENT_RECEIVED = "payment_received"
    RESCHEDULED = "rescheduled"
    CLOSED = "closed"


@dataclass(frozen=True)
class NotifyResult:
    ok: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class Notifier(Protocol):
    def send(self, kind: str, recipient: str, template_data: dict[str, Any]) -> NotifyResult:
        ...


class ResendNotifier:
    """
    Sends notification emails through the Resend API.

    Example:
        >>> notifier = ResendNotifier(api_key="re_123", sender="Rentals <no-reply@example.com>")
        >>> notifier.send("booking_received", "jane@example.com", {"rental_id": "JLA-123456"})
    """

    def __init__(self, api_key: str, sender: str = RESEND_FROM) -> None:
        self.sender = sender
        resend.api_key = api_key

    def send(self, kind: str, recipient: str, template_data: dict[str, Any]) -> NotifyResult:
        subject, html = render(str(kind), template_data)
        start_time = time.time()
        try:
            response = resend.Emails.send(
                {"from": self.sender, "to": [recipient], "subject": subject, "html": html}
            )
        except Exception as e:
            api_requests.labels(service="resend", status_code="error").inc()
            return NotifyResult(ok=False, error=str(e))
        finally:
            api_latency.labels(service="resend").observe(time.time() - start_time)

        api_requests.labels(service="resend", status_code="200").inc()
        message_id = response.get("id") if isinstance(response, dict) else None
        return NotifyResult(ok=True, message_id=message_id)


class LogOnlyNotifier:
    """Logs what would be sent. Used when no mail API key is configured."""

    def send(self, kind: str, recipient: str, template_data: dict[str, Any]) -> NotifyResult:
        subject, _ = render(str(kind), template_data)
        logger.info("notification_not_sent", kind=str(kind), recipient=recipient, subject=subject)
        return NotifyResult(ok=True)


def build_notifier(api_key: Optional[str] = RESEND_API_KEY) -> Notifier:
    if api_key:
        return ResendNotifier(api_key=api_key)
    logger.warning("RESEND_API_KEY not set, notifications will only be logged")
    return LogOnlyNotifier()


def notify_best_effort(
    notifier: Notifier,
    kind: NotificationKind,
    recipient: Optional[str],
    template_data: dict[str, Any],
    booking_id: Optional[str] = None,
) -> NotifyResult:
    """
    Send one notification and log the outcome. Never raises.

    Args:
        notifier: Delivery backend
        kind: Notification kind, selects the template
        recipient: Customer email; a missing address is reported as a failed result
        template_data: Values for the template
        booking_id: Booking the notification is about, for log context

    Returns:
        NotifyResult from the notifier, or a failed result if it raised
    """
    log = logger.bind(kind=kind.value, booking_id=booking_id, rental_id=template_data.get("rental_id"))

    if not recipient:
        log.warning("notification_skipped_no_recipient")
        return NotifyResult(ok=False, error="no recipient")

    try:
        result = notifier.send(kind.value, recipient, template_data)
    except Exception as e:
        log.exception("notification_failed")
        result = NotifyResult(ok=False, error=str(e))

    if result.ok:
        notifications_sent.labels(kind=kind.value, status="sent").inc()
        log.info("notification_sent", message_id=result.message_id)
    else:
        notifications_sent.labels(kind=kind.value, status="failed").inc()
        log.warning("notification_not_delivered", error=result.error)
    return result
