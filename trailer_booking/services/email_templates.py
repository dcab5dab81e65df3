"""
Subjects and minimal HTML bodies for customer notifications.

Every builder takes the same ``template_data`` dict the lifecycle passes to
the notifier and returns ``(subject, html)``. Values are HTML-escaped here.
"""

from __future__ import annotations

from datetime import date
from html import escape
from typing import Any, Callable

from trailer_booking.config import REVIEW_URL, SITE_URL

ACCENT = "#22c55e"
SUBTEXT = "#475569"


def _fmt(value: Any) -> str:
    if isinstance(value, date):
        return value.strftime("%b %d, %Y")
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value[:10]).strftime("%b %d, %Y")
        except ValueError:
            return escape(value)
    return "-"


def _greeting(data: dict[str, Any]) -> str:
    first_name = data.get("first_name")
    return f"Hi {escape(first_name)}," if first_name else "Hello,"


def _button(href: str, label: str) -> str:
    return (
        f'<p><a href="{escape(href, quote=True)}" '
        f'style="display:inline-block;padding:12px 18px;background:{ACCENT};'
        f'color:#ffffff;border-radius:10px;font-weight:700;text-decoration:none">'
        f"{escape(label)}</a></p>"
    )


def _summary(data: dict[str, Any], start_key: str = "start_date", end_key: str = "end_date") -> str:
    trailer = escape(data.get("trailer_name") or "-")
    return (
        f"<p><strong>Trailer:</strong> {trailer}<br>"
        f"<strong>Dates:</strong> {_fmt(data.get(start_key))} to {_fmt(data.get(end_key))}</p>"
    )


def _layout(title: str, body: str) -> str:
    return (
        "<!doctype html><html><body style=\"font-family:system-ui,Arial,sans-serif;"
        "line-height:1.6;color:#0b1220\">"
        f"<h2>{escape(title)}</h2>{body}"
        f'<hr><p style="font-size:13px;color:{SUBTEXT}">To reschedule or for any issue '
        "with your rental, contact us and we will be glad to help.</p>"
        f'<p style="font-size:12px;color:{SUBTEXT}"><a href="{escape(SITE_URL)}">JLA Trailer Rentals</a></p>'
        "</body></html>"
    )


def booking_received(data: dict[str, Any]) -> tuple[str, str]:
    rental_id = escape(data["rental_id"])
    body = (
        f"<p>{_greeting(data)}</p>"
        f"<p>We received your booking request <strong>{rental_id}</strong>.</p>"
        f"{_summary(data)}"
    )
    if data.get("access_key"):
        body += (
            f"<p>Your access key is <strong>{escape(data['access_key'])}</strong>. "
            "Keep it with your rental ID to look up this booking.</p>"
        )
    body += "<p>We will review your details and send an approval with a payment link.</p>"
    title = f"We received your booking: {data['rental_id']}"
    return title, _layout(title, body)


def booking_approved(data: dict[str, Any]) -> tuple[str, str]:
    body = (
        f"<p>{_greeting(data)}</p>"
        f"<p>Your booking <strong>{escape(data['rental_id'])}</strong> is approved. "
        "Please complete your payment to confirm.</p>"
        f"{_summary(data)}"
        f"{_button(data['payment_link'], 'Pay & Confirm')}"
        f'<p style="font-size:12px;color:{SUBTEXT}">If you already paid, you can ignore this message.</p>'
    )
    title = f"Approved, action needed for {data['rental_id']}"
    return title, _layout(title, body)


def payment_received(data: dict[str, Any]) -> tuple[str, str]:
    body = (
        f"<p>{_greeting(data)}</p>"
        f"<p>Thanks! We received your payment for booking <strong>{escape(data['rental_id'])}</strong>.</p>"
        f"{_summary(data)}"
        "<p>We will reach out if we need anything else before your rental.</p>"
    )
    title = f"Payment received: {data['rental_id']}"
    return title, _layout(title, body)


def rescheduled(data: dict[str, Any]) -> tuple[str, str]:
    body = (
        f"<p>{_greeting(data)}</p>"
        f"<p>Your booking <strong>{escape(data['rental_id'])}</strong> has been rescheduled.</p>"
        f"{_summary(data, 'new_start_date', 'new_end_date')}"
        "<p>If anything looks wrong, reply to this email or call us.</p>"
    )
    title = f"Booking rescheduled: {data['rental_id']}"
    return title, _layout(title, body)


def closed(data: dict[str, Any]) -> tuple[str, str]:
    rental_id = escape(data["rental_id"])
    if data.get("outcome") == "completed":
        body = (
            f"<p>{_greeting(data)}</p>"
            f"<p>Thanks for renting with us! Booking <strong>{rental_id}</strong> is complete.</p>"
        )
        if REVIEW_URL:
            body += _button(REVIEW_URL, "Leave a review")
        title = f"Thanks for renting: {data['rental_id']}"
    else:
        body = (
            f"<p>{_greeting(data)}</p>"
            f"<p>Your booking <strong>{rental_id}</strong> has been cancelled.</p>"
        )
        if data.get("reason"):
            body += f"<p><strong>Reason:</strong> {escape(data['reason'])}</p>"
        title = f"Booking cancelled: {data['rental_id']}"
    return title, _layout(title, body + _summary(data))


TEMPLATES: dict[str, Callable[[dict[str, Any]], tuple[str, str]]] = {
    "booking_received": booking_received,
    "booking_approved": booking_approved,
    "payment_received": payment_received,
    "rescheduled": rescheduled,
    "closed": closed,
}


def render(kind: str, data: dict[str, Any]) -> tuple[str, str]:
    """Return (subject, html) for a notification kind."""
    try:
        builder = TEMPLATES[kind]
    except KeyError:
        raise ValueError(f"Unknown notification kind: {kind}") from None
    return builder(data)
