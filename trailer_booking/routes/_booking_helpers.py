"""
Internal helpers shared by the booking route handlers.
"""

from __future__ import annotations

import hmac
from typing import Any

import structlog
from fastapi import HTTPException, Request, status

from trailer_booking.models.records import BookingDetail
from trailer_booking.services.lifecycle import TransitionResult

logger = structlog.get_logger(__name__)


class AdminCookieGuard:
    """
    FastAPI dependency that admits requests carrying the admin session cookie.

    The secret is fixed at construction. An empty secret admits nobody.

    Raises:
        HTTPException: 401 if the cookie is missing or does not match
    """

    def __init__(self, cookie_name: str, secret: str) -> None:
        self.cookie_name = cookie_name
        self._secret = secret

    def __call__(self, request: Request) -> None:
        supplied = request.cookies.get(self.cookie_name, "")
        if not self._secret or not hmac.compare_digest(
            supplied.encode("utf-8"), self._secret.encode("utf-8")
        ):
            logger.info("admin_auth_failed", path=request.url.path)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Unauthorized",
            )


def booking_response(booking: BookingDetail, **extra: Any) -> dict[str, Any]:
    return {"ok": True, "booking": booking.to_dict(), **extra}


def transition_response(result: TransitionResult) -> dict[str, Any]:
    """
    Render a lifecycle result. `notified` is None when no notification was
    attempted; `calendarLinked` is None when no calendar push was attempted.
    """
    notified = result.notification.ok if result.notification is not None else None
    return booking_response(
        result.booking,
        changed=result.changed,
        notified=notified,
        calendarLinked=result.calendar_linked,
    )
