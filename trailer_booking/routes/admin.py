"""
Staff endpoints. Every route requires the admin session cookie.
"""

from datetime import date
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.engine import Engine

from trailer_booking.config import (
    CALENDAR_SYNC_DAYS_BACK,
    CALENDAR_SYNC_DAYS_FORWARD,
    DRY_RUN,
)
from trailer_booking.dependencies import (
    get_calendar_source,
    get_credentials,
    get_db_engine,
    get_lifecycle,
    require_admin,
)
from trailer_booking.errors import BookingError
from trailer_booking.routes._booking_helpers import booking_response, transition_response
from trailer_booking.schemas.bookings import (
    ApprovePayload,
    AvailabilityPayload,
    CalendarImportPayload,
    ClosePayload,
    RejectPayload,
    ReschedulePayload,
)
from trailer_booking.services.availability import check_availability
from trailer_booking.services.calendar_import import CalendarSource, sync_from_calendar
from trailer_booking.services.calendar_view import calendar_window
from trailer_booking.services.credentials import AccessCredentials
from trailer_booking.services.lifecycle import BookingLifecycle

logger = structlog.get_logger(__name__)
router = APIRouter(dependencies=[Depends(require_admin)])


def _internal_error(event: str, e: Exception, **context: Any) -> HTTPException:
    logger.exception(event, error=str(e), **context)
    return HTTPException(status_code=500, detail="Internal server error")


@router.get("/bookings/{booking_id}")
def get_booking_endpoint(
    booking_id: str,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
) -> dict[str, Any]:
    """
    Fetch a booking with its audit trail.

    Returns:
        dict: {"ok": True, "booking": {...}, "events": [...]}
    """
    try:
        booking = lifecycle.get_booking(booking_id)
        events = [
            {
                "kind": e["kind"],
                "details": e["details"],
                "createdAt": e["created_at"].isoformat() if e["created_at"] else None,
            }
            for e in lifecycle.history(booking_id)
        ]
        return booking_response(booking, events=events)

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        raise _internal_error("booking_fetch_failed", e, booking_id=booking_id)


@router.post("/bookings/{booking_id}/approve")
def approve_endpoint(
    booking_id: str,
    payload: ApprovePayload,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
) -> dict[str, Any]:
    """Approve a Pending booking and email the payment link."""
    try:
        return transition_response(lifecycle.approve(booking_id, payload.payment_link))
    except (HTTPException, BookingError):
        raise
    except Exception as e:
        raise _internal_error("booking_approve_failed", e, booking_id=booking_id)


@router.post("/bookings/{booking_id}/mark-paid")
def mark_paid_endpoint(
    booking_id: str,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
) -> dict[str, Any]:
    """Record payment. Repeating the call is a no-op (`changed` is false)."""
    try:
        return transition_response(lifecycle.mark_paid(booking_id))
    except (HTTPException, BookingError):
        raise
    except Exception as e:
        raise _internal_error("booking_mark_paid_failed", e, booking_id=booking_id)


@router.post("/bookings/{booking_id}/close")
def close_endpoint(
    booking_id: str,
    payload: ClosePayload,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
) -> dict[str, Any]:
    try:
        result = lifecycle.close(
            booking_id, payload.outcome, reason=payload.reason, notify=payload.notify
        )
        return transition_response(result)
    except (HTTPException, BookingError):
        raise
    except Exception as e:
        raise _internal_error("booking_close_failed", e, booking_id=booking_id)


@router.post("/bookings/{booking_id}/reschedule")
def reschedule_endpoint(
    booking_id: str,
    payload: ReschedulePayload,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
) -> dict[str, Any]:
    """
    Move an Approved or Paid booking to new dates.

    Returns 409 with the conflicting bookings if the new range is taken.
    """
    try:
        result = lifecycle.reschedule(booking_id, payload.start_date, payload.end_date)
        return transition_response(result)
    except (HTTPException, BookingError):
        raise
    except Exception as e:
        raise _internal_error("booking_reschedule_failed", e, booking_id=booking_id)


@router.post("/bookings/{booking_id}/reject")
def reject_endpoint(
    booking_id: str,
    payload: Optional[RejectPayload] = Body(None),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
) -> dict[str, Any]:
    try:
        reason = payload.reason if payload else None
        return transition_response(lifecycle.reject(booking_id, reason=reason))
    except (HTTPException, BookingError):
        raise
    except Exception as e:
        raise _internal_error("booking_reject_failed", e, booking_id=booking_id)


@router.post("/bookings/{booking_id}/confirmation")
def confirmation_endpoint(
    booking_id: str,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
) -> dict[str, Any]:
    """Send the booking-received email if it has not gone out yet."""
    try:
        result = lifecycle.send_confirmation(booking_id)
        return transition_response(result)
    except (HTTPException, BookingError):
        raise
    except Exception as e:
        raise _internal_error("booking_confirmation_failed", e, booking_id=booking_id)


@router.post("/availability")
def availability_endpoint(
    payload: AvailabilityPayload,
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Check a trailer's availability for a date range.

    Returns:
        dict: {"ok": True, "available": bool, "conflicts": [...]}
    """
    try:
        with db_engine.connect() as conn:
            result = check_availability(
                conn,
                payload.trailer_id,
                payload.start_date,
                payload.end_date,
                exclude_booking_id=payload.exclude_booking_id,
            )
        return {"ok": True, **result.to_dict()}
    except (HTTPException, BookingError):
        raise
    except Exception as e:
        raise _internal_error("availability_check_failed", e, trailer_id=payload.trailer_id)


@router.get("/calendar")
def calendar_endpoint(
    start: date = Query(..., description="First day of the window"),
    end: date = Query(..., description="Last day of the window (inclusive)"),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """List bookings touching the window for the admin calendar."""
    try:
        entries = calendar_window(db_engine, start, end)
        return {"ok": True, "events": [e.to_dict() for e in entries]}
    except (HTTPException, BookingError):
        raise
    except Exception as e:
        raise _internal_error("calendar_window_failed", e)


@router.post("/calendar/import")
def calendar_import_endpoint(
    payload: Optional[CalendarImportPayload] = Body(None),
    db_engine: Engine = Depends(get_db_engine),
    credentials: AccessCredentials = Depends(get_credentials),
    source: CalendarSource = Depends(get_calendar_source),
) -> dict[str, Any]:
    """
    Import phone bookings from the external calendar now.

    Returns 502 if the calendar cannot be listed; nothing is imported then.

    Returns:
        dict: {"ok": True, "created": n, "skippedExisting": n, "ignored": n, "dryRun": bool}
    """
    payload = payload or CalendarImportPayload()
    days_back = CALENDAR_SYNC_DAYS_BACK if payload.days_back is None else payload.days_back
    days_forward = (
        CALENDAR_SYNC_DAYS_FORWARD if payload.days_forward is None else payload.days_forward
    )
    use_dry_run = DRY_RUN if payload.dry_run is None else payload.dry_run

    try:
        summary = sync_from_calendar(
            db_engine,
            source,
            credentials,
            days_back=days_back,
            days_forward=days_forward,
            dry_run=use_dry_run,
        )
        return {"ok": True, **summary.to_dict()}
    except (HTTPException, BookingError):
        raise
    except Exception as e:
        raise _internal_error("calendar_import_failed", e)
