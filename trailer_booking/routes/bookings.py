"""
Public booking endpoints: trailer catalog, quotes, booking requests and
self-service lookup.
"""

from datetime import date
from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.engine import Engine

from trailer_booking.db.readers.trailers import get_photo_paths, get_trailer, list_trailers
from trailer_booking.dependencies import get_db_engine, get_lifecycle
from trailer_booking.errors import BookingError, NotFound
from trailer_booking.routes._booking_helpers import booking_response
from trailer_booking.schemas.bookings import BookingCreatePayload, BookingLookupPayload
from trailer_booking.services.availability import rental_quote, validate_range
from trailer_booking.services.lifecycle import BookingLifecycle, BookingRequest

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/trailers")
def list_trailers_endpoint(db_engine: Engine = Depends(get_db_engine)) -> dict[str, Any]:
    """
    List trailers offered for rent, with photo paths.

    Returns:
        dict: {"ok": True, "trailers": [...]}
    """
    try:
        with db_engine.connect() as conn:
            trailers = [
                {**t.to_dict(), "photos": get_photo_paths(conn, t.id)}
                for t in list_trailers(conn, active_only=True)
            ]
        return {"ok": True, "trailers": trailers}

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("trailer_list_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/trailers/{trailer_id}/quote")
def quote_endpoint(
    trailer_id: str,
    start_date: date = Query(..., description="First rental day"),
    end_date: date = Query(..., description="Last rental day (inclusive)"),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Price a rental for display. Charged days are at least one.
    """
    try:
        validate_range(start_date, end_date)
        with db_engine.connect() as conn:
            trailer = get_trailer(conn, trailer_id)
        if trailer is None or not trailer.active:
            raise NotFound(f"Trailer {trailer_id} not found")

        total = rental_quote(trailer.rate_per_day, start_date, end_date)
        return {
            "ok": True,
            "trailerId": trailer.id,
            "ratePerDay": float(trailer.rate_per_day),
            "total": float(total),
        }

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("quote_failed", trailer_id=trailer_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/bookings", status_code=status.HTTP_201_CREATED)
def create_booking_endpoint(
    payload: BookingCreatePayload,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
) -> dict[str, Any]:
    """
    Submit a booking request.

    The response carries the rental ID and the plaintext access key. This
    is the only time the key is ever returned.

    Args:
        payload: Trailer, dates and customer contact details
        lifecycle: Booking lifecycle manager

    Returns:
        dict: {"ok": True, "booking": {...}, "rentalId": ..., "accessKey": ...}
    """
    try:
        created = lifecycle.create_booking(BookingRequest(**payload.model_dump()))
        return booking_response(
            created.booking, rentalId=created.rental_id, accessKey=created.access_key
        )

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("booking_creation_failed", trailer_id=payload.trailer_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/bookings/find")
def find_booking_endpoint(
    payload: BookingLookupPayload,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
) -> dict[str, Any]:
    """
    Look up a booking by rental ID and access key.

    Any mismatch returns the same 404.
    """
    try:
        booking = lifecycle.find_booking(payload.rental_id, payload.access_key)
        return booking_response(booking)

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("booking_lookup_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")
