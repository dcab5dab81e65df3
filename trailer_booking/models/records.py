"""
Plain read models returned by the store readers.

Joined relations are always a single optional object here. Readers build
these once so services and routes never deal with raw rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Optional

from trailer_booking.models.bookings import BLOCKED_LABEL


def _iso(value: date | datetime | time | None) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class ClientSummary:
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    towing_vehicle: Optional[str] = None

    @property
    def display_name(self) -> Optional[str]:
        name = " ".join(p for p in (self.first_name, self.last_name) if p)
        return name or None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "phone": self.phone,
            "towingVehicle": self.towing_vehicle,
        }


@dataclass(frozen=True)
class TrailerSummary:
    id: str
    name: str
    rate_per_day: Decimal
    active: bool = True
    color_hex: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "ratePerDay": float(self.rate_per_day),
            "active": self.active,
            "colorHex": self.color_hex,
        }


@dataclass(frozen=True)
class Conflict:
    """An active booking that blocks a requested range."""

    booking_id: str
    rental_id: Optional[str]
    start_date: date
    end_date: date
    status: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "rentalId": self.rental_id,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "status": self.status,
        }


@dataclass(frozen=True)
class BookingDetail:
    id: str
    rental_id: Optional[str]
    trailer_id: str
    client_id: Optional[str]
    start_date: date
    end_date: date
    status: str
    delivery_requested: bool = False
    pickup_time: Optional[time] = None
    return_time: Optional[time] = None
    access_key_hash: Optional[str] = field(default=None, repr=False)
    payment_link: Optional[str] = None
    close_outcome: Optional[str] = None
    close_reason: Optional[str] = None
    calendar_event_id: Optional[str] = None
    created_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    payment_link_sent_at: Optional[datetime] = None
    confirmation_sent_at: Optional[datetime] = None
    client: Optional[ClientSummary] = None
    trailer: Optional[TrailerSummary] = None

    @property
    def display_status(self) -> str:
        return self.status if self.rental_id else BLOCKED_LABEL

    @property
    def customer_name(self) -> Optional[str]:
        return self.client.display_name if self.client else None

    def to_dict(self) -> dict[str, Any]:
        """Public JSON shape. The access key hash is never included."""
        return {
            "id": self.id,
            "rentalId": self.rental_id,
            "status": self.status,
            "displayStatus": self.display_status,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "pickupTime": _iso(self.pickup_time),
            "returnTime": _iso(self.return_time),
            "deliveryRequested": self.delivery_requested,
            "paymentLink": self.payment_link,
            "closeOutcome": self.close_outcome,
            "closeReason": self.close_reason,
            "calendarEventId": self.calendar_event_id,
            "createdAt": _iso(self.created_at),
            "approvedAt": _iso(self.approved_at),
            "paidAt": _iso(self.paid_at),
            "paymentLinkSentAt": _iso(self.payment_link_sent_at),
            "confirmationSentAt": _iso(self.confirmation_sent_at),
            "client": self.client.to_dict() if self.client else None,
            "trailer": self.trailer.to_dict() if self.trailer else None,
        }
