# models/bookings.py

from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    String,
    Text,
    Time,
)
from sqlalchemy.sql import func

from trailer_booking.models.base import Base, new_id


class BookingStatus(str, Enum):
    """Stored status values. These strings are visible on the wire."""

    PENDING = "Pending"
    APPROVED = "Approved"
    PAID = "Paid"
    CLOSED = "Closed"
    REJECTED = "Rejected"


class CloseOutcome(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that hold a trailer. Closed and Rejected free it.
ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.APPROVED, BookingStatus.PAID)
TERMINAL_STATUSES = (BookingStatus.CLOSED, BookingStatus.REJECTED)

# Presentation-only label for rows that carry no rental_id (manual blocks).
BLOCKED_LABEL = "Blocked"


class Booking(Base):
    """
    ORM model for a trailer reservation.

    Bookings are never deleted; Closed and Rejected are terminal. The
    `calendar_event_id` unique constraint is what makes calendar imports
    idempotent under concurrent sync runs, and `rental_id` uniqueness is the
    final guard behind random rental ID generation.

    Timestamps other than created_at are written once by the lifecycle
    manager and never cleared.
    """

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_bookings_date_order"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    rental_id = Column(String(16), nullable=True, unique=True)
    trailer_id = Column(
        String(36), ForeignKey("trailers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    client_id = Column(
        String(36), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True
    )
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    pickup_time = Column(Time, nullable=True)
    return_time = Column(Time, nullable=True)
    delivery_requested = Column(Boolean, nullable=False, default=False)
    status = Column(String(16), nullable=False, default=BookingStatus.PENDING.value, index=True)
    access_key_hash = Column(String(64), nullable=True)
    payment_link = Column(Text, nullable=True)
    close_outcome = Column(String(16), nullable=True)
    close_reason = Column(Text, nullable=True)
    calendar_event_id = Column(String, nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    payment_link_sent_at = Column(DateTime(timezone=True), nullable=True)
    confirmation_sent_at = Column(DateTime(timezone=True), nullable=True)


class BookingEvent(Base):
    """Append-only audit trail of booking transitions."""

    __tablename__ = "booking_events"

    id = Column(String(36), primary_key=True, default=new_id)
    booking_id = Column(
        String(36), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    kind = Column(String(32), nullable=False)
    details = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
