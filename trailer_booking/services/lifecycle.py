"""
Booking lifecycle manager.

Owns every booking state change:

    (new) --create--> Pending --approve--> Approved --mark_paid--> Paid
    Pending --reject--> Rejected
    Pending/Approved --close(cancelled)--> Closed
    Paid --close(completed)--> Closed
    Approved/Paid --reschedule--> (same status, new dates)

Closed and Rejected are terminal. Each transition runs in one transaction
together with its audit row; notifications go out after commit and never
affect the outcome of the transition. Approval also pushes the booking to
the shop calendar, best effort, after commit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Any, Callable, Optional
from urllib.parse import urlparse

import structlog
from sqlalchemy.engine import Connection, Engine

from trailer_booking.db.readers.booking_events import list_booking_events
from trailer_booking.db.readers.bookings import get_booking
from trailer_booking.db.readers.trailers import get_trailer
from trailer_booking.db.writers.booking_events import log_booking_event
from trailer_booking.db.writers.bookings import insert_booking, update_booking
from trailer_booking.db.writers.clients import upsert_client
from trailer_booking.errors import (
    BookingError,
    ConstraintViolation,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from trailer_booking.metrics import booking_transitions
from trailer_booking.models.bookings import BookingStatus, CloseOutcome
from trailer_booking.models.records import BookingDetail
from trailer_booking.services.availability import ensure_available, validate_range
from trailer_booking.services.calendar_push import CalendarPublisher, push_booking
from trailer_booking.services.credentials import MAX_ISSUE_ATTEMPTS, AccessCredentials
from trailer_booking.services.notifications import (
    NotificationKind,
    Notifier,
    NotifyResult,
    notify_best_effort,
)
from trailer_booking.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

# Statuses each action may start from.
TRANSITIONS: dict[str, tuple[BookingStatus, ...]] = {
    "approve": (BookingStatus.PENDING,),
    "mark_paid": (BookingStatus.APPROVED,),
    "reject": (BookingStatus.PENDING,),
    "close_cancelled": (BookingStatus.PENDING, BookingStatus.APPROVED),
    "close_completed": (BookingStatus.PAID,),
    "reschedule": (BookingStatus.APPROVED, BookingStatus.PAID),
}


@dataclass(frozen=True)
class BookingRequest:
    """A customer's booking request as submitted through the public form."""

    trailer_id: str
    start_date: Optional[date]
    end_date: Optional[date]
    first_name: str
    last_name: str
    email: str
    phone: str
    towing_vehicle: Optional[str] = None
    comments: Optional[str] = None
    pickup_time: Optional[time] = None
    return_time: Optional[time] = None
    delivery_requested: bool = False


@dataclass(frozen=True)
class CreatedBooking:
    booking: BookingDetail
    rental_id: str
    access_key: str


@dataclass(frozen=True)
class TransitionResult:
    booking: BookingDetail
    changed: bool = True
    notification: Optional[NotifyResult] = None
    calendar_linked: Optional[bool] = None


def validate_payment_link(payment_link: Optional[str]) -> str:
    """Return the trimmed link if it is an absolute https URL, else raise ValidationError."""
    link = (payment_link or "").strip()
    parsed = urlparse(link)
    if parsed.scheme != "https" or not parsed.netloc or any(c.isspace() for c in link):
        raise ValidationError("payment_link", "Payment link must be a valid https URL")
    return link


def validate_request(request: BookingRequest) -> tuple[date, date]:
    """Check required fields and return the (start, end) range."""
    if not request.trailer_id:
        raise ValidationError("trailer_id", "Trailer is required")
    start, end = validate_range(request.start_date, request.end_date)
    for name in ("first_name", "last_name", "phone"):
        if not (getattr(request, name) or "").strip():
            raise ValidationError(name, f"{name.replace('_', ' ').capitalize()} is required")
    email = (request.email or "").strip()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise ValidationError("email", "A valid email is required")
    return start, end


def _template_data(booking: BookingDetail, **extra: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "rental_id": booking.rental_id or "",
        "first_name": booking.client.first_name if booking.client else None,
        "trailer_name": booking.trailer.name if booking.trailer else None,
        "start_date": booking.start_date.isoformat(),
        "end_date": booking.end_date.isoformat(),
    }
    data.update(extra)
    return data


def _recipient(booking: BookingDetail) -> Optional[str]:
    return booking.client.email if booking.client else None


class BookingLifecycle:
    """
    Applies lifecycle actions to stored bookings.

    Args:
        engine: Database engine; each action opens its own transaction
        notifier: Delivery backend for customer notifications
        credentials: Issuer used when creating bookings and verifying lookups
        calendar: Shop calendar that approved bookings are pushed to; None disables the push

    Example:
        >>> lifecycle = BookingLifecycle(engine, build_notifier(), AccessCredentials(ACCESS_PEPPER))
        >>> lifecycle.approve(booking_id, "https://pay.example/abc")
    """

    def __init__(
        self,
        engine: Engine,
        notifier: Notifier,
        credentials: AccessCredentials,
        calendar: Optional[CalendarPublisher] = None,
    ) -> None:
        self.engine = engine
        self.notifier = notifier
        self.credentials = credentials
        self.calendar = calendar

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_booking(self, booking_id: str) -> BookingDetail:
        with self.engine.connect() as conn:
            booking = get_booking(conn, booking_id)
        if booking is None:
            raise NotFound(f"Booking {booking_id} not found")
        return booking

    def find_booking(self, rental_id: str, access_key: str) -> BookingDetail:
        """Customer self-service lookup. Raises NotFound on any mismatch."""
        with self.engine.connect() as conn:
            return self.credentials.verify(conn, rental_id, access_key)

    def history(self, booking_id: str) -> list[dict[str, Any]]:
        with self.engine.connect() as conn:
            if get_booking(conn, booking_id) is None:
                raise NotFound(f"Booking {booking_id} not found")
            return list_booking_events(conn, booking_id)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_booking(self, request: BookingRequest) -> CreatedBooking:
        """
        Create a Pending booking for a customer request.

        The availability check and the insert share one transaction. Losing
        an insert race on rental_id reruns the whole transaction with fresh
        credentials.

        Raises:
            ValidationError: Missing or malformed fields
            NotFound: Trailer does not exist
            DateUnavailable: Range overlaps an active booking on the trailer
        """
        start, end = validate_request(request)

        for attempt in range(1, MAX_ISSUE_ATTEMPTS + 1):
            try:
                with self.engine.begin() as conn:
                    booking, access_key = self._insert_request(conn, request, start, end)
                break
            except ConstraintViolation as e:
                if e.constraint != "rental_id" or attempt == MAX_ISSUE_ATTEMPTS:
                    booking_transitions.labels(action="create", status=type(e).__name__).inc()
                    raise
                logger.warning("rental_id_taken_retrying", attempt=attempt)
            except BookingError as e:
                booking_transitions.labels(action="create", status=type(e).__name__).inc()
                raise

        booking_transitions.labels(action="create", status="success").inc()
        logger.info(
            "booking_created",
            booking_id=booking.id,
            rental_id=booking.rental_id,
            trailer_id=booking.trailer_id,
            start_date=booking.start_date.isoformat(),
            end_date=booking.end_date.isoformat(),
        )

        self.send_confirmation(booking.id, access_key=access_key)
        return CreatedBooking(booking=booking, rental_id=booking.rental_id or "", access_key=access_key)

    def _insert_request(
        self, conn: Connection, request: BookingRequest, start: date, end: date
    ) -> tuple[BookingDetail, str]:
        trailer = get_trailer(conn, request.trailer_id)
        if trailer is None or not trailer.active:
            raise NotFound(f"Trailer {request.trailer_id} not found")

        ensure_available(conn, trailer.id, start, end)

        client_id = upsert_client(
            conn,
            email=request.email,
            first_name=request.first_name.strip(),
            last_name=request.last_name.strip(),
            phone=request.phone.strip(),
            towing_vehicle=request.towing_vehicle,
            comments=request.comments,
        )
        issued = self.credentials.issue_unused(conn)
        booking_id = insert_booking(
            conn,
            {
                "rental_id": issued.rental_id,
                "trailer_id": trailer.id,
                "client_id": client_id,
                "start_date": start,
                "end_date": end,
                "pickup_time": request.pickup_time,
                "return_time": request.return_time,
                "delivery_requested": request.delivery_requested,
                "status": BookingStatus.PENDING.value,
                "access_key_hash": issued.access_key_hash,
                "created_at": utc_now(),
            },
        )
        log_booking_event(conn, booking_id, "created", {"source": "web"})
        return self._reload(conn, booking_id), issued.access_key

    def send_confirmation(self, booking_id: str, access_key: Optional[str] = None) -> TransitionResult:
        """
        Send the booking-received email once.

        A booking whose confirmation_sent_at is already set is left alone.
        The stamp is written only after the notifier reports success, so a
        failed delivery can be retried.
        """
        booking = self.get_booking(booking_id)
        if booking.confirmation_sent_at is not None:
            booking_transitions.labels(action="confirm", status="noop").inc()
            logger.info("confirmation_already_sent", booking_id=booking_id)
            return TransitionResult(booking=booking, changed=False)

        data = _template_data(booking)
        if access_key:
            data["access_key"] = access_key
        result = notify_best_effort(
            self.notifier, NotificationKind.BOOKING_RECEIVED, _recipient(booking), data, booking.id
        )
        if not result.ok:
            return TransitionResult(booking=booking, changed=False, notification=result)

        with self.engine.begin() as conn:
            update_booking(conn, booking.id, {"confirmation_sent_at": utc_now()})
            booking = self._reload(conn, booking.id)
        booking_transitions.labels(action="confirm", status="success").inc()
        return TransitionResult(booking=booking, changed=True, notification=result)

    # ------------------------------------------------------------------
    # Staff transitions
    # ------------------------------------------------------------------

    def approve(self, booking_id: str, payment_link: str) -> TransitionResult:
        """
        Approve a Pending booking and send the customer a payment link.

        After commit the booking is pushed to the shop calendar (when one is
        configured and the booking has no linked event yet). A failed push is
        logged and reported as calendar_linked=False; the approval stands.

        Raises:
            ValidationError: payment_link is not an absolute https URL
            NotFound: Unknown booking
            InvalidTransition: Booking is not Pending
        """
        link = validate_payment_link(payment_link)

        def apply(conn: Connection, booking: BookingDetail) -> None:
            now = utc_now()
            update_booking(
                conn,
                booking.id,
                {
                    "status": BookingStatus.APPROVED.value,
                    "payment_link": link,
                    "approved_at": booking.approved_at or now,
                    "payment_link_sent_at": booking.payment_link_sent_at or now,
                },
            )
            log_booking_event(conn, booking.id, "approved", {"payment_link": link})

        booking = self._transition(booking_id, "approve", TRANSITIONS["approve"], apply)
        calendar_linked: Optional[bool] = None
        if self.calendar is not None and booking.calendar_event_id is None:
            booking, calendar_linked = self._link_calendar_event(booking)

        result = notify_best_effort(
            self.notifier,
            NotificationKind.BOOKING_APPROVED,
            _recipient(booking),
            _template_data(booking, payment_link=link),
            booking.id,
        )
        return TransitionResult(
            booking=booking, notification=result, calendar_linked=calendar_linked
        )

    def mark_paid(self, booking_id: str) -> TransitionResult:
        """
        Record payment on an Approved booking.

        Idempotent: a booking that is already Paid (or has paid_at set) is
        returned unchanged, with no audit row and no second receipt.
        """
        try:
            with self.engine.begin() as conn:
                booking = self._load(conn, booking_id)
                if booking.status == BookingStatus.PAID.value or booking.paid_at is not None:
                    booking_transitions.labels(action="mark_paid", status="noop").inc()
                    logger.info("mark_paid_noop", booking_id=booking_id, rental_id=booking.rental_id)
                    return TransitionResult(booking=booking, changed=False)

                self._require(booking, "mark_paid", TRANSITIONS["mark_paid"])
                paid_at = utc_now()
                update_booking(
                    conn, booking.id, {"status": BookingStatus.PAID.value, "paid_at": paid_at}
                )
                log_booking_event(conn, booking.id, "paid", {"paid_at": paid_at.isoformat()})
                booking = self._reload(conn, booking.id)
        except BookingError as e:
            booking_transitions.labels(action="mark_paid", status=type(e).__name__).inc()
            raise

        self._record_success("mark_paid", booking)
        result = notify_best_effort(
            self.notifier,
            NotificationKind.PAYMENT_RECEIVED,
            _recipient(booking),
            _template_data(booking),
            booking.id,
        )
        return TransitionResult(booking=booking, notification=result)

    def close(
        self, booking_id: str, outcome: str, reason: Optional[str] = None, notify: bool = True
    ) -> TransitionResult:
        """
        Close a booking as completed or cancelled.

        Cancelling is allowed from Pending or Approved; completing only from
        Paid. The outcome is written once and never changes.

        Args:
            booking_id: Booking to close
            outcome: "completed" or "cancelled"
            reason: Free-text note stored in close_reason
            notify: Email the customer about the closure
        """
        try:
            close_outcome = CloseOutcome(outcome)
        except ValueError:
            raise ValidationError("outcome", "Outcome must be 'completed' or 'cancelled'") from None

        reason = (reason or "").strip() or None
        action = f"close_{close_outcome.value}"

        def apply(conn: Connection, booking: BookingDetail) -> None:
            update_booking(
                conn,
                booking.id,
                {
                    "status": BookingStatus.CLOSED.value,
                    "close_outcome": close_outcome.value,
                    "close_reason": reason,
                },
            )
            log_booking_event(
                conn, booking.id, "closed", {"outcome": close_outcome.value, "reason": reason}
            )

        booking = self._transition(booking_id, action, TRANSITIONS[action], apply)
        result = None
        if notify:
            result = notify_best_effort(
                self.notifier,
                NotificationKind.CLOSED,
                _recipient(booking),
                _template_data(booking, outcome=close_outcome.value, reason=reason),
                booking.id,
            )
        return TransitionResult(booking=booking, notification=result)

    def reschedule(self, booking_id: str, new_start: date, new_end: date) -> TransitionResult:
        """
        Move an Approved or Paid booking to new dates.

        The booking's own current range is excluded from the availability
        check. On conflict the stored dates are left as they were.

        Raises:
            ValidationError: Dates missing or out of order
            DateUnavailable: New range overlaps another active booking
        """
        validate_range(new_start, new_end)
        moved: dict[str, Any] = {}

        def apply(conn: Connection, booking: BookingDetail) -> None:
            ensure_available(conn, booking.trailer_id, new_start, new_end, exclude_booking_id=booking.id)
            update_booking(conn, booking.id, {"start_date": new_start, "end_date": new_end})
            moved.update(
                {
                    "from": {
                        "start_date": booking.start_date.isoformat(),
                        "end_date": booking.end_date.isoformat(),
                    },
                    "to": {"start_date": new_start.isoformat(), "end_date": new_end.isoformat()},
                }
            )
            log_booking_event(conn, booking.id, "rescheduled", moved)

        booking = self._transition(booking_id, "reschedule", TRANSITIONS["reschedule"], apply)
        result = notify_best_effort(
            self.notifier,
            NotificationKind.RESCHEDULED,
            _recipient(booking),
            _template_data(
                booking,
                new_start_date=new_start.isoformat(),
                new_end_date=new_end.isoformat(),
                previous_start_date=moved["from"]["start_date"],
                previous_end_date=moved["from"]["end_date"],
            ),
            booking.id,
        )
        return TransitionResult(booking=booking, notification=result)

    def reject(self, booking_id: str, reason: Optional[str] = None) -> TransitionResult:
        """Decline a Pending booking. Rejected is terminal and frees the dates."""
        reason = (reason or "").strip() or None

        def apply(conn: Connection, booking: BookingDetail) -> None:
            update_booking(
                conn, booking.id, {"status": BookingStatus.REJECTED.value, "close_reason": reason}
            )
            log_booking_event(conn, booking.id, "rejected", {"reason": reason})

        booking = self._transition(booking_id, "reject", TRANSITIONS["reject"], apply)
        return TransitionResult(booking=booking)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load(self, conn: Connection, booking_id: str) -> BookingDetail:
        booking = get_booking(conn, booking_id, for_update=True)
        if booking is None:
            raise NotFound(f"Booking {booking_id} not found")
        return booking

    def _reload(self, conn: Connection, booking_id: str) -> BookingDetail:
        booking = get_booking(conn, booking_id)
        if booking is None:
            raise NotFound(f"Booking {booking_id} not found")
        return booking

    @staticmethod
    def _require(booking: BookingDetail, action: str, allowed: tuple[BookingStatus, ...]) -> None:
        if booking.status not in {s.value for s in allowed}:
            raise InvalidTransition(booking.status, action.replace("_", " "))

    def _transition(
        self,
        booking_id: str,
        action: str,
        allowed: tuple[BookingStatus, ...],
        apply: Callable[[Connection, BookingDetail], None],
    ) -> BookingDetail:
        """Lock, check, apply and reload a booking in one transaction."""
        try:
            with self.engine.begin() as conn:
                booking = self._load(conn, booking_id)
                self._require(booking, action, allowed)
                apply(conn, booking)
                booking = self._reload(conn, booking_id)
        except BookingError as e:
            booking_transitions.labels(action=action, status=type(e).__name__).inc()
            logger.info("transition_rejected", action=action, booking_id=booking_id, error=e.message)
            raise

        self._record_success(action, booking)
        return booking

    @staticmethod
    def _record_success(action: str, booking: BookingDetail) -> None:
        booking_transitions.labels(action=action, status="success").inc()
        logger.info(
            "booking_transition",
            action=action,
            booking_id=booking.id,
            rental_id=booking.rental_id,
            status=booking.status,
        )

    def _link_calendar_event(self, booking: BookingDetail) -> tuple[BookingDetail, bool]:
        """Push the booking to the calendar and store the event ID. Never raises."""
        if self.calendar is None:
            return booking, False
        event_id = push_booking(self.calendar, booking)
        if event_id is None:
            return booking, False

        try:
            with self.engine.begin() as conn:
                update_booking(conn, booking.id, {"calendar_event_id": event_id})
                log_booking_event(conn, booking.id, "calendar_linked", {"calendar_event_id": event_id})
                booking = self._reload(conn, booking.id)
        except BookingError as e:
            logger.error(
                "calendar_link_failed", booking_id=booking.id, event_id=event_id, error=e.message
            )
            return booking, False

        logger.info("calendar_event_linked", booking_id=booking.id, event_id=event_id)
        return booking, True
