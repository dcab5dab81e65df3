"""
Import phone bookings logged on the shop's external calendar.

Events titled ``"<Customer Name> - <Trailer Label>"`` become Pending
bookings. The description may carry ``key=value`` lines::

    phone=305-555-0100
    email=jane@example.com
    delivery=yes
    notes=Needs ball hitch

Each external event ID produces at most one booking, ever: already-linked
IDs are skipped up front, and the unique constraint on
``bookings.calendar_event_id`` catches concurrent runs. Imported events are
recorded even when they overlap another booking, because a phone booking
is already a commitment to the customer.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional, Protocol

import structlog
from sqlalchemy.engine import Connection, Engine

from trailer_booking.db.readers.bookings import find_linked_event_ids
from trailer_booking.db.readers.trailers import list_trailers
from trailer_booking.db.writers.booking_events import log_booking_event
from trailer_booking.db.writers.bookings import insert_booking
from trailer_booking.db.writers.clients import upsert_client
from trailer_booking.errors import ConstraintViolation
from trailer_booking.metrics import (
    calendar_events_processed,
    calendar_sync_duration,
    calendar_sync_runs,
)
from trailer_booking.models.bookings import BookingStatus
from trailer_booking.models.records import TrailerSummary
from trailer_booking.services.credentials import MAX_ISSUE_ATTEMPTS, AccessCredentials
from trailer_booking.utils.datetime import parse_date, utc_now

logger = structlog.get_logger(__name__)

# "Jane Doe - 6x12 Utility". The dash must have whitespace on both sides,
# so hyphenated words like "Walk-in block" do not match.
TITLE_PATTERN = re.compile(r"^(.+?)\s+-\s+(.+)$")

AFFIRMATIVE_TOKENS = frozenset({"yes", "y", "true", "si", "sí"})
PLACEHOLDER_EMAILS = frozenset({"", "none", "n/a", "na"})
PLACEHOLDER_DOMAIN = "local.jla"
DEFAULT_FIRST_NAME = "Client"


@dataclass(frozen=True)
class ExternalEvent:
    """One event from the external calendar. ``start``/``end`` are date or date-time strings."""

    id: Optional[str]
    summary: Optional[str] = None
    description: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None

    @classmethod
    def from_google(cls, item: dict[str, Any]) -> "ExternalEvent":
        """Build from a Google Calendar v3 event resource."""
        start = item.get("start") or {}
        end = item.get("end") or {}
        return cls(
            id=item.get("id") or None,
            summary=item.get("summary"),
            description=item.get("description"),
            start=start.get("dateTime") or start.get("date"),
            end=end.get("dateTime") or end.get("date"),
        )


@dataclass(frozen=True)
class ParsedEvent:
    customer_name: str
    trailer_label: str
    phone: Optional[str]
    email: str
    delivery_requested: bool
    notes: Optional[str]
    start_date: Optional[date]
    end_date: Optional[date]


@dataclass
class ImportSummary:
    created: int = 0
    skipped_existing: int = 0
    ignored: int = 0
    dry_run: bool = False
    created_booking_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "created": self.created,
            "skippedExisting": self.skipped_existing,
            "ignored": self.ignored,
            "dryRun": self.dry_run,
        }


class CalendarSource(Protocol):
    def list_events(self, window_start: datetime, window_end: datetime) -> list[ExternalEvent]:
        ...


def parse_event_title(summary: Optional[str]) -> Optional[tuple[str, str]]:
    """
    Split a title into (customer name, trailer label).

    Returns:
        The pair, or None if the title is not booking-shaped.

    Example:
        >>> parse_event_title("Jane Doe - 6x12 Utility")
        ('Jane Doe', '6x12 Utility')
        >>> parse_event_title("Walk-in block") is None
        True
    """
    title = (summary or "").strip()
    match = TITLE_PATTERN.match(title)
    if not match:
        return None
    name, label = match.group(1).strip(), match.group(2).strip()
    if not label:
        return None
    return name, label


def parse_description(description: Optional[str]) -> dict[str, str]:
    """Parse ``key=value`` lines. Keys are lower-cased; lines without ``=`` are skipped."""
    values: dict[str, str] = {}
    for line in (description or "").splitlines():
        line = line.strip()
        if "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip().lower()
        if key:
            values[key] = value.strip()
    return values


def is_affirmative(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in AFFIRMATIVE_TOKENS


def normalize_imported_email(raw: Optional[str], rental_id: str, event_id: str) -> str:
    """
    Lower-case an imported email, or synthesize a unique placeholder.

    Phone bookings often have no email; the placeholder keeps the client key
    unique per booking. It is lower-cased like any other client email, so
    the returned value is exactly what the client row stores.

    Example:
        >>> normalize_imported_email("N/A", "JLA-123456", "evt1")
        'no-email+jla-123456-evt1@local.jla'
    """
    value = (raw or "").strip().lower()
    if value in PLACEHOLDER_EMAILS:
        return f"no-email+{rental_id}-{event_id}@{PLACEHOLDER_DOMAIN}".lower()
    return value


def split_name(full_name: str) -> tuple[str, str]:
    """Split into (first, last): the last whitespace-separated token is the last name."""
    parts = full_name.split()
    if not parts:
        return DEFAULT_FIRST_NAME, ""
    if len(parts) == 1:
        return parts[0], ""
    return " ".join(parts[:-1]), parts[-1]


def match_trailer(trailers: list[TrailerSummary], label: str) -> Optional[TrailerSummary]:
    """Case-insensitive exact name match first, then first name containing the label."""
    wanted = label.strip().lower()
    if not wanted:
        return None
    for trailer in trailers:
        if trailer.name.strip().lower() == wanted:
            return trailer
    for trailer in trailers:
        if wanted in trailer.name.lower():
            return trailer
    return None


def parse_event(event: ExternalEvent) -> Optional[ParsedEvent]:
    """Extract booking fields from an event, or None if its title is not booking-shaped."""
    title = parse_event_title(event.summary)
    if title is None:
        return None
    customer_name, trailer_label = title
    fields = parse_description(event.description)
    return ParsedEvent(
        customer_name=customer_name,
        trailer_label=trailer_label,
        phone=fields.get("phone") or None,
        email=fields.get("email", ""),
        delivery_requested=is_affirmative(fields.get("delivery")),
        notes=fields.get("notes") or None,
        start_date=parse_date(event.start),
        end_date=parse_date(event.end),
    )


def _create_from_event(
    conn: Connection,
    event_id: str,
    parsed: ParsedEvent,
    trailer: TrailerSummary,
    credentials: AccessCredentials,
) -> tuple[str, str]:
    issued = credentials.issue_unused(conn)
    first_name, last_name = split_name(parsed.customer_name)
    client_id = upsert_client(
        conn,
        email=normalize_imported_email(parsed.email, issued.rental_id, event_id),
        first_name=first_name,
        last_name=last_name,
        phone=parsed.phone,
        comments=parsed.notes,
        refresh=False,
    )
    booking_id = insert_booking(
        conn,
        {
            "rental_id": issued.rental_id,
            "trailer_id": trailer.id,
            "client_id": client_id,
            "start_date": parsed.start_date,
            "end_date": parsed.end_date,
            "delivery_requested": parsed.delivery_requested,
            "status": BookingStatus.PENDING.value,
            "access_key_hash": issued.access_key_hash,
            "calendar_event_id": event_id,
            "created_at": utc_now(),
        },
    )
    log_booking_event(
        conn, booking_id, "imported", {"calendar_event_id": event_id, "trailer_label": parsed.trailer_label}
    )
    return booking_id, issued.rental_id


def import_events(
    engine: Engine,
    events: list[ExternalEvent],
    credentials: AccessCredentials,
    dry_run: bool = False,
) -> ImportSummary:
    """
    Create one Pending booking per new booking-shaped calendar event.

    Safe to re-run over overlapping windows. Each event is written in its
    own transaction; a failure on one event is logged, counted as ignored,
    and does not stop the batch.

    Args:
        engine: SQLAlchemy Engine
        events: Events from the calendar source
        credentials: Issuer for the new bookings' rental IDs and access keys
        dry_run: If True, log would-be bookings without writing

    Returns:
        ImportSummary with created / skipped_existing / ignored counts
    """
    summary = ImportSummary(dry_run=dry_run)

    event_ids = [e.id for e in events if e.id]
    with engine.connect() as conn:
        linked = find_linked_event_ids(conn, event_ids)
        trailers = list_trailers(conn)

    def count(outcome: str) -> None:
        calendar_events_processed.labels(outcome=outcome).inc()

    for event in events:
        log = logger.bind(event_id=event.id, summary=event.summary)

        if not event.id:
            summary.ignored += 1
            count("ignored")
            continue

        if event.id in linked:
            summary.skipped_existing += 1
            count("skipped_existing")
            continue

        parsed = parse_event(event)
        if parsed is None:
            log.debug("calendar_event_not_booking_shaped")
            summary.ignored += 1
            count("ignored")
            continue

        if parsed.start_date is None or parsed.end_date is None:
            log.warning("calendar_event_missing_dates", start=event.start, end=event.end)
            summary.ignored += 1
            count("ignored")
            continue

        if parsed.start_date > parsed.end_date:
            log.warning(
                "calendar_event_dates_reversed",
                start_date=parsed.start_date.isoformat(),
                end_date=parsed.end_date.isoformat(),
            )
            summary.ignored += 1
            count("ignored")
            continue

        trailer = match_trailer(trailers, parsed.trailer_label)
        if trailer is None:
            log.warning("calendar_event_trailer_unmatched", trailer_label=parsed.trailer_label)
            summary.ignored += 1
            count("ignored")
            continue

        if dry_run:
            log.info(
                "[DRY RUN] Would import calendar event",
                trailer_id=trailer.id,
                start_date=parsed.start_date.isoformat(),
                end_date=parsed.end_date.isoformat(),
            )
            summary.created += 1
            linked.add(event.id)
            continue

        outcome = _import_one(engine, event.id, parsed, trailer, credentials, summary)
        count(outcome)
        if outcome == "created":
            linked.add(event.id)

    logger.info(
        "calendar_import_completed",
        created=summary.created,
        skipped_existing=summary.skipped_existing,
        ignored=summary.ignored,
        dry_run=dry_run,
    )
    return summary


def _import_one(
    engine: Engine,
    event_id: str,
    parsed: ParsedEvent,
    trailer: TrailerSummary,
    credentials: AccessCredentials,
    summary: ImportSummary,
) -> str:
    """Write one event, retrying on a rental ID race. Returns the outcome label."""
    for attempt in range(1, MAX_ISSUE_ATTEMPTS + 1):
        try:
            with engine.begin() as conn:
                booking_id, rental_id = _create_from_event(
                    conn, event_id, parsed, trailer, credentials
                )
        except ConstraintViolation as e:
            if e.constraint == "calendar_event_id":
                logger.info("calendar_event_already_imported", event_id=event_id)
                summary.skipped_existing += 1
                return "skipped_existing"
            if e.constraint == "rental_id" and attempt < MAX_ISSUE_ATTEMPTS:
                logger.warning("rental_id_taken_retrying", event_id=event_id, attempt=attempt)
                continue
            logger.error("calendar_event_import_failed", event_id=event_id, error=e.message)
            summary.ignored += 1
            return "ignored"
        except Exception as e:
            logger.exception("calendar_event_import_failed", event_id=event_id, error=str(e))
            summary.ignored += 1
            return "ignored"

        logger.info(
            "calendar_event_imported",
            event_id=event_id,
            booking_id=booking_id,
            rental_id=rental_id,
            trailer_id=trailer.id,
        )
        summary.created += 1
        summary.created_booking_ids.append(booking_id)
        return "created"

    summary.ignored += 1
    return "ignored"


def sync_window(
    days_back: int, days_forward: int, now: Optional[datetime] = None
) -> tuple[datetime, datetime]:
    """Return (window_start, window_end) around ``now`` in UTC."""
    now = now or datetime.now(timezone.utc)
    return now - timedelta(days=days_back), now + timedelta(days=days_forward)


def sync_from_calendar(
    engine: Engine,
    source: CalendarSource,
    credentials: AccessCredentials,
    days_back: int,
    days_forward: int,
    dry_run: bool = False,
    now: Optional[datetime] = None,
) -> ImportSummary:
    """
    Pull events for a window around now and import them.

    Raises:
        UpstreamUnavailable: The calendar could not be listed. Nothing is imported.
    """
    window_start, window_end = sync_window(days_back, days_forward, now)
    logger.info(
        "calendar_sync_started",
        window_start=window_start.isoformat(),
        window_end=window_end.isoformat(),
        dry_run=dry_run,
    )

    start_time = time.time()
    try:
        events = source.list_events(window_start, window_end)
        summary = import_events(engine, events, credentials, dry_run=dry_run)
    except Exception:
        calendar_sync_runs.labels(status="failure").inc()
        logger.exception("calendar_sync_failed")
        raise
    finally:
        calendar_sync_duration.observe(time.time() - start_time)

    calendar_sync_runs.labels(status="success").inc()
    return summary
