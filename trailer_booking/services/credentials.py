"""
Customer-facing booking credentials.

Each booking gets a shareable rental ID (``JLA-123456``) and a six-digit
access key. Only a peppered SHA-256 of the key is stored; the plaintext is
handed back once at creation and never persisted. Access keys are scoped to
their rental ID, so two bookings sharing a key is harmless.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass, field

import structlog
from sqlalchemy.engine import Connection

from trailer_booking.db.readers.bookings import get_booking_by_rental_id
from trailer_booking.errors import NotFound
from trailer_booking.metrics import credential_verifications
from trailer_booking.models.records import BookingDetail

logger = structlog.get_logger(__name__)

RENTAL_ID_PREFIX = "JLA-"
CODE_MIN = 100000
CODE_MAX = 999999

# Attempts at finding an unused rental ID before giving up. Also bounds how
# often booking creation retries after losing an insert race on rental_id.
MAX_ISSUE_ATTEMPTS = 5

LOOKUP_FAILED = "No booking matches that rental ID and access key"


def _random_code() -> str:
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


@dataclass(frozen=True)
class IssuedCredentials:
    rental_id: str
    access_key: str = field(repr=False)
    access_key_hash: str = field(repr=False)


class AccessCredentials:
    """
    Issues and verifies (rental ID, access key) pairs.

    The pepper is supplied at construction so tests can pin it; production
    code builds one from ``config.ACCESS_PEPPER``.

    Example:
        >>> creds = AccessCredentials(pepper="test-pepper")
        >>> issued = creds.issue()
        >>> creds.matches(issued.access_key, issued.access_key_hash)
        True
    """

    def __init__(self, pepper: str) -> None:
        self._pepper = pepper

    def generate_rental_id(self) -> str:
        return RENTAL_ID_PREFIX + _random_code()

    def generate_access_key(self) -> str:
        return _random_code()

    def hash_access_key(self, access_key: str) -> str:
        """Hex SHA-256 of the key followed by the pepper."""
        return hashlib.sha256((access_key + self._pepper).encode("utf-8")).hexdigest()

    def matches(self, access_key: str, stored_hash: str | None) -> bool:
        if not stored_hash:
            return False
        return hmac.compare_digest(self.hash_access_key(access_key), stored_hash)

    def issue(self) -> IssuedCredentials:
        """Generate a fresh rental ID and access key pair."""
        access_key = self.generate_access_key()
        return IssuedCredentials(
            rental_id=self.generate_rental_id(),
            access_key=access_key,
            access_key_hash=self.hash_access_key(access_key),
        )

    def issue_unused(self, conn: Connection) -> IssuedCredentials:
        """
        Issue credentials whose rental ID is not yet stored.

        The unique constraint on ``bookings.rental_id`` still has the final
        word; this only keeps the common case from hitting it.

        Raises:
            RuntimeError: Every attempt produced a rental ID already in use.
        """
        for attempt in range(1, MAX_ISSUE_ATTEMPTS + 1):
            issued = self.issue()
            if get_booking_by_rental_id(conn, issued.rental_id) is None:
                return issued
            logger.warning(
                "rental_id_collision", rental_id=issued.rental_id, attempt=attempt
            )
        raise RuntimeError(f"No unused rental ID after {MAX_ISSUE_ATTEMPTS} attempts")

    def verify(self, conn: Connection, rental_id: str, access_key: str) -> BookingDetail:
        """
        Return the booking for a rental ID if the access key matches.

        Args:
            conn: Active database connection
            rental_id: Rental ID as typed by the customer (surrounding whitespace ignored)
            access_key: Access key exactly as issued

        Raises:
            NotFound: Unknown rental ID or wrong key. The two cases are
                indistinguishable to the caller.
        """
        rental_id = (rental_id or "").strip().upper()
        booking = get_booking_by_rental_id(conn, rental_id) if rental_id else None

        if booking is None or not access_key or not self.matches(access_key, booking.access_key_hash):
            credential_verifications.labels(result="failed").inc()
            logger.info("credential_verification_failed", rental_id=rental_id)
            raise NotFound(LOOKUP_FAILED)

        credential_verifications.labels(result="ok").inc()
        return booking
