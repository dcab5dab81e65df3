"""
Domain exceptions for the booking core.

Services raise these; the HTTP layer maps them to responses in one place
(see trailer_booking.main). Nothing in here is retried automatically except
ConstraintViolation on rental_id, which the credential issuance loop handles.
"""

from __future__ import annotations

from typing import Any


class BookingError(Exception):
    """Base class for every failure the booking core reports to callers."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"ok": False, "error": self.message}


class ValidationError(BookingError):
    """Malformed or missing input. `field` names the offending input."""

    status_code = 400

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        return {"ok": False, "error": self.message, "field": self.field}


class DateUnavailable(BookingError):
    """The requested range overlaps at least one active booking."""

    status_code = 409

    def __init__(self, conflicts: list[Any]) -> None:
        super().__init__("Requested dates are not available for this trailer")
        self.conflicts = conflicts

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": False,
            "error": self.message,
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


class NotFound(BookingError):
    """Lookup failed. Deliberately vague for credential verification."""

    status_code = 404


class InvalidTransition(BookingError):
    """The booking's current status does not allow the requested action."""

    status_code = 409

    def __init__(self, current: str, action: str) -> None:
        super().__init__(f"Cannot {action} a booking in status {current}")
        self.current = current
        self.action = action


class ConstraintViolation(BookingError):
    """A store-level uniqueness or check constraint rejected a write."""

    status_code = 409

    def __init__(self, constraint: str, message: str | None = None) -> None:
        super().__init__(message or f"Constraint violated: {constraint}")
        self.constraint = constraint


class UpstreamUnavailable(BookingError):
    """An external collaborator (calendar provider, mail API) could not be reached."""

    status_code = 502
