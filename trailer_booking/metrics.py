"""
Prometheus metrics for booking transitions, calendar sync, and outbound calls.

Metrics are exposed via the /metrics endpoint for scraping by Prometheus.

Example:
    >>> from trailer_booking.metrics import booking_transitions
    >>> booking_transitions.labels(action="approve", status="success").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# Booking Metrics
# =============================================================================

booking_transitions = Counter(
    "trailer_booking_transitions_total",
    "Booking lifecycle actions attempted (success, rejected, noop)",
    ["action", "status"],
)
"""
Counter for lifecycle actions.

Labels:
    action: create, approve, mark_paid, close, reschedule, reject, confirm
    status: success, noop (idempotent repeat), or the error class name
"""

availability_conflicts = Counter(
    "trailer_booking_availability_conflicts_total",
    "Availability checks that found at least one conflicting booking",
)
"""Counter for availability checks that returned conflicts."""

credential_verifications = Counter(
    "trailer_booking_credential_verifications_total",
    "Access key verification attempts",
    ["result"],
)
"""
Counter for credential verification.

Labels:
    result: ok or failed
"""

# =============================================================================
# Calendar Sync Metrics
# =============================================================================

calendar_sync_runs = Counter(
    "trailer_booking_calendar_sync_runs_total",
    "Calendar reconciliation runs (success and failure)",
    ["status"],
)
"""
Counter for calendar sync runs.

Labels:
    status: success or failure
"""

calendar_events_processed = Counter(
    "trailer_booking_calendar_events_total",
    "Calendar events seen by the reconciler, by outcome",
    ["outcome"],
)
"""
Counter for reconciled calendar events.

Labels:
    outcome: created, skipped_existing, ignored
"""

calendar_pushes = Counter(
    "trailer_booking_calendar_pushes_total",
    "Approved bookings pushed to the shop calendar",
    ["status"],
)
"""
Counter for calendar pushes on approval.

Labels:
    status: success or failure
"""

calendar_sync_duration = Histogram(
    "trailer_booking_calendar_sync_duration_seconds",
    "Duration of calendar reconciliation runs in seconds",
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, float("inf")),
)
"""
Histogram for calendar sync duration.

Buckets: 0.5s, 1s, 2.5s, 5s, 10s, 30s, 60s, +Inf
"""

# =============================================================================
# Outbound API Metrics
# =============================================================================

api_requests = Counter(
    "trailer_booking_api_requests_total",
    "Outbound API requests made",
    ["service", "status_code"],
)
"""
Counter for outbound requests.

Labels:
    service: google_calendar or resend
    status_code: HTTP status code, or "error" when no response arrived
"""

api_latency = Histogram(
    "trailer_booking_api_latency_seconds",
    "Outbound API request latency in seconds",
    ["service"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, float("inf")),
)
"""
Histogram for outbound request latency.

Labels:
    service: google_calendar or resend
"""

notifications_sent = Counter(
    "trailer_booking_notifications_total",
    "Customer notifications attempted",
    ["kind", "status"],
)
"""
Counter for notifications.

Labels:
    kind: booking_received, booking_approved, payment_received, rescheduled, closed
    status: sent or failed
"""
