"""
Google Calendar v3 client: lists events in a time window and inserts events
for approved bookings.

Uses a bearer access token (obtained out of band, e.g. by a service
account token job) and plain `requests`, with the same bounded retry on
429, 5xx and timeouts as the rest of the outbound calls.
"""

import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, cast
from urllib.parse import quote

import requests
import structlog

from trailer_booking.errors import UpstreamUnavailable
from trailer_booking.metrics import api_latency, api_requests
from trailer_booking.services.calendar_import import ExternalEvent

logger = structlog.get_logger(__name__)

BASE_URL = "https://www.googleapis.com/calendar/v3/calendars/"
PAGE_SIZE = 250
MAX_RETRIES = 2
RETRY_DELAY = 1.0
MAX_PAGES = 50


def should_retry(res: Optional[requests.Response], err: Optional[Exception]) -> bool:
    """
    Determine whether the request should be retried based on response or error.

    Args:
        res (Optional[requests.Response]): Response object if available.
        err (Optional[Exception]): Exception raised by the request, if any.

    Returns:
        bool: True if the request should be retried, False otherwise.
    """
    if res is not None and res.status_code == 429:
        return True
    if isinstance(err, (requests.Timeout, requests.ConnectionError)):
        return True
    if res is not None and 500 <= res.status_code < 600:
        return True
    return False


class GoogleCalendarSource:
    """
    Reads and writes events on one Google calendar.

    Args:
        calendar_id: Calendar to read, e.g. "shop@group.calendar.google.com"
        access_token: OAuth bearer token with calendar scope
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        calendar_id: str,
        access_token: str,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not calendar_id:
            raise ValueError("calendar_id is required")
        self.calendar_id = calendar_id
        self.access_token = access_token
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def events_url(self) -> str:
        return f"{BASE_URL}{quote(self.calendar_id, safe='')}/events"

    def _send(self, send: Callable[..., requests.Response], **kwargs: Any) -> Dict[str, Any]:
        """
        Call the events endpoint with bounded retries.

        Args:
            send: Bound session method (get or post)
            **kwargs: Passed through to `send` (params, json)

        Raises:
            UpstreamUnavailable: Request failed after all retries, or a
                non-retryable error status came back.
        """
        headers = {"Authorization": f"Bearer {self.access_token}"}
        retries = 0

        while True:
            res: Optional[requests.Response] = None
            err: Optional[Exception] = None
            start_time = time.time()
            try:
                res = send(self.events_url, headers=headers, timeout=self.timeout, **kwargs)
            except requests.RequestException as e:
                err = e

            api_latency.labels(service="google_calendar").observe(time.time() - start_time)
            api_requests.labels(
                service="google_calendar",
                status_code=str(res.status_code) if res is not None else "error",
            ).inc()

            if res is not None and res.ok:
                return cast(Dict[str, Any], res.json())

            if should_retry(res, err) and retries < MAX_RETRIES:
                retries += 1
                logger.warning(
                    "calendar_request_retry",
                    attempt=retries,
                    status_code=res.status_code if res is not None else None,
                    error=str(err) if err else None,
                )
                time.sleep(RETRY_DELAY * retries)
                continue

            detail = f"HTTP {res.status_code}" if res is not None else str(err)
            logger.error("calendar_request_failed", calendar_id=self.calendar_id, detail=detail)
            raise UpstreamUnavailable(f"Calendar provider unavailable: {detail}")

    def fetch_page(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Fetch one page of events."""
        return self._send(self.session.get, params=params)

    def list_events(self, window_start: datetime, window_end: datetime) -> List[ExternalEvent]:
        """
        Return every single (expanded recurring) event in the window, ordered by start.

        Cancelled instances are left out.

        Raises:
            UpstreamUnavailable: A page failed, or the window spans more than
                MAX_PAGES pages and could only be listed in part.
        """
        params: Dict[str, Any] = {
            "timeMin": window_start.isoformat(),
            "timeMax": window_end.isoformat(),
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": PAGE_SIZE,
        }

        events: List[ExternalEvent] = []
        for _ in range(MAX_PAGES):
            page = self.fetch_page(params)
            for item in page.get("items", []):
                if item.get("status") == "cancelled":
                    continue
                events.append(ExternalEvent.from_google(item))

            token = page.get("nextPageToken")
            if not token:
                break
            params = {**params, "pageToken": token}
        else:
            logger.error("calendar_page_limit_reached", pages=MAX_PAGES, listed=len(events))
            raise UpstreamUnavailable(
                f"Calendar window has more than {MAX_PAGES * PAGE_SIZE} events; narrow the window"
            )

        logger.info("calendar_events_listed", count=len(events))
        return events

    def create_event(self, body: Dict[str, Any]) -> str:
        """
        Insert one event and return its ID.

        Raises:
            UpstreamUnavailable: The insert failed or returned no event ID.
        """
        created = self._send(self.session.post, json=body)
        event_id = created.get("id")
        if not event_id:
            raise UpstreamUnavailable("Calendar provider returned no event id")
        logger.info("calendar_event_created", event_id=event_id, summary=body.get("summary"))
        return str(event_id)
