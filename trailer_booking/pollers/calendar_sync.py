"""
Command-line entry point for the calendar import.

Meant for an external scheduler (cron, a Kubernetes CronJob). Exits
non-zero if the calendar could not be listed.

Example:
    $ trailer-booking-calendar-sync --days-back 7 --dry-run
"""

import argparse
import sys
from typing import Optional, Sequence

import structlog

from trailer_booking.config import (
    ACCESS_PEPPER,
    CALENDAR_SYNC_DAYS_BACK,
    CALENDAR_SYNC_DAYS_FORWARD,
    DRY_RUN,
    GOOGLE_CALENDAR_ACCESS_TOKEN,
    GOOGLE_CALENDAR_ID,
)
from trailer_booking.db.engine import engine
from trailer_booking.errors import UpstreamUnavailable
from trailer_booking.logging_config import setup_logging
from trailer_booking.network.calendar_client import GoogleCalendarSource
from trailer_booking.services.calendar_import import sync_from_calendar
from trailer_booking.services.credentials import AccessCredentials

logger = structlog.get_logger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import phone bookings from Google Calendar")
    parser.add_argument("--days-back", type=int, default=CALENDAR_SYNC_DAYS_BACK)
    parser.add_argument("--days-forward", type=int, default=CALENDAR_SYNC_DAYS_FORWARD)
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=DRY_RUN,
        help="Log bookings that would be created without writing them",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    setup_logging()
    args = parse_args(argv)

    if not GOOGLE_CALENDAR_ID or not GOOGLE_CALENDAR_ACCESS_TOKEN:
        logger.error("calendar_sync_not_configured")
        return 2

    source = GoogleCalendarSource(GOOGLE_CALENDAR_ID, GOOGLE_CALENDAR_ACCESS_TOKEN)
    try:
        summary = sync_from_calendar(
            engine,
            source,
            AccessCredentials(pepper=ACCESS_PEPPER),
            days_back=args.days_back,
            days_forward=args.days_forward,
            dry_run=args.dry_run,
        )
    except UpstreamUnavailable as e:
        logger.error("calendar_sync_aborted", error=e.message)
        return 1

    logger.info("calendar_sync_finished", **summary.to_dict())
    return 0


if __name__ == "__main__":
    sys.exit(main())
