"""
Unit tests for logging configuration.
"""

from __future__ import annotations

import pytest
import structlog

from trailer_booking.logging_config import redact_secrets, setup_logging


@pytest.mark.unit
def test_redact_secrets_masks_credentials() -> None:
    event = {"event": "booking_created", "rental_id": "JLA-123456", "access_key": "482913"}

    redacted = redact_secrets(None, "info", event)

    assert redacted["access_key"] == "[redacted]"
    assert redacted["rental_id"] == "JLA-123456"


@pytest.mark.unit
@pytest.mark.parametrize("log_format", ["json", "console"])
def test_setup_logging_accepts_both_formats(log_format: str) -> None:
    setup_logging(level="DEBUG", log_format=log_format)

    assert structlog.is_configured()
