from __future__ import annotations

import logging
import sys
from typing import Any, Callable, MutableMapping, Optional, cast

import structlog

from trailer_booking.config import LOG_FORMAT, LOG_LEVEL

Processor = Callable[[Any, str, MutableMapping[str, Any]], Any]

# Libraries whose INFO chatter drowns out booking events.
QUIET_LOGGERS = ("urllib3", "requests", "httpx", "httpcore", "sqlalchemy.engine", "uvicorn.access")

# Never written to logs, whatever a caller binds.
REDACTED_KEYS = frozenset({"access_key", "access_key_hash", "payment_token", "api_key"})


def redact_secrets(_: Any, __: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    for key in REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = "[redacted]"
    return event_dict


def _renderer(log_format: str) -> Processor:
    if log_format == "console":
        return cast(Processor, structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return cast(Processor, structlog.processors.JSONRenderer())


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure structlog and the standard library root logger.

    Values bound with structlog.contextvars (the request_id set by
    RequestIDMiddleware) are merged into every event.

    Args:
        level: Overrides LOG_LEVEL
        log_format: "json" or "console"; overrides LOG_FORMAT
    """
    level = (level or LOG_LEVEL).upper()
    log_format = (log_format or LOG_FORMAT).lower()

    logging.basicConfig(
        format="[%(asctime)s] %(levelname)s in %(name)s:%(lineno)d: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        level=level,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            redact_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _renderer(log_format),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
