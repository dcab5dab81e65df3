"""
SQLAlchemy engine singleton.

PostgreSQL deployments get a sized connection pool. SQLite URLs (local
development) use SQLAlchemy's default SQLite pool, which rejects the
sizing arguments.
"""

from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from trailer_booking.config import DATABASE_URL

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set.")

_pool_options: dict[str, Any] = {}
if not DATABASE_URL.startswith("sqlite"):
    _pool_options = {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }

engine: Engine = create_engine(DATABASE_URL, future=True, echo=False, **_pool_options)


def check_engine_health(db_engine: Engine | None = None) -> bool:
    """
    Return True if a trivial query succeeds against the database.

    Used by the /ready endpoint.
    """
    try:
        with (db_engine or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
