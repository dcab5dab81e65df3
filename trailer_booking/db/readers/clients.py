from typing import Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from trailer_booking.models.clients import Client


def normalize_email(email: str) -> str:
    """Clients are keyed by trimmed, lower-cased email."""
    return email.strip().lower()


def get_client_id_by_email(conn: Connection, email: str) -> Optional[str]:
    """
    Look up a client ID by email.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        email (str): Email in any case; it is normalized before matching.

    Returns:
        Optional[str]: Client ID, or None if no client has that email.
    """
    row = conn.execute(
        select(Client.id).where(Client.email == normalize_email(email)).limit(1)
    ).fetchone()
    return row[0] if row else None
