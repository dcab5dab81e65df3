from typing import Optional

import structlog
from sqlalchemy import insert, update
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from trailer_booking.db.readers.clients import get_client_id_by_email, normalize_email
from trailer_booking.db.writers.bookings import constraint_name
from trailer_booking.errors import ConstraintViolation
from trailer_booking.models.base import new_id
from trailer_booking.models.clients import Client
from trailer_booking.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def upsert_client(
    conn: Connection,
    email: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    phone: Optional[str] = None,
    towing_vehicle: Optional[str] = None,
    comments: Optional[str] = None,
    refresh: bool = True,
) -> str:
    """
    Find a client by email, refreshing contact details, or create one.

    Only non-empty values overwrite what is stored, so a sparse repeat
    booking never blanks out an existing phone number.

    Args:
        conn (Connection): Active database connection (within transaction).
        email (str): Client email; normalized to lower case.
        first_name, last_name, phone, towing_vehicle, comments: Contact details.
        refresh (bool): Overwrite stored details of an existing client.

    Returns:
        str: The client ID.
    """
    key = normalize_email(email)
    fields = {
        "first_name": first_name,
        "last_name": last_name,
        "phone": phone,
        "towing_vehicle": towing_vehicle,
        "comments": comments,
    }
    present = {k: v for k, v in fields.items() if v not in (None, "")}

    client_id = get_client_id_by_email(conn, key)
    if client_id is not None:
        if present and refresh:
            conn.execute(
                update(Client)
                .where(Client.id == client_id)
                .values(**present, updated_at=utc_now())
            )
        return client_id

    client_id = new_id()
    try:
        conn.execute(insert(Client).values(id=client_id, email=key, **present))
    except IntegrityError as exc:
        raise ConstraintViolation(constraint_name(exc)) from exc
    logger.info("client_created", client_id=client_id)
    return client_id
