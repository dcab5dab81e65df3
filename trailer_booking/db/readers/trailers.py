from typing import Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection, RowMapping

from trailer_booking.models.records import TrailerSummary
from trailer_booking.models.trailers import Trailer, TrailerPhoto


def _to_summary(row: RowMapping) -> TrailerSummary:
    return TrailerSummary(
        id=row["id"],
        name=row["name"],
        rate_per_day=row["rate_per_day"],
        active=bool(row["active"]),
        color_hex=row["color_hex"],
    )


def get_trailer(conn: Connection, trailer_id: str) -> Optional[TrailerSummary]:
    """
    Fetch a trailer by ID.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        trailer_id (str): Trailer ID.

    Returns:
        Optional[TrailerSummary]: The trailer, or None if it does not exist.
    """
    row = (
        conn.execute(
            select(
                Trailer.id, Trailer.name, Trailer.rate_per_day, Trailer.active, Trailer.color_hex
            ).where(Trailer.id == trailer_id)
        )
        .mappings()
        .fetchone()
    )
    return _to_summary(row) if row else None


def list_trailers(conn: Connection, active_only: bool = False) -> list[TrailerSummary]:
    """
    List trailers ordered by name.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        active_only (bool): Only return trailers offered for rent.

    Returns:
        list[TrailerSummary]: Trailers sorted by name.
    """
    stmt = select(
        Trailer.id, Trailer.name, Trailer.rate_per_day, Trailer.active, Trailer.color_hex
    ).order_by(Trailer.name)
    if active_only:
        stmt = stmt.where(Trailer.active == True)  # noqa: E712
    return [_to_summary(row) for row in conn.execute(stmt).mappings()]


def get_photo_paths(conn: Connection, trailer_id: str) -> list[str]:
    """Return a trailer's photo paths, cover photo first."""
    result = conn.execute(
        select(TrailerPhoto.file_path)
        .where(TrailerPhoto.trailer_id == trailer_id)
        .order_by(TrailerPhoto.sort_order, TrailerPhoto.id)
    )
    return [row[0] for row in result]
