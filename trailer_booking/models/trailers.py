"""SQLAlchemy models for the rental fleet."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.sql import func

from trailer_booking.models.base import Base, new_id


class Trailer(Base):
    """
    A rentable trailer.

    `name` is shown to customers and is also what imported calendar event
    titles are matched against, so it should stay recognisable
    (e.g. "6x12 Utility Trailer"). `color_hex` tints the admin calendar.
    """

    __tablename__ = "trailers"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    rate_per_day = Column(Numeric(10, 2), nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    color_hex = Column(String(7), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class TrailerPhoto(Base):
    """Ordered photo references for a trailer; the lowest sort_order is the cover."""

    __tablename__ = "trailer_photos"

    id = Column(String(36), primary_key=True, default=new_id)
    trailer_id = Column(
        String(36), ForeignKey("trailers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    file_path = Column(String, nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
