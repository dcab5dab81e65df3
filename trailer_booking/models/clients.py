from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from trailer_booking.models.base import Base, new_id


class Client(Base):
    """
    ORM model for renting customers.

    Clients are keyed by lower-cased email; one client row is shared by all
    of that customer's bookings. Imported phone bookings without an email get
    a synthesized placeholder address so the key stays unique.
    """

    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String, nullable=False, unique=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    towing_vehicle = Column(String, nullable=True)
    comments = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
