import uuid

from sqlalchemy.orm import DeclarativeBase


def new_id() -> str:
    """Primary key default for every table: a random UUID rendered as text."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Tables are declared without a schema so the same metadata builds the
    PostgreSQL database through Alembic and the in-memory SQLite database
    used by the test suite.
    """

    pass
