from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Listings and their dependent collections share this metadata so migrations
    and test databases can be built from a single source.
    """

    pass
