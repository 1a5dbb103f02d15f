"""SQLAlchemy declarative Base shared by the users and tasks tables."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base; Base.metadata feeds create_all and Alembic autogenerate."""

    pass
