"""Declarative Base shared by the role, user, profile and photo models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base.metadata holds every table the Alembic migrations create."""
