"""ORM model for roles and the user <-> role association table."""

import enum

from sqlalchemy import Column, ForeignKey, Integer, SmallInteger, String, Table

from app.models.base import Base


class RoleName(str, enum.Enum):
    USER = "ROLE_USER"
    ADMIN = "ROLE_ADMIN"


user_roles = Table(
    "user_roles",
    Base.metadata,
    Column(
        "user_id",
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "role_id",
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Role(Base):
    """Named grant; exactly ROLE_USER and ROLE_ADMIN exist after bootstrap."""

    __tablename__ = "roles"

    # SQLite only autoincrements INTEGER PRIMARY KEY columns.
    id = Column(
        SmallInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    name = Column(String(20), nullable=False, unique=True)
