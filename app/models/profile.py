"""ORM model for per-user profile attributes (table user_details)."""

from sqlalchemy import Column, Date, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base


class Profile(Base):
    """
    Personal information owned by exactly one user (user_id is unique).

    The id of this row is the public id used by the /users/{id} routes.
    """

    __tablename__ = "user_details"

    id = Column(Integer, primary_key=True, autoincrement=True)
    last_name = Column(String(50), nullable=False)
    first_name = Column(String(50), nullable=False)
    middle_name = Column(String(50), nullable=True)
    birth_date = Column(Date, nullable=True)
    phone_number = Column(String(20), nullable=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        unique=True,
        index=True,
    )

    # Many-to-one lookup by user_id; users hold no pointer back.
    user = relationship("User", lazy="joined")
