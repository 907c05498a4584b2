"""ORM model for application users (credentials and role set)."""

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base
from app.models.role import Role, user_roles


class User(Base):
    """
    Account used for bearer authentication.

    Deleting a user cascades (in the schema) to user_roles, user_details and
    user_photos. password_hash never leaves the service layer.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(20), nullable=False, unique=True, index=True)
    email = Column(String(50), nullable=False, unique=True, index=True)
    password_hash = Column(String(120), nullable=False)

    roles = relationship(
        Role,
        secondary=user_roles,
        lazy="selectin",
        passive_deletes=True,
    )

    @property
    def role_names(self) -> set[str]:
        return {role.name for role in self.roles}
