"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.photo import Photo
from app.models.profile import Profile
from app.models.role import Role, RoleName, user_roles
from app.models.user import User

__all__ = ["Base", "Photo", "Profile", "Role", "RoleName", "User", "user_roles"]
