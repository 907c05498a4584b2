"""First-start seeding: the two role rows and the default admin account."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.models import Role, RoleName, User
from app.services.auth import register_user

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_NAME = "Админ"


def seed_roles(db: Session) -> int:
    """Insert ROLE_USER and ROLE_ADMIN when the roles table is empty. Returns rows inserted."""
    if db.query(Role.id).first() is not None:
        return 0
    db.add_all([Role(name=RoleName.USER.value), Role(name=RoleName.ADMIN.value)])
    db.commit()
    logger.info("Seeded roles: %s, %s", RoleName.USER.value, RoleName.ADMIN.value)
    return 2


def ensure_default_admin(db: Session, settings: "Settings") -> User | None:
    """Create the configured admin (with profile) unless its username exists. Idempotent."""
    username = settings.DEFAULT_ADMIN_USERNAME
    if db.query(User.id).filter(User.username == username).first() is not None:
        return None
    admin = register_user(
        db,
        username=username,
        email=settings.DEFAULT_ADMIN_EMAIL,
        password=settings.DEFAULT_ADMIN_PASSWORD.get_secret_value(),
        first_name=DEFAULT_ADMIN_NAME,
        last_name=DEFAULT_ADMIN_NAME,
        requested_roles=["admin"],
    )
    logger.info("Default admin %s created", username)
    return admin


def run_bootstrap(db: Session, settings: "Settings") -> None:
    seed_roles(db)
    ensure_default_admin(db, settings)
