"""Principal loading, sign-in and account registration."""

import logging
from collections.abc import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import BadCredentialsError, UserAlreadyExistsError, UserNotFoundError
from app.core.security import create_access_token, hash_password, verify_password
from app.models import Profile, Role, RoleName, User
from app.schemas.auth import JwtResponse, Principal

logger = logging.getLogger(__name__)

USERNAME_TAKEN_MESSAGE = "Ошибка: Имя пользователя уже занято!"
EMAIL_TAKEN_MESSAGE = "Ошибка: Email уже используется!"

# The only requested-role string that grants admin; anything else maps to ROLE_USER.
ADMIN_ROLE_ALIAS = "admin"


def load_principal(db: Session, username: str) -> Principal:
    """Return the principal for username with its role names; raise UserNotFoundError if absent."""
    user = db.query(User).filter(User.username == username).first()
    if user is None:
        logger.error("User not found: %s", username)
        raise UserNotFoundError(username)
    return Principal(
        id=user.id,
        username=user.username,
        email=user.email,
        password_hash=user.password_hash,
        authorities=frozenset(user.role_names),
    )


def authenticate(db: Session, username: str, password: str) -> JwtResponse:
    """
    Verify credentials and issue a bearer token.

    An unknown username and a wrong password both raise BadCredentialsError so the
    caller cannot tell which one failed.
    """
    try:
        principal = load_principal(db, username)
    except UserNotFoundError as e:
        raise BadCredentialsError() from e
    if not verify_password(password, principal.password_hash):
        logger.warning("Sign-in rejected for %s: bad credentials", username)
        raise BadCredentialsError()

    token = create_access_token(principal.username)
    logger.info("Issued token for %s", principal.username)
    return JwtResponse(
        token=token,
        id=principal.id,
        username=principal.username,
        email=principal.email,
        roles=sorted(principal.authorities),
    )


def username_taken(db: Session, username: str) -> bool:
    return db.query(User.id).filter(User.username == username).first() is not None


def email_taken(db: Session, email: str) -> bool:
    return db.query(User.id).filter(User.email == email).first() is not None


def map_requested_roles(requested: Iterable[str] | None) -> set[RoleName]:
    """Map signup role strings to role names: 'admin' -> ROLE_ADMIN, anything else -> ROLE_USER."""
    if requested is None:
        return {RoleName.USER}
    names = {
        RoleName.ADMIN if value == ADMIN_ROLE_ALIAS else RoleName.USER
        for value in requested
    }
    return names or {RoleName.USER}


def _load_roles(db: Session, names: set[RoleName]) -> list[Role]:
    wanted = {name.value for name in names}
    roles = db.query(Role).filter(Role.name.in_(wanted)).all()
    missing = wanted - {role.name for role in roles}
    if missing:
        # Roles are seeded at bootstrap; a missing row is a deployment error.
        raise RuntimeError(f"Roles not found: {', '.join(sorted(missing))}")
    return roles


def register_user(
    db: Session,
    *,
    username: str,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    requested_roles: Iterable[str] | None = None,
) -> User:
    """
    Create a user with its role set and a seed profile in one transaction.

    Raises UserAlreadyExistsError when the username or email is taken, either by the
    pre-flight checks or by the unique constraints at commit. Nothing is persisted then.
    """
    if username_taken(db, username):
        logger.warning("Registration rejected: username %s is taken", username)
        raise UserAlreadyExistsError("username", USERNAME_TAKEN_MESSAGE)
    if email_taken(db, email):
        logger.warning("Registration rejected: email %s is taken", email)
        raise UserAlreadyExistsError("email", EMAIL_TAKEN_MESSAGE)

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        roles=_load_roles(db, map_requested_roles(requested_roles)),
    )
    db.add(user)
    try:
        db.flush()
        db.add(
            Profile(
                user_id=user.id,
                first_name=first_name,
                last_name=last_name,
            )
        )
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("Registration of %s lost a uniqueness race: %s", username, e.orig)
        raise UserAlreadyExistsError(
            "username",
            "Пользователь с таким именем или email уже существует",
        ) from e

    db.refresh(user)
    logger.info(
        "Registered user %s with roles %s",
        username,
        ",".join(sorted(user.role_names)),
    )
    return user
