"""Sign-in and sign-up endpoints, plus the bearer-token dependencies every protected route uses."""

from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import (
    ForbiddenError,
    NotAuthenticatedError,
    UserNotFoundError,
    ValidationError,
)
from app.core.security import username_from_token
from app.models import RoleName
from app.schemas.auth import JwtResponse, LoginRequest, Principal, SignupRequest
from app.schemas.common import MessageResponse
from app.services.auth import (
    EMAIL_TAKEN_MESSAGE,
    USERNAME_TAKEN_MESSAGE,
    authenticate,
    email_taken,
    load_principal,
    register_user,
    username_taken,
)

router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_current_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> Principal | None:
    """
    Dependency: resolve the Bearer token to a principal, or None.

    Never raises; a missing, malformed or expired token, or a user that no longer
    exists, all leave the request unauthenticated. The result is stored on
    request.state.principal.
    """
    principal: Principal | None = None
    if credentials is not None:
        username = username_from_token(credentials.credentials)
        if username is not None:
            try:
                principal = load_principal(db, username)
            except UserNotFoundError:
                principal = None
    request.state.principal = principal
    return principal


def require_roles(*roles: RoleName) -> Callable[..., Principal]:
    """Build a dependency that admits principals holding any of roles: 401 if anonymous, 403 otherwise."""
    allowed = frozenset(role.value for role in roles)

    def dependency(
        principal: Annotated[Principal | None, Depends(get_current_principal)],
    ) -> Principal:
        if principal is None:
            raise NotAuthenticatedError()
        if not allowed & principal.authorities:
            raise ForbiddenError()
        return principal

    return dependency


require_admin = require_roles(RoleName.ADMIN)
require_user_or_admin = require_roles(RoleName.USER, RoleName.ADMIN)


@router.post("/signin", response_model=JwtResponse)
def signin(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> JwtResponse:
    """
    Authenticate with username and password; returns a bearer token and the user's roles.
    Include the token in the Authorization header as: Bearer <token>
    """
    return authenticate(db, body.username, body.password)


@router.post(
    "/signup",
    response_model=MessageResponse,
    responses={400: {"model": MessageResponse}, 409: {"model": MessageResponse}},
)
def signup(
    body: SignupRequest,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """
    Register a user. role: ['admin'] grants ROLE_ADMIN; any other value grants ROLE_USER.

    A taken username or email is answered with 400; a clash that only shows up at
    commit is a 409 from the registry.
    """
    if username_taken(db, body.username):
        raise ValidationError(USERNAME_TAKEN_MESSAGE)
    if email_taken(db, body.email):
        raise ValidationError(EMAIL_TAKEN_MESSAGE)
    register_user(
        db,
        username=body.username,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        requested_roles=body.role,
    )
    return MessageResponse(message="Пользователь успешно зарегистрирован!")
