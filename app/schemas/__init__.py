"""Pydantic request/response schemas."""

from app.schemas.auth import JwtResponse, LoginRequest, Principal, SignupRequest
from app.schemas.common import MessageResponse
from app.schemas.health import HealthResponse
from app.schemas.user import ProfileRequest, ProfileResponse, UserResponse

__all__ = [
    "HealthResponse",
    "JwtResponse",
    "LoginRequest",
    "MessageResponse",
    "Principal",
    "ProfileRequest",
    "ProfileResponse",
    "SignupRequest",
    "UserResponse",
]
