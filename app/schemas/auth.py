"""Request/response schemas for auth endpoints and the request principal."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.schemas.common import CamelModel, ensure_not_blank

EMAIL_MAX_LENGTH = 50


class LoginRequest(BaseModel):
    """Credentials for sign-in."""

    username: str = Field(..., description="Username")
    password: str = Field(..., description="Password")

    @field_validator("username", "password")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return ensure_not_blank(v)


class SignupRequest(CamelModel):
    """Registration payload. `role` entries other than 'admin' map to ROLE_USER."""

    username: str = Field(..., min_length=3, max_length=20)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=40)
    first_name: str = Field(..., max_length=50)
    last_name: str = Field(..., max_length=50)
    role: set[str] | None = Field(
        default=None,
        description="Requested roles, e.g. ['admin'] or ['user']",
    )

    @field_validator("username", "first_name", "last_name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return ensure_not_blank(v)

    @field_validator("email")
    @classmethod
    def email_length(cls, v: str) -> str:
        if len(v) > EMAIL_MAX_LENGTH:
            raise ValueError(f"длина должна быть не более {EMAIL_MAX_LENGTH} символов")
        return v


class JwtResponse(BaseModel):
    """Bearer token plus the identity it was issued for."""

    token: str = Field(..., description="JWT access token")
    type: str = Field(default="Bearer", description="Token type")
    id: int
    username: str
    email: str
    roles: list[str] = Field(..., description="Full role names, e.g. ROLE_ADMIN")


class Principal(BaseModel):
    """Authenticated identity attached to a request."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    password_hash: str = Field(exclude=True, repr=False)
    authorities: frozenset[str]

    def has_role(self, role: str) -> bool:
        return role in self.authorities
