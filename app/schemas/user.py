"""Request/response schemas for user and profile endpoints."""

from datetime import date

from pydantic import Field, field_validator

from app.schemas.common import CamelModel, ensure_not_blank


class ProfileRequest(CamelModel):
    """Profile attributes sent by the owner or an admin; every field is copied onto the profile."""

    last_name: str = Field(..., max_length=50, description="Фамилия")
    first_name: str = Field(..., max_length=50, description="Имя")
    middle_name: str | None = Field(default=None, max_length=50, description="Отчество")
    birth_date: date | None = Field(default=None, description="YYYY-MM-DD")
    phone_number: str | None = Field(default=None, max_length=20)

    @field_validator("last_name", "first_name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return ensure_not_blank(v)


class ProfileResponse(CamelModel):
    id: int
    last_name: str
    first_name: str
    middle_name: str | None = None
    birth_date: date | None = None
    email: str | None = None
    phone_number: str | None = None
    has_photo: bool = False
    photo_url: str | None = None


class UserResponse(CamelModel):
    """User list entry; id is the user's id, userDetails the linked profile (if any)."""

    id: int
    username: str
    email: str
    user_details: ProfileResponse | None = None
