"""Shared schema configuration, field checks and the message envelope."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def ensure_not_blank(v: str) -> str:
    """Reject text without a non-whitespace character."""
    if not v.strip():
        raise ValueError("не должно быть пустым")
    return v


class CamelModel(BaseModel):
    """Base for wire models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(BaseModel):
    """Envelope for success notices and errors."""

    message: str = Field(..., description="Human-readable message")
