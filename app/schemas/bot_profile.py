"""Request schemas for bot profile CRUD. Responses are the BotProfile record itself."""

from decimal import Decimal, InvalidOperation
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Discord usernames are at most 32 characters; leave headroom for legacy names.
PROFILE_USERNAME_MAX_LEN = 64
API_KEY_MAX_LEN = 512
MODEL_MAX_LEN = 128
MAX_TOKENS_LIMIT = 32_768

ProfileRole = Literal["Admin", "Moderator", "User"]


def _validate_temperature(value: str | None) -> str | None:
    """Ensure temperature is a decimal string in [0, 1] when present."""
    if value is None:
        return None
    text = value.strip()
    try:
        number = Decimal(text)
    except InvalidOperation:
        raise ValueError("temperature must be a decimal number") from None
    if not number.is_finite() or not 0 <= number <= 1:
        raise ValueError("temperature must be between 0 and 1")
    return text


def _validate_username(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    if not stripped:
        raise ValueError("username must be non-empty")
    return stripped


class _ProfileFields(BaseModel):
    """Shared field definitions; every field optional here, create tightens the required ones."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    username: str | None = Field(default=None, min_length=1, max_length=PROFILE_USERNAME_MAX_LEN)
    api_key: str | None = Field(default=None, min_length=1, max_length=API_KEY_MAX_LEN)
    model: str | None = Field(default=None, min_length=1, max_length=MODEL_MAX_LEN)
    temperature: str | None = Field(default=None, description="Decimal string in [0, 1]")
    max_tokens: int | None = Field(default=None, ge=1, le=MAX_TOKENS_LIMIT)
    is_active: bool | None = None
    role: ProfileRole | None = None
    can_use_ask: bool | None = None
    can_use_summary: bool | None = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str | None) -> str | None:
        return _validate_username(v)

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: str | None) -> str | None:
        return _validate_temperature(v)

    def to_store_input(self) -> dict[str, Any]:
        """Only the fields the client actually sent, keyed by wire name."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class BotProfileCreate(_ProfileFields):
    """Body for POST /bot-users. Omitted optional fields get their documented defaults."""

    username: str = Field(..., min_length=1, max_length=PROFILE_USERNAME_MAX_LEN)
    api_key: str = Field(..., min_length=1, max_length=API_KEY_MAX_LEN)


class BotProfileUpdate(_ProfileFields):
    """Body for PUT /bot-users/{id}. Any subset of fields; omitted fields keep their stored value."""


class DeleteResponse(BaseModel):
    """Response for DELETE /bot-users/{id}."""

    success: bool
    message: str
