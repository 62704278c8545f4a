"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from app.models import Account


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(
        ..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN, description="Username"
    )
    password: str = Field(
        ..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN, description="Password"
    )


class CurrentUser(BaseModel):
    """Authenticated account (id, username, isAdmin) for dependency injection. Never carries the password."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: int
    username: str
    is_admin: bool

    @classmethod
    def from_account(cls, account: Account) -> "CurrentUser":
        return cls(id=account.id, username=account.username, is_admin=account.is_admin)


class TokenResponse(BaseModel):
    """JWT access token returned after successful login, with the logged-in account."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: CurrentUser


class UsersListResponse(BaseModel):
    """Response for GET /auth/users (admin only)."""

    users: list[CurrentUser]
