"""Pydantic request/response schemas."""

from app.schemas.auth import CurrentUser, LoginRequest, TokenResponse, UsersListResponse
from app.schemas.bot_profile import BotProfileCreate, BotProfileUpdate, DeleteResponse
from app.schemas.health import HealthResponse

__all__ = [
    "BotProfileCreate",
    "BotProfileUpdate",
    "CurrentUser",
    "DeleteResponse",
    "HealthResponse",
    "LoginRequest",
    "TokenResponse",
    "UsersListResponse",
]
