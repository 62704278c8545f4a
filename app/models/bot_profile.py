"""BotProfile record: per-Discord-username bot configuration."""

from typing import Final

from app.models.base import Record

DEFAULT_MODEL: Final = "poppy-v1"
DEFAULT_TEMPERATURE: Final = "0.7"
DEFAULT_MAX_TOKENS: Final = 1024

# Display labels only; not an authorization mechanism.
PROFILE_ROLES: frozenset[str] = frozenset({"Admin", "Moderator", "User"})


class BotProfile(Record):
    """
    Bot access and model parameters for one Discord username.

    The bot looks profiles up by the invoking user's platform username:
    ``is_active`` gates all commands, ``can_use_ask`` / ``can_use_summary``
    gate each command individually.
    """

    api_key: str
    model: str = DEFAULT_MODEL
    temperature: str = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    is_active: bool = True
    role: str = "User"
    can_use_ask: bool = True
    can_use_summary: bool = True
