"""Persisted record models (one JSON file per record)."""

from app.models.account import Account
from app.models.base import Record
from app.models.bot_profile import BotProfile

__all__ = ["Account", "BotProfile", "Record"]
