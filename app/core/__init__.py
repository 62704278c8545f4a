"""Core app configuration, security, and record store wiring."""

from app.core.config import get_settings, settings

__all__ = ["get_settings", "settings"]
