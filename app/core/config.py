"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Password bounds for the bootstrap administrator (same bounds as login input).
ADMIN_PASSWORD_MIN_LEN = 8
ADMIN_PASSWORD_MAX_LEN = 128


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"

    # Record files live under DATA_DIR/accounts and DATA_DIR/bot_profiles
    DATA_DIR: str = "data"

    # Built-in administrator created on first run
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: SecretStr = SecretStr("admin123")
    # Comma-separated account usernames promoted to admin once at startup
    FORCE_ADMIN_USERNAMES: str = ""
    # Seed the demo bot profiles into an empty store (dev convenience)
    SEED_SAMPLE_PROFILES: bool = False

    # JWT authentication for the dashboard API
    JWT_SECRET: SecretStr = SecretStr("change-me-in-production")
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 1440

    # Poppy completion API (called by the Discord bot)
    POPPY_API_URL: str = "https://api.poppy.ai/v1/completions"
    POPPY_REQUEST_TIMEOUT_SEC: float = 60.0

    # Discord bot (python -m app.bot); required only for the bot process
    DISCORD_TOKEN: SecretStr | None = None
    SUMMARY_HISTORY_LIMIT: int = 50

    @field_validator("DATA_DIR")
    @classmethod
    def validate_data_dir(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATA_DIR must be set and non-empty")
        return v.strip()

    @field_validator("ADMIN_USERNAME")
    @classmethod
    def validate_admin_username(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("ADMIN_USERNAME must be set and non-empty")
        return v.strip()

    @field_validator("ADMIN_PASSWORD")
    @classmethod
    def validate_admin_password(cls, v: SecretStr) -> SecretStr:
        n = len(v.get_secret_value())
        if n < ADMIN_PASSWORD_MIN_LEN or n > ADMIN_PASSWORD_MAX_LEN:
            raise ValueError(
                f"ADMIN_PASSWORD must be {ADMIN_PASSWORD_MIN_LEN}-{ADMIN_PASSWORD_MAX_LEN} characters"
            )
        return v

    @field_validator("JWT_SECRET")
    @classmethod
    def validate_jwt_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value() or not v.get_secret_value().strip():
            raise ValueError("JWT_SECRET must be set and non-empty")
        return v

    @field_validator("JWT_ALGORITHM")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("JWT_ALGORITHM must be set and non-empty")
        return v.strip()

    @field_validator("JWT_EXPIRE_MINUTES")
    @classmethod
    def validate_jwt_expire_minutes(cls, v: int) -> int:
        if v < 1 or v > 10080:
            raise ValueError(
                "JWT_EXPIRE_MINUTES must be between 1 and 10080 (1 min to 7 days)"
            )
        return v

    @field_validator("POPPY_API_URL")
    @classmethod
    def validate_poppy_api_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("POPPY_API_URL must be set and non-empty")
        s = v.strip().lower()
        if not (s.startswith("http://") or s.startswith("https://")):
            raise ValueError(
                "POPPY_API_URL must use http or https (e.g. https://api.poppy.ai/v1/completions)"
            )
        return v.strip()

    @field_validator("POPPY_REQUEST_TIMEOUT_SEC")
    @classmethod
    def validate_poppy_timeout(cls, v: float) -> float:
        if v <= 0 or v > 300:
            raise ValueError(
                "POPPY_REQUEST_TIMEOUT_SEC must be greater than 0 and at most 300"
            )
        return v

    @field_validator("SUMMARY_HISTORY_LIMIT")
    @classmethod
    def validate_summary_history_limit(cls, v: int) -> int:
        if v < 1 or v > 500:
            raise ValueError("SUMMARY_HISTORY_LIMIT must be between 1 and 500")
        return v

    @property
    def force_admin_usernames(self) -> list[str]:
        """Parsed FORCE_ADMIN_USERNAMES (blank entries dropped)."""
        return [u.strip() for u in self.FORCE_ADMIN_USERNAMES.split(",") if u.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()


settings = get_settings()
