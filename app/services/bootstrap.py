"""Startup bootstrap: built-in administrator, forced admins, optional demo profiles."""

import logging
from typing import TYPE_CHECKING

from app.core.security import hash_password
from app.models import Account, BotProfile
from app.services.record_store import RecordStore

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

# Demo profiles seeded into an empty store when SEED_SAMPLE_PROFILES is on.
SAMPLE_PROFILES: tuple[dict[str, object], ...] = (
    {
        "username": "JohnDoe",
        "apiKey": "poppy-api-key-1",
        "model": "poppy-v1",
        "temperature": "0.7",
        "maxTokens": 1024,
        "isActive": True,
        "role": "Admin",
        "canUseAsk": True,
        "canUseSummary": True,
    },
    {
        "username": "AliceSmith",
        "apiKey": "poppy-api-key-2",
        "model": "poppy-v2",
        "temperature": "0.5",
        "maxTokens": 2048,
        "isActive": True,
        "role": "Moderator",
        "canUseAsk": True,
        "canUseSummary": True,
    },
    {
        "username": "BobJohnson",
        "apiKey": "poppy-api-key-3",
        "model": "poppy-v1",
        "temperature": "0.8",
        "maxTokens": 512,
        "isActive": False,
        "role": "User",
        "canUseAsk": True,
        "canUseSummary": False,
    },
)


def ensure_admin_account(store: RecordStore, settings: "Settings") -> Account | None:
    """
    Create the built-in administrator if no administrator exists yet.

    Idempotent: returns None and changes nothing when any admin account
    exists, or when ADMIN_USERNAME is already taken by a non-admin account.
    """
    if store.accounts.get_admins():
        return None
    existing = store.accounts.get_by_username(settings.ADMIN_USERNAME)
    if existing is not None:
        logger.warning(
            "No administrator exists and ADMIN_USERNAME belongs to a non-admin account; "
            "add it to FORCE_ADMIN_USERNAMES to promote it.",
            extra={"account_id": existing.id},
        )
        return None
    account = store.accounts.create(
        {
            "username": settings.ADMIN_USERNAME,
            "password": hash_password(settings.ADMIN_PASSWORD.get_secret_value()),
            "isAdmin": True,
        }
    )
    logger.info("Created built-in administrator", extra={"account_id": account.id})
    return account


def apply_forced_admins(store: RecordStore, usernames: list[str]) -> list[Account]:
    """Promote each listed existing account to admin. Unknown usernames are logged and skipped."""
    promoted: list[Account] = []
    for username in usernames:
        account = store.accounts.get_by_username(username)
        if account is None:
            logger.warning("Forced admin account not found", extra={"username": username})
            continue
        if account.is_admin:
            continue
        updated = store.accounts.update(account.id, {"isAdmin": True})
        if updated is not None:
            promoted.append(updated)
            logger.info("Promoted account to admin", extra={"account_id": updated.id})
    return promoted


def seed_sample_profiles(store: RecordStore) -> list[BotProfile]:
    """Create the demo bot profiles, only if the store holds no profiles at all."""
    if store.bot_profiles.get_all():
        return []
    return [store.bot_profiles.create(profile) for profile in SAMPLE_PROFILES]


def run_bootstrap(store: RecordStore, settings: "Settings") -> None:
    """Run every startup step in order. Safe to run on every process start."""
    apply_forced_admins(store, settings.force_admin_usernames)
    ensure_admin_account(store, settings)
    if settings.SEED_SAMPLE_PROFILES:
        seeded = seed_sample_profiles(store)
        if seeded:
            logger.info("Seeded sample bot profiles", extra={"profile_count": len(seeded)})
