"""Bot profile CRUD for the admin dashboard, keyed by numeric id."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.v1.auth import require_admin
from app.core.storage import get_store
from app.models import BotProfile
from app.schemas.auth import CurrentUser
from app.schemas.bot_profile import BotProfileCreate, BotProfileUpdate, DeleteResponse
from app.services.record_store import ConflictError, RecordStore, StorageError

logger = logging.getLogger(__name__)
router = APIRouter()

USERNAME_TAKEN = "A user with this username already exists"


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")


def _storage_failure(e: StorageError) -> HTTPException:
    logger.error("Bot profile storage failure", extra={"reason": e.message[:500]})
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=e.message,
    )


@router.get("", response_model=list[BotProfile])
def list_bot_users(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    store: Annotated[RecordStore, Depends(get_store)],
) -> list[BotProfile]:
    """Return every bot profile, sorted by id, with all defaulted fields present."""
    return sorted(store.bot_profiles.get_all(), key=lambda p: p.id)


@router.get("/{profile_id}", response_model=BotProfile)
def get_bot_user(
    profile_id: int,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    store: Annotated[RecordStore, Depends(get_store)],
) -> BotProfile:
    profile = store.bot_profiles.get_by_id(profile_id)
    if profile is None:
        raise _not_found()
    return profile


@router.post("", response_model=BotProfile, status_code=status.HTTP_201_CREATED)
def create_bot_user(
    body: BotProfileCreate,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    store: Annotated[RecordStore, Depends(get_store)],
) -> BotProfile:
    """
    Create a bot profile. Omitted optional fields get their defaults
    (model poppy-v1, temperature 0.7, maxTokens 1024, active, role User, both commands allowed).
    """
    if store.bot_profiles.get_by_username(body.username) is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=USERNAME_TAKEN)
    try:
        return store.bot_profiles.create(body.to_store_input())
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=USERNAME_TAKEN) from e
    except StorageError as e:
        raise _storage_failure(e) from e


@router.put("/{profile_id}", response_model=BotProfile)
def update_bot_user(
    profile_id: int,
    body: BotProfileUpdate,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    store: Annotated[RecordStore, Depends(get_store)],
) -> BotProfile:
    """Partially update a profile. Changing username moves the record to the new name."""
    if body.username is not None:
        existing = store.bot_profiles.get_by_username(body.username)
        if existing is not None and existing.id != profile_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=USERNAME_TAKEN)
    try:
        updated = store.bot_profiles.update(profile_id, body.to_store_input())
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=USERNAME_TAKEN) from e
    except StorageError as e:
        raise _storage_failure(e) from e
    if updated is None:
        raise _not_found()
    return updated


@router.delete("/{profile_id}", response_model=DeleteResponse)
def delete_bot_user(
    profile_id: int,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    store: Annotated[RecordStore, Depends(get_store)],
) -> DeleteResponse:
    try:
        removed = store.bot_profiles.delete(profile_id)
    except StorageError as e:
        raise _storage_failure(e) from e
    if not removed:
        raise _not_found()
    return DeleteResponse(success=True, message="User deleted successfully")
