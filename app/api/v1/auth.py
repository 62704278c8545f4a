"""JWT login and auth dependencies (get_current_user, require_admin)."""

import logging
from typing import Annotated

import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.security import create_access_token, decode_access_token, verify_password
from app.core.storage import get_store
from app.schemas.auth import CurrentUser, LoginRequest, TokenResponse, UsersListResponse
from app.services.record_store import RecordStore

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=False)


@router.post("", response_model=TokenResponse)
def login(
    body: LoginRequest,
    store: Annotated[RecordStore, Depends(get_store)],
) -> TokenResponse:
    """
    Authenticate with username and password; returns a JWT access token and the account.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    account = store.accounts.get_by_username(body.username)
    if account is None or not verify_password(body.password, account.password):
        logger.info("Login rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )
    token = create_access_token(account.id, account.username)
    return TokenResponse(
        access_token=token,
        token_type="bearer",
        user=CurrentUser.from_account(account),
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    store: Annotated[RecordStore, Depends(get_store)],
) -> CurrentUser:
    """Dependency: require valid Bearer JWT and return the current account. Raises 401 if missing or invalid."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        subject = decode_access_token(credentials.credentials)
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    # Admin status comes from the stored account. A reset data directory can
    # hand the same id to another account, so the username must match too.
    account = store.accounts.get_by_id(subject.account_id)
    if account is None or account.username != subject.username:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return CurrentUser.from_account(account)


def require_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency: require an authenticated administrator account. Raises 403 otherwise."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


@router.get("/status", response_model=CurrentUser)
def get_status(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Return the logged-in account (id, username, isAdmin)."""
    return current_user


@router.get("/users", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    store: Annotated[RecordStore, Depends(get_store)],
) -> UsersListResponse:
    """List all dashboard accounts without passwords (admin only)."""
    accounts = sorted(store.accounts.get_all(), key=lambda a: a.id)
    return UsersListResponse(users=[CurrentUser.from_account(a) for a in accounts])
