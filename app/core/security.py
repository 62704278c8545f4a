"""Password hashing and JWT creation/verification for dashboard authentication."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import bcrypt
import jwt

from app.core.config import settings

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12
# bcrypt only looks at the first 72 bytes.
BCRYPT_MAX_BYTES = 72

# Min/max lengths for login input validation.
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 1
PASSWORD_MAX_LEN = 128

REQUIRED_CLAIMS = ["sub", "usr", "exp", "iat"]


@dataclass(frozen=True)
class TokenSubject:
    """The account a valid token was issued to."""

    account_id: int
    username: str


def _password_bytes(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage in an Account record."""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(plain_password), salt).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash. Non-hash values never match."""
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def create_access_token(account_id: int, username: str) -> str:
    """
    Issue a JWT for an account. ``sub`` is the account id and ``usr`` the
    username it had at login; both must still match when the token is used.
    """
    now = datetime.now(UTC)
    payload = {
        "sub": str(account_id),
        "usr": username,
        "exp": now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
        "iat": now,
    }
    return jwt.encode(
        payload,
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str) -> TokenSubject:
    """Raises jwt.PyJWTError on an invalid, expired or incomplete token."""
    payload = jwt.decode(
        token,
        settings.JWT_SECRET.get_secret_value(),
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": REQUIRED_CLAIMS},
    )
    try:
        account_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise jwt.InvalidTokenError("sub is not an account id") from e
    username = payload["usr"]
    if not isinstance(username, str) or not username:
        raise jwt.InvalidTokenError("usr is not a username")
    return TokenSubject(account_id=account_id, username=username)
