"""Password hashing (bcrypt) and access tokens (JWT)."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
import jwt

from taste_predictor.accounts.exceptions import InvalidTokenError
from taste_predictor.utils.config import config


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password with a fresh bcrypt salt."""
    salt = bcrypt.gensalt(rounds=rounds or config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash.

    Returns False instead of raising for malformed hashes and for passwords
    bcrypt refuses (longer than 72 bytes).
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(
    subject: str,
    email: str,
    expires_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
) -> str:
    """Issue a signed JWT for an account.

    Args:
        subject: Account id, stored in the `sub` claim.
        email: Account email, informational only.
        expires_minutes: Token lifetime. Default: config.JWT_EXPIRES_MINUTES.
        now: Issue time override (tests).
    """
    issued_at = now or datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_minutes or config.JWT_EXPIRES_MINUTES)
    payload = {
        "sub": subject,
        "email": email,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify a JWT and return its claims.

    Raises:
        InvalidTokenError: If the token is expired, tampered with, or lacks a subject.
    """
    try:
        claims = jwt.decode(
            token,
            config.JWT_SECRET,
            algorithms=[config.JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise InvalidTokenError("Token has expired") from e
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError(f"Invalid token: {e}") from e

    if not claims.get("sub"):
        raise InvalidTokenError("Token has no subject")
    return claims
