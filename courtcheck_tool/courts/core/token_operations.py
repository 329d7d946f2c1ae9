"""
Session token operations.

Tokens are HS256 JWTs carrying ``userId`` and ``email`` with a seven day
lifetime. Verification never raises: any structural, signature or expiry
problem yields None, so callers cannot tell failure modes apart.
"""

import time
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from ..config import require_setting
from ..constants import SESSION_COOKIE_NAME, SESSION_TOKEN_ALGORITHM, SESSION_TOKEN_TTL
from ..models import SessionClaims


def create_session_token(
    user_id: str, email: str, *, secret: str | None, now: float | None = None
) -> str:
    """
    Mint a signed session token.

    Args:
        user_id: Stable user identifier
        email: Verified email address
        secret: HMAC signing secret (JWT_SECRET)
        now: Issue time in epoch seconds (defaults to the current time)

    Returns:
        Encoded JWT string

    Raises:
        ConfigurationError: If the secret is not configured
    """
    key = require_setting("JWT_SECRET", secret)
    issued_at = datetime.fromtimestamp(now if now is not None else time.time(), tz=UTC)
    payload = {
        "userId": user_id,
        "email": email,
        "iat": issued_at,
        "exp": issued_at + timedelta(seconds=SESSION_TOKEN_TTL),
    }
    return jwt.encode(payload, key, algorithm=SESSION_TOKEN_ALGORITHM)


def verify_session_token(token: str | None, *, secret: str | None) -> SessionClaims | None:
    """
    Validate a session token and project out its identity.

    Returns:
        SessionClaims, or None if the token is missing, malformed, forged or expired

    Raises:
        ConfigurationError: If the secret is not configured
    """
    key = require_setting("JWT_SECRET", secret)
    if not token:
        return None
    try:
        payload = jwt.decode(
            token,
            key,
            algorithms=[SESSION_TOKEN_ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.PyJWTError:
        return None

    user_id = payload.get("userId")
    email = payload.get("email")
    if not isinstance(user_id, str) or not user_id or not isinstance(email, str) or not email:
        return None
    return SessionClaims(user_id=user_id, email=email)


def session_cookie(token: str, *, production: bool = False) -> dict[str, Any]:
    """Cookie attributes for carrying a session token."""
    return {
        "name": SESSION_COOKIE_NAME,
        "value": token,
        "httponly": True,
        "secure": production,
        "samesite": "lax",
        "max_age": SESSION_TOKEN_TTL,
        "path": "/",
    }
