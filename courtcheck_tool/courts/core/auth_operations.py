"""
Sign-in flow: request a code, then trade a valid code for a session.
"""

from dataclasses import dataclass
from typing import Any

from ..config import require_setting
from ..utils import normalize_email
from .account_operations import resolve_or_create_account
from .email_dispatch import EmailDispatcher
from .otp_operations import issue_challenge, verify_challenge
from .storage import StorageBackend
from .token_operations import create_session_token, session_cookie


@dataclass
class SignInResult:
    user: dict[str, Any]
    token: str
    created: bool
    cookie: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"user": self.user, "token": self.token, "created": self.created}


def request_sign_in(
    client: StorageBackend,
    dispatcher: EmailDispatcher,
    email: str,
    *,
    otp_secret: str | None,
    ttl_seconds: int,
    min_resend_seconds: int,
    now: int | None = None,
) -> dict[str, Any]:
    """Send a sign-in code. See issue_challenge for errors."""
    return issue_challenge(
        client,
        dispatcher,
        email,
        secret=otp_secret,
        ttl_seconds=ttl_seconds,
        min_resend_seconds=min_resend_seconds,
        now=now,
    )


def complete_sign_in(
    client: StorageBackend,
    email: str,
    code: str,
    name: str | None = None,
    *,
    otp_secret: str | None,
    token_secret: str | None,
    max_attempts: int,
    production: bool = False,
    now: int | None = None,
) -> SignInResult:
    """
    Verify a code, resolve or register the account, and mint a session token.

    Raises:
        InvalidOrExpiredError: If the code does not verify
        NotFoundError: If an existing account has lost its profile
        ConflictError: If registration raced and no account could be resolved
        ConfigurationError: If a secret is missing (checked before the code is consumed)
    """
    email = normalize_email(email)
    require_setting("JWT_SECRET", token_secret)
    verify_challenge(client, email, code, secret=otp_secret, max_attempts=max_attempts, now=now)

    account, profile, created = resolve_or_create_account(client, email, name)
    token = create_session_token(account.user_id, account.email, secret=token_secret)
    return SignInResult(
        user={"userId": account.user_id, "email": account.email, "name": profile.name},
        token=token,
        created=created,
        cookie=session_cookie(token, production=production),
    )
