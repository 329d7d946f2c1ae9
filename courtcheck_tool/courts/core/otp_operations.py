"""
One-time code operations.

A challenge row (EMAIL#{email} / OTP) moves through:

    absent -> active (issue) -> active (resend after cooldown)
    active -> absent (verified | expired | locked out)

Resend throttling is enforced by the precondition on the issuing write, never
by reading first. Verification reads with strong consistency so a code that
was just consumed cannot be accepted twice.
"""

import hashlib
import hmac
import secrets
import time
from typing import Any

from ..config import check_bounds, require_setting
from ..constants import (
    ATTR_ATTEMPT_COUNT,
    ATTR_CREATED_AT,
    ATTR_EXPIRES_AT,
    ATTR_LAST_SENT_AT,
    ATTR_OTP_HASH,
    ATTR_SEND_COUNT,
    ATTR_TTL,
    ATTR_TYPE,
    OTP_CODE_LENGTH,
    OTP_MAX_ATTEMPTS_BOUNDS,
    OTP_MIN_RESEND_BOUNDS,
    OTP_TTL_BOUNDS,
    SK_OTP,
)
from ..exceptions import (
    ConditionFailedError,
    EmailDispatchError,
    InvalidOrExpiredError,
    RateLimitedError,
    StorageError,
)
from ..logging_config import get_logger
from ..models import Challenge, ItemType
from ..utils import email_pk, iso_timestamp, normalize_email, validate_code
from .conditions import AnyOf, AttributeAtMost, AttributeMissing, ItemExists
from .email_dispatch import EmailDispatcher, build_otp_email
from .storage import StorageBackend, UpdateSpec

logger = get_logger(__name__)


def generate_code() -> str:
    """Uniformly random six digit code, leading zeros preserved."""
    return str(secrets.randbelow(10**OTP_CODE_LENGTH)).zfill(OTP_CODE_LENGTH)


def hash_code(secret: str, email: str, code: str) -> str:
    """
    Keyed hash of a code.

    The email is part of the message so a leaked hash cannot be replayed
    against another address.
    """
    message = f"{email.strip().lower()}:{code}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def codes_match(expected_hex: str, actual_hex: str) -> bool:
    """Constant-time comparison of two hex digests."""
    try:
        expected = bytes.fromhex(expected_hex)
        actual = bytes.fromhex(actual_hex)
    except (TypeError, ValueError):
        return False
    if len(expected) != len(actual):
        return False
    return hmac.compare_digest(expected, actual)


def get_challenge(client: StorageBackend, email: str) -> Challenge | None:
    """Strongly consistent read of the active challenge for an email."""
    item = client.get_item(email_pk(email), SK_OTP, consistent_read=True)
    if not item or not item.get(ATTR_OTP_HASH) or not item.get(ATTR_EXPIRES_AT):
        return None
    return Challenge.from_item(email, item)


def issue_challenge(
    client: StorageBackend,
    dispatcher: EmailDispatcher,
    email: str,
    *,
    secret: str | None,
    ttl_seconds: int,
    min_resend_seconds: int,
    now: int | None = None,
) -> dict[str, Any]:
    """
    Issue (or re-issue) a one-time code and email it.

    Args:
        client: Storage backend
        dispatcher: Email dispatcher
        email: Recipient email address
        secret: Server-held hashing secret (OTP_SECRET)
        ttl_seconds: Code lifetime, 60..3600
        min_resend_seconds: Minimum interval between sends, 0..600
        now: Current epoch seconds (defaults to the current time)

    Returns:
        Dictionary with email, expires_at and send_count

    Raises:
        ValidationError: If the email is malformed
        ConfigurationError: If the secret is missing or a tunable is out of bounds
        RateLimitedError: If the previous code was sent too recently
        EmailDispatchError: If the email could not be sent (the challenge stays stored)
    """
    email = normalize_email(email)
    key = require_setting("OTP_SECRET", secret)
    ttl_seconds = check_bounds("OTP_TTL_SECONDS", ttl_seconds, *OTP_TTL_BOUNDS)
    min_resend_seconds = check_bounds(
        "OTP_MIN_RESEND_SECONDS", min_resend_seconds, *OTP_MIN_RESEND_BOUNDS
    )

    now = int(now if now is not None else time.time())
    expires_at = now + ttl_seconds
    code = generate_code()

    changes = UpdateSpec(
        set_values={
            ATTR_TYPE: ItemType.OTP.value,
            ATTR_OTP_HASH: hash_code(key, email, code),
            ATTR_EXPIRES_AT: expires_at,
            ATTR_LAST_SENT_AT: now,
            ATTR_CREATED_AT: iso_timestamp(now),
            ATTR_ATTEMPT_COUNT: 0,
            ATTR_TTL: expires_at,
        },
        increments={ATTR_SEND_COUNT: 1},
    )
    # No row yet, cooldown elapsed, or previous code already expired
    condition = AnyOf(
        AttributeMissing(ATTR_LAST_SENT_AT),
        AttributeAtMost(ATTR_LAST_SENT_AT, now - min_resend_seconds),
        AttributeAtMost(ATTR_EXPIRES_AT, now),
    )

    try:
        item = client.update_item(
            email_pk(email), SK_OTP, changes, condition=condition, return_values=True
        )
    except ConditionFailedError:
        logger.info(f"Code request rate limited for {email}")
        raise RateLimitedError("Please wait before requesting another code")

    send_count = int((item or {}).get(ATTR_SEND_COUNT, 1))
    logger.info(f"Issued code for {email} (send #{send_count}, expires at {expires_at})")

    subject, body = build_otp_email(code, ttl_seconds)
    try:
        dispatcher.send(email, subject, body)
    except EmailDispatchError:
        logger.warning(f"Code for {email} stored but email dispatch failed")
        raise

    return {"email": email, "expires_at": expires_at, "send_count": send_count}


def verify_challenge(
    client: StorageBackend,
    email: str,
    code: str,
    *,
    secret: str | None,
    max_attempts: int,
    now: int | None = None,
) -> None:
    """
    Verify and consume a one-time code.

    Success deletes the challenge, so a code verifies at most once. A wrong
    code increments the attempt counter and deletes the challenge once
    ``max_attempts`` is reached. Wrong, expired and locked-out codes all fail
    the same way.

    Raises:
        ValidationError: If the email or code is malformed
        ConfigurationError: If the secret is missing or max_attempts is out of bounds
        InvalidOrExpiredError: If the code does not verify for any reason
    """
    email = normalize_email(email)
    code = validate_code(code)
    key = require_setting("OTP_SECRET", secret)
    max_attempts = check_bounds("OTP_MAX_ATTEMPTS", max_attempts, *OTP_MAX_ATTEMPTS_BOUNDS)
    now = int(now if now is not None else time.time())

    challenge = get_challenge(client, email)
    if challenge is None:
        raise InvalidOrExpiredError()

    if challenge.expires_at <= now:
        _discard_challenge(client, email, "expired")
        raise InvalidOrExpiredError()

    if codes_match(challenge.otp_hash, hash_code(key, email, code)):
        _discard_challenge(client, email, "verified")
        return

    try:
        item = client.update_item(
            email_pk(email),
            SK_OTP,
            UpdateSpec(increments={ATTR_ATTEMPT_COUNT: 1}),
            condition=ItemExists(),
            return_values=True,
        )
    except ConditionFailedError:
        # Consumed or deleted concurrently
        raise InvalidOrExpiredError()

    attempts = int((item or {}).get(ATTR_ATTEMPT_COUNT, 0))
    if attempts >= max_attempts:
        _discard_challenge(client, email, "locked out")
    else:
        logger.info(f"Wrong code for {email} (attempt {attempts}/{max_attempts})")
    raise InvalidOrExpiredError()


def _discard_challenge(client: StorageBackend, email: str, reason: str) -> None:
    """Best-effort delete; the row is already logically consumed."""
    try:
        client.delete_item(email_pk(email), SK_OTP)
        logger.info(f"Challenge for {email} removed ({reason})")
    except StorageError as e:
        logger.warning(f"Failed to remove challenge for {email} ({reason}): {e}")
