"""
Account directory operations.

An account is two rows written together, exactly once:

    EMAIL#{email} / USER     email index (email -> user id)
    USER#{user_id} / PROFILE profile (name, check-in counter, billing reference)

Neither row is ever deleted here.
"""

import uuid

from ..constants import (
    ATTR_BILLING_REFERENCE,
    ATTR_CHECKIN_COUNT,
    ATTR_PK,
    ATTR_SK,
    ATTR_TYPE,
    MAX_DISPLAY_NAME_LENGTH,
    SK_PROFILE,
    SK_USER,
)
from ..exceptions import (
    ConditionFailedError,
    ConflictError,
    NotFoundError,
    TransactionCanceledError,
    UnauthorizedError,
    ValidationError,
)
from ..logging_config import get_logger
from ..models import Account, ItemType, UserProfile
from ..utils import email_pk, normalize_email, user_pk
from .conditions import ItemExists, ItemNotExists
from .storage import StorageBackend, TransactPut, UpdateSpec
from .token_operations import verify_session_token

logger = get_logger(__name__)


def generate_user_id() -> str:
    return str(uuid.uuid4())


def derive_display_name(email: str, name: str | None = None) -> str:
    """
    Display name persisted for a new account.

    A supplied name is used when it is 1..256 characters after trimming;
    otherwise the local part of the email becomes the name.
    """
    name = (name or "").strip()
    if 0 < len(name) <= MAX_DISPLAY_NAME_LENGTH:
        return name
    return email.split("@", 1)[0]


def _validate_display_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name or len(name) > MAX_DISPLAY_NAME_LENGTH:
        raise ValidationError(f"Name must be 1 to {MAX_DISPLAY_NAME_LENGTH} characters")
    return name


def get_account_by_email(
    client: StorageBackend, email: str, consistent_read: bool = False
) -> Account | None:
    """Look up the email index row."""
    pk = email_pk(normalize_email(email))
    item = client.get_item(pk, SK_USER, consistent_read=consistent_read)
    return Account.from_item(item) if item else None


def get_profile(
    client: StorageBackend, user_id: str, consistent_read: bool = False
) -> UserProfile | None:
    """Look up a user profile row."""
    item = client.get_item(user_pk(user_id), SK_PROFILE, consistent_read=consistent_read)
    return UserProfile.from_item(item) if item else None


def require_profile(client: StorageBackend, user_id: str) -> UserProfile:
    """
    Profile for an account that is known to exist.

    Raises:
        NotFoundError: If the profile row is missing (it is not recreated)
    """
    profile = get_profile(client, user_id)
    if profile is None:
        logger.error(f"Profile missing for user {user_id}")
        raise NotFoundError("User profile not found")
    return profile


def create_account(
    client: StorageBackend, email: str, name: str | None = None
) -> tuple[Account, UserProfile]:
    """
    Create the email index and profile in one transaction.

    Args:
        client: Storage backend
        email: Verified email address
        name: Requested display name (falls back to the email local part)

    Returns:
        Tuple of (account, profile)

    Raises:
        ConflictError: If either row already exists (concurrent registration)
    """
    email = normalize_email(email)
    user_id = generate_user_id()
    account = Account(user_id=user_id, email=email)
    profile = UserProfile(user_id=user_id, name=derive_display_name(email, name))

    email_item = {
        ATTR_PK: email_pk(email),
        ATTR_SK: SK_USER,
        ATTR_TYPE: ItemType.USER_EMAIL.value,
        "user_id": user_id,
        "email": email,
    }
    profile_item = {
        ATTR_PK: user_pk(user_id),
        ATTR_SK: SK_PROFILE,
        ATTR_TYPE: ItemType.USER_PROFILE.value,
        "user_id": user_id,
        "name": profile.name,
        ATTR_CHECKIN_COUNT: 0,
    }

    try:
        client.transact_write(
            [
                TransactPut(email_item, condition=ItemNotExists()),
                TransactPut(profile_item, condition=ItemNotExists()),
            ]
        )
    except TransactionCanceledError:
        logger.info(f"Account for {email} was created concurrently")
        raise ConflictError("User already exists")

    logger.info(f"Created account {user_id} for {email}")
    return account, profile


def resolve_or_create_account(
    client: StorageBackend, email: str, name: str | None = None
) -> tuple[Account, UserProfile, bool]:
    """
    Return the account for an email, creating it on first sign-in.

    If creation loses a race with a concurrent registration, the account is
    re-read and the winner is returned; creation is not retried.

    Returns:
        Tuple of (account, profile, created)

    Raises:
        NotFoundError: If the email index exists but its profile does not
        ConflictError: If creation was rejected and no account can be resolved
    """
    email = normalize_email(email)
    account = get_account_by_email(client, email)
    if account is not None:
        return account, require_profile(client, account.user_id), False

    try:
        account, profile = create_account(client, email, name)
        return account, profile, True
    except ConflictError:
        # Strong reads: the winning rows were committed moments ago
        account = get_account_by_email(client, email, consistent_read=True)
        if account is None:
            raise
        profile = get_profile(client, account.user_id, consistent_read=True)
        if profile is None:
            raise
        return account, profile, False


def update_display_name(client: StorageBackend, user_id: str, name: str) -> UserProfile:
    """
    Change a profile's display name.

    Raises:
        ValidationError: If the name is empty or too long
        NotFoundError: If the profile does not exist
    """
    name = _validate_display_name(name)
    try:
        item = client.update_item(
            user_pk(user_id),
            SK_PROFILE,
            UpdateSpec(set_values={"name": name}),
            condition=ItemExists(),
            return_values=True,
        )
    except ConditionFailedError:
        raise NotFoundError("User profile not found")
    return UserProfile.from_item(item or {})


def attach_billing_reference(client: StorageBackend, user_id: str, reference: str) -> None:
    """
    Store the external billing reference on a profile (overwrites).

    Raises:
        ValidationError: If the reference is empty
        NotFoundError: If the profile does not exist
    """
    reference = (reference or "").strip()
    if not reference:
        raise ValidationError("Billing reference cannot be empty")
    try:
        client.update_item(
            user_pk(user_id),
            SK_PROFILE,
            UpdateSpec(set_values={ATTR_BILLING_REFERENCE: reference}),
            condition=ItemExists(),
        )
    except ConditionFailedError:
        raise NotFoundError("User profile not found")


def authenticate_session(
    client: StorageBackend, token: str | None, *, secret: str | None
) -> Account:
    """
    Resolve the account behind a session token.

    The token's email must still map to the token's user id.

    Raises:
        UnauthorizedError: If the token is invalid or does not match the directory
    """
    claims = verify_session_token(token, secret=secret)
    if claims is None:
        raise UnauthorizedError()
    try:
        account = get_account_by_email(client, claims.email)
    except ValidationError:
        raise UnauthorizedError()
    if account is None or account.user_id != claims.user_id:
        raise UnauthorizedError()
    return account
