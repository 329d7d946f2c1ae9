"""
Check-in operations.

A check-in is accepted only if the caller is strictly within 0.5 miles of the
court and has not checked into the same court in the last two hours. The
accepted check-in is committed as one transaction:

    put     RESOURCE#{id} / CHECKIN#{created_at}#{checkin_id}   (must not exist)
    update  RESOURCE / RESOURCE#{id}  status, last_updated_at   (must exist)
    update  USER#{user_id} / PROFILE  checkin_count += 1        (must exist)

so the court status is never visible without its check-in entry.
"""

import math
import time
import uuid

from ..constants import (
    ATTR_CHECKIN_COUNT,
    ATTR_LAST_UPDATED_AT,
    ATTR_PK,
    ATTR_SK,
    ATTR_STATUS,
    ATTR_TYPE,
    CHECKIN_COOLDOWN_SECONDS,
    CHECKIN_DISTANCE_LIMIT_MILES,
    PK_RESOURCES,
    SK_PROFILE,
)
from ..exceptions import (
    ConflictError,
    CooldownActiveError,
    InvalidResourceError,
    NotFoundError,
    TooFarError,
    TransactionCanceledError,
)
from ..logging_config import get_logger
from ..models import Checkin, CourtStatus, ItemType
from ..utils import (
    checkin_pk,
    checkin_sk,
    iso_timestamp,
    parse_iso_timestamp,
    parse_status,
    resource_sk,
    user_pk,
    validate_coordinates,
    validate_photo_url,
)
from .account_operations import require_profile
from .conditions import ItemExists, ItemNotExists
from .distance import DistanceProvider
from .resource_operations import get_resource, list_checkins
from .storage import StorageBackend, TransactPut, TransactUpdate, UpdateSpec

logger = get_logger(__name__)

# Transaction operation order, used to map cancellation reasons
_OP_CHECKIN, _OP_RESOURCE, _OP_PROFILE = range(3)


def generate_checkin_id() -> str:
    return str(uuid.uuid4())


def get_latest_checkin(client: StorageBackend, resource_id: str, user_id: str) -> Checkin | None:
    """
    Most recent check-in by a user on a court.

    Picks the maximum recorded ``created_at`` rather than trusting scan order.
    """
    own = [c for c in list_checkins(client, resource_id) if c.user_id == user_id]
    if not own:
        return None
    return max(own, key=lambda c: parse_iso_timestamp(c.created_at))


def create_checkin(
    client: StorageBackend,
    distance_provider: DistanceProvider,
    *,
    user_id: str,
    resource_id: str,
    status: str | CourtStatus,
    latitude: float,
    longitude: float,
    photo_url: str | None = None,
    now: float | None = None,
) -> Checkin:
    """
    Record a check-in and update the court's live status.

    Args:
        client: Storage backend
        distance_provider: Distance lookup between caller and court
        user_id: Authenticated user
        resource_id: Court id
        status: Reported crowd level
        latitude: Caller latitude
        longitude: Caller longitude
        photo_url: Optional photo reference
        now: Current epoch seconds (defaults to the current time)

    Returns:
        The committed check-in entry

    Raises:
        ValidationError: If status, coordinates or photo URL are malformed
        NotFoundError: If the court or the user's profile does not exist
        InvalidResourceError: If the court has no coordinates
        CooldownActiveError: If the user checked in here less than two hours ago
        DistanceLookupError: If the distance could not be determined
        TooFarError: If the caller is 0.5 miles or more from the court
        ConflictError: If the transaction was rejected for another reason
    """
    court_status = parse_status(status)
    lat, lng = validate_coordinates(latitude, longitude)
    photo_url = validate_photo_url(photo_url)
    now = now if now is not None else time.time()

    resource = get_resource(client, resource_id)
    if resource is None:
        raise NotFoundError("Court not found")
    if not resource.has_coordinates:
        raise InvalidResourceError("Court does not have valid coordinates")

    profile = require_profile(client, user_id)

    latest = get_latest_checkin(client, resource_id, user_id)
    if latest is not None:
        elapsed = now - parse_iso_timestamp(latest.created_at)
        if elapsed < CHECKIN_COOLDOWN_SECONDS:
            retry_after = math.ceil(CHECKIN_COOLDOWN_SECONDS - elapsed)
            logger.info(f"Check-in cooldown active for {user_id} on {resource_id}")
            raise CooldownActiveError(
                "Check-in cooldown active for this court", retry_after_seconds=retry_after
            )

    miles = distance_provider.distance(lat, lng, resource.lat, resource.long)  # type: ignore[arg-type]
    if miles >= CHECKIN_DISTANCE_LIMIT_MILES:
        logger.info(f"Check-in rejected for {user_id} on {resource_id}: {miles:.2f} miles away")
        raise TooFarError(
            f"You must be within {CHECKIN_DISTANCE_LIMIT_MILES} miles of the court to check in",
            distance_miles=miles,
        )

    checkin = Checkin(
        checkin_id=generate_checkin_id(),
        resource_id=resource_id,
        user_id=user_id,
        status=court_status,
        created_at=iso_timestamp(now),
        user_name=profile.name,
        photo_url=photo_url,
    )
    _commit_checkin(client, checkin)
    logger.info(f"Check-in {checkin.checkin_id} committed for {user_id} on {resource_id}")
    return checkin


def _commit_checkin(client: StorageBackend, checkin: Checkin) -> None:
    """Write entry, court status and user counter atomically."""
    entry = {
        ATTR_PK: checkin_pk(checkin.resource_id),
        ATTR_SK: checkin_sk(checkin.created_at, checkin.checkin_id),
        ATTR_TYPE: ItemType.CHECKIN.value,
        **{k: v for k, v in checkin.to_dict().items() if v is not None},
    }

    try:
        client.transact_write(
            [
                TransactPut(entry, condition=ItemNotExists()),
                TransactUpdate(
                    PK_RESOURCES,
                    resource_sk(checkin.resource_id),
                    UpdateSpec(
                        set_values={
                            ATTR_STATUS: checkin.status.value,
                            ATTR_LAST_UPDATED_AT: checkin.created_at,
                        }
                    ),
                    condition=ItemExists(),
                ),
                TransactUpdate(
                    user_pk(checkin.user_id),
                    SK_PROFILE,
                    UpdateSpec(increments={ATTR_CHECKIN_COUNT: 1}),
                    condition=ItemExists(),
                ),
            ]
        )
    except TransactionCanceledError as e:
        failed = e.condition_failed_indexes()
        logger.warning(f"Check-in transaction canceled, failed operations: {failed}")
        if _OP_RESOURCE in failed:
            raise NotFoundError("Court not found")
        if _OP_PROFILE in failed:
            raise NotFoundError("User profile not found")
        if _OP_CHECKIN in failed:
            raise ConflictError("Duplicate check-in")
        raise ConflictError("Check-in could not be recorded, please retry")
