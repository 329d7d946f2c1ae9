"""
Type models for courtcheck entities.

Each model knows how to read itself from a storage row; rows carry a ``type``
discriminator so several entities can share one table.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


class ItemType(Enum):
    """Discriminator values stored on every row."""

    OTP = "OTP"
    USER_EMAIL = "USER_EMAIL"
    USER_PROFILE = "USER_PROFILE"
    RESOURCE = "RESOURCE"
    CHECKIN = "CHECKIN"


class CourtStatus(Enum):
    """Live crowd level reported for a court."""

    EMPTY = "EMPTY"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    CROWDED = "CROWDED"


@dataclass
class Challenge:
    """Stored one-time code for an email. The plaintext code is never kept."""

    email: str
    otp_hash: str
    expires_at: int
    last_sent_at: int
    attempt_count: int = 0
    send_count: int = 0

    @classmethod
    def from_item(cls, email: str, item: dict[str, Any]) -> "Challenge":
        return cls(
            email=email,
            otp_hash=item["otp_hash"],
            expires_at=int(item["expires_at"]),
            last_sent_at=int(item.get("last_sent_at", 0)),
            attempt_count=int(item.get("attempt_count", 0)),
            send_count=int(item.get("send_count", 0)),
        )


@dataclass
class Account:
    """Email index entry mapping a verified email to its user id."""

    user_id: str
    email: str

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "Account":
        return cls(user_id=item["user_id"], email=item["email"])


@dataclass
class UserProfile:
    """Profile owned by the account directory."""

    user_id: str
    name: str
    checkin_count: int = 0
    billing_reference: str | None = None

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "UserProfile":
        return cls(
            user_id=item["user_id"],
            name=item["name"],
            checkin_count=int(item.get("checkin_count", 0)),
            billing_reference=item.get("billing_reference"),
        )


@dataclass
class Resource:
    """A court that users check into."""

    id: str
    name: str
    address_line: str
    status: CourtStatus
    last_updated_at: str
    lat: float | None = None
    long: float | None = None
    court_count: int | None = None
    photo_url: str | None = None

    @property
    def has_coordinates(self) -> bool:
        return isinstance(self.lat, (int, float)) and isinstance(self.long, (int, float))

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "Resource":
        court_count = item.get("court_count")
        return cls(
            id=item["id"],
            name=item["name"],
            address_line=item.get("address_line", ""),
            status=CourtStatus(item["status"]),
            last_updated_at=item["last_updated_at"],
            lat=item.get("lat"),
            long=item.get("long"),
            court_count=int(court_count) if court_count is not None else None,
            photo_url=item.get("photo_url"),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass
class Checkin:
    """Immutable check-in log entry."""

    checkin_id: str
    resource_id: str
    user_id: str
    status: CourtStatus
    created_at: str
    user_name: str | None = None
    photo_url: str | None = None

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "Checkin":
        return cls(
            checkin_id=item["checkin_id"],
            resource_id=item["resource_id"],
            user_id=item["user_id"],
            status=CourtStatus(item["status"]),
            created_at=item["created_at"],
            user_name=item.get("user_name"),
            photo_url=item.get("photo_url"),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass
class SessionClaims:
    """Identity asserted by a verified session token."""

    user_id: str
    email: str
