"""Shared fixtures for courtcheck tests.

All storage-facing tests run against InMemoryClient, which implements the
same conditional-write and transaction contract as the DynamoDB backend.
"""

import re

import pytest

from courtcheck_tool.courts.constants import ATTR_PK, ATTR_SK, ATTR_TYPE, PK_RESOURCES
from courtcheck_tool.courts.core.distance import Coordinates, DistanceProvider, DistanceResult
from courtcheck_tool.courts.core.email_dispatch import EmailDispatcher
from courtcheck_tool.courts.core.memory_client import InMemoryClient
from courtcheck_tool.courts.exceptions import EmailDispatchError
from courtcheck_tool.courts.models import ItemType
from courtcheck_tool.courts.utils import resource_sk

OTP_SECRET = "test-otp-secret"
JWT_SECRET = "test-jwt-secret"
NOW = 1_700_000_000

_CODE_PATTERN = re.compile(r"code is: (\d{6})")


class RecordingDispatcher(EmailDispatcher):
    """Keeps every sent message so tests can read the plaintext code."""

    def __init__(self):
        self.sent: list[tuple[str, str, str]] = []

    def send(self, to_address: str, subject: str, body: str) -> None:
        self.sent.append((to_address, subject, body))

    def last_code(self) -> str:
        _, _, body = self.sent[-1]
        match = _CODE_PATTERN.search(body)
        assert match, body
        return match.group(1)


class FailingDispatcher(EmailDispatcher):
    def send(self, to_address: str, subject: str, body: str) -> None:
        raise EmailDispatchError("Failed to send email")


class FixedDistanceProvider(DistanceProvider):
    """Reports the same distance for every destination."""

    def __init__(self, miles: float):
        self.miles = miles
        self.calls = 0

    def distances(
        self, origin: Coordinates, destinations: list[Coordinates]
    ) -> list[DistanceResult]:
        self.calls += 1
        return [DistanceResult(self.miles) for _ in destinations]


def wrong_code(code: str) -> str:
    """A six digit code guaranteed to differ from ``code``."""
    return f"{(int(code) + 1) % 1_000_000:06d}"


def seed_resource(
    client: InMemoryClient,
    resource_id: str,
    lat: float | None = 40.7128,
    long: float | None = -74.0060,
    name: str = "Pier 2 Courts",
    status: str = "EMPTY",
) -> None:
    """Insert a court row the way the external loader does."""
    item = {
        ATTR_PK: PK_RESOURCES,
        ATTR_SK: resource_sk(resource_id),
        ATTR_TYPE: ItemType.RESOURCE.value,
        "id": resource_id,
        "name": name,
        "address_line": "Brooklyn Bridge Park",
        "status": status,
        "last_updated_at": "2023-11-01T00:00:00.000Z",
    }
    if lat is not None:
        item["lat"] = lat
    if long is not None:
        item["long"] = long
    client.put_item(item)


@pytest.fixture
def client() -> InMemoryClient:
    return InMemoryClient()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()
