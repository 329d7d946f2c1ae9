"""
Distance providers for geofencing.

Two implementations: great-circle math (no network) and the Google Distance
Matrix API (travel distance). Both report per-destination failures separately
from a failure of the whole lookup.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx

from ..constants import DEFAULT_REQUEST_TIMEOUT, EARTH_RADIUS_MILES, METERS_TO_MILES
from ..exceptions import DistanceLookupError
from ..logging_config import get_logger

logger = get_logger(__name__)

GOOGLE_DISTANCE_MATRIX_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"

# Distance Matrix accepts at most 25 destinations per request
GOOGLE_MAX_DESTINATIONS = 25


@dataclass(frozen=True)
class Coordinates:
    lat: float
    long: float


@dataclass(frozen=True)
class DistanceResult:
    """Outcome for one destination. ``miles`` is None unless status is OK."""

    miles: float | None
    status: str = "OK"

    @property
    def ok(self) -> bool:
        return self.status == "OK" and self.miles is not None


class DistanceProvider(ABC):
    """Distance between an origin and one or more destinations, in miles."""

    def distance(
        self, origin_lat: float, origin_long: float, dest_lat: float, dest_long: float
    ) -> float:
        """
        Distance to a single destination.

        Raises:
            DistanceLookupError: If the lookup fails or the destination is unreachable
        """
        [result] = self.distances(
            Coordinates(origin_lat, origin_long), [Coordinates(dest_lat, dest_long)]
        )
        if not result.ok:
            raise DistanceLookupError(f"Distance lookup failed: {result.status}")
        return result.miles  # type: ignore[return-value]

    @abstractmethod
    def distances(
        self, origin: Coordinates, destinations: list[Coordinates]
    ) -> list[DistanceResult]:
        """
        Distances to many destinations, in input order.

        Raises:
            DistanceLookupError: If the lookup as a whole failed
        """


def haversine_miles(origin: Coordinates, destination: Coordinates) -> float:
    """Great-circle distance in miles."""
    d_lat = math.radians(destination.lat - origin.lat)
    d_long = math.radians(destination.long - origin.long)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(origin.lat))
        * math.cos(math.radians(destination.lat))
        * math.sin(d_long / 2) ** 2
    )
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


class HaversineDistanceProvider(DistanceProvider):
    """Straight-line distance; never fails."""

    def distances(
        self, origin: Coordinates, destinations: list[Coordinates]
    ) -> list[DistanceResult]:
        return [DistanceResult(haversine_miles(origin, dest)) for dest in destinations]


class GoogleDistanceMatrixProvider(DistanceProvider):
    """Travel distance from the Google Distance Matrix API."""

    def __init__(
        self,
        api_key: str,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        http_client: httpx.Client | None = None,
    ):
        self.api_key = api_key
        self.http_client = http_client or httpx.Client(timeout=timeout)

    def distances(
        self, origin: Coordinates, destinations: list[Coordinates]
    ) -> list[DistanceResult]:
        results: list[DistanceResult] = []
        for start in range(0, len(destinations), GOOGLE_MAX_DESTINATIONS):
            batch = destinations[start : start + GOOGLE_MAX_DESTINATIONS]
            results.extend(self._fetch_batch(origin, batch))
        return results

    def _fetch_batch(
        self, origin: Coordinates, destinations: list[Coordinates]
    ) -> list[DistanceResult]:
        params = {
            "origins": f"{origin.lat},{origin.long}",
            "destinations": "|".join(f"{d.lat},{d.long}" for d in destinations),
            "units": "imperial",
            "key": self.api_key,
        }
        try:
            response = self.http_client.get(GOOGLE_DISTANCE_MATRIX_URL, params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Distance Matrix request failed: {type(e).__name__}")
            raise DistanceLookupError("Distance lookup failed")

        status = data.get("status")
        if status != "OK":
            logger.warning(f"Distance Matrix status: {status}")
            raise DistanceLookupError(f"Distance lookup failed: {status or 'UNKNOWN'}")

        rows = data.get("rows") or [{}]
        elements = rows[0].get("elements") or []
        if len(elements) != len(destinations):
            raise DistanceLookupError("Distance lookup returned an unexpected number of results")

        results = []
        for element in elements:
            element_status = element.get("status", "UNKNOWN")
            meters = (element.get("distance") or {}).get("value")
            if element_status != "OK":
                results.append(DistanceResult(None, element_status))
            elif not isinstance(meters, (int, float)):
                results.append(DistanceResult(None, "INVALID_RESPONSE"))
            else:
                results.append(DistanceResult(meters * METERS_TO_MILES))
        return results
