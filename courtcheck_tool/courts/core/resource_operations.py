"""
Resource (court) read operations.

Courts live under the fixed RESOURCE partition and are populated externally.
Listing is a full partition scan; proximity ordering is a linear pass with the
great-circle distance, not a spatial index.
"""

from typing import Any

from ..constants import NEAREST_RESOURCES_TOP_K, PK_RESOURCES, PREFIX_CHECKIN, PREFIX_RESOURCE
from ..models import Checkin, Resource
from ..utils import checkin_pk, resource_sk
from .distance import Coordinates, haversine_miles
from .storage import StorageBackend


def get_resource(client: StorageBackend, resource_id: str) -> Resource | None:
    """Point lookup of a court."""
    item = client.get_item(PK_RESOURCES, resource_sk(resource_id))
    return Resource.from_item(item) if item else None


def list_checkins(client: StorageBackend, resource_id: str) -> list[Checkin]:
    """All check-ins for a court, oldest first."""
    items = client.query(checkin_pk(resource_id), sk_prefix=f"{PREFIX_CHECKIN}#")
    return [Checkin.from_item(item) for item in items]


def list_resources(
    client: StorageBackend,
    origin: Coordinates | None = None,
    top_k: int = NEAREST_RESOURCES_TOP_K,
    include_checkins: bool = False,
) -> dict[str, Any]:
    """
    List courts, nearest first when an origin is given.

    With an origin, the ``top_k`` nearest courts that have coordinates get a
    ``distance_miles`` value and are sorted to the front; the rest keep their
    stored order after them.

    Args:
        client: Storage backend
        origin: Caller position (optional)
        top_k: How many nearest courts to annotate
        include_checkins: Attach each court's check-in log

    Returns:
        Dictionary with resources list and count
    """
    resources = [
        Resource.from_item(item)
        for item in client.query(PK_RESOURCES, sk_prefix=f"{PREFIX_RESOURCE}#")
    ]

    distances: dict[str, float] = {}
    if origin is not None:
        ranked = sorted(
            (
                (haversine_miles(origin, Coordinates(r.lat, r.long)), r.id)  # type: ignore[arg-type]
                for r in resources
                if r.has_coordinates
            ),
        )
        distances = {resource_id: miles for miles, resource_id in ranked[:top_k]}
        resources.sort(key=lambda r: distances.get(r.id, float("inf")))

    listed = []
    for resource in resources:
        entry = resource.to_dict()
        if resource.id in distances:
            entry["distance_miles"] = distances[resource.id]
        if include_checkins:
            entry["checkins"] = [c.to_dict() for c in list_checkins(client, resource.id)]
        listed.append(entry)

    return {"resources": listed, "count": len(listed)}
