"""Tests for distance providers."""

import httpx
import pytest

from courtcheck_tool.courts.core.distance import (
    Coordinates,
    GoogleDistanceMatrixProvider,
    HaversineDistanceProvider,
    haversine_miles,
)
from courtcheck_tool.courts.exceptions import DistanceLookupError

_ORIGIN = Coordinates(40.7128, -74.0060)


def _google(handler) -> GoogleDistanceMatrixProvider:
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    return GoogleDistanceMatrixProvider("test-key", http_client=http_client)


def _matrix(*elements, status="OK"):
    return {"status": status, "rows": [{"elements": list(elements)}]}


class TestHaversine:
    def test_same_point(self):
        assert haversine_miles(_ORIGIN, _ORIGIN) == 0

    def test_one_degree_of_latitude(self):
        miles = haversine_miles(Coordinates(0, 0), Coordinates(1, 0))
        assert miles == pytest.approx(69.09, abs=0.01)

    def test_symmetric(self):
        other = Coordinates(34.0522, -118.2437)
        assert haversine_miles(_ORIGIN, other) == pytest.approx(haversine_miles(other, _ORIGIN))

    def test_provider_never_fails(self):
        results = HaversineDistanceProvider().distances(_ORIGIN, [_ORIGIN, Coordinates(0, 0)])
        assert all(r.ok for r in results)


class TestGoogleDistanceMatrix:
    def test_converts_meters_to_miles(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured.update(request.url.params)
            return httpx.Response(
                200, json=_matrix({"status": "OK", "distance": {"value": 1609}})
            )

        miles = _google(handler).distance(40.7128, -74.0060, 40.72, -74.0)

        assert miles == pytest.approx(1.0, abs=0.001)
        assert captured["origins"] == "40.7128,-74.006"
        assert captured["key"] == "test-key"

    def test_per_destination_status(self):
        def handler(request):
            return httpx.Response(
                200,
                json=_matrix(
                    {"status": "OK", "distance": {"value": 804}},
                    {"status": "ZERO_RESULTS"},
                    {"status": "OK"},
                ),
            )

        results = _google(handler).distances(_ORIGIN, [_ORIGIN] * 3)

        assert results[0].ok
        assert results[1].status == "ZERO_RESULTS"
        assert results[2].status == "INVALID_RESPONSE"

    def test_unreachable_destination_fails_single_lookup(self):
        def handler(request):
            return httpx.Response(200, json=_matrix({"status": "NOT_FOUND"}))

        with pytest.raises(DistanceLookupError):
            _google(handler).distance(0, 0, 1, 1)

    def test_top_level_status(self):
        def handler(request):
            return httpx.Response(200, json=_matrix(status="REQUEST_DENIED"))

        with pytest.raises(DistanceLookupError):
            _google(handler).distances(_ORIGIN, [_ORIGIN])

    def test_http_error(self):
        def handler(request):
            return httpx.Response(500, text="upstream down")

        with pytest.raises(DistanceLookupError):
            _google(handler).distances(_ORIGIN, [_ORIGIN])

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(DistanceLookupError):
            _google(handler).distances(_ORIGIN, [_ORIGIN])

    def test_batches_destinations(self):
        calls = []

        def handler(request):
            count = len(request.url.params["destinations"].split("|"))
            calls.append(count)
            element = {"status": "OK", "distance": {"value": 100}}
            return httpx.Response(200, json=_matrix(*([element] * count)))

        results = _google(handler).distances(_ORIGIN, [_ORIGIN] * 30)

        assert calls == [25, 5]
        assert len(results) == 30
