import math

import pytest

from fleet_routing.models.domain import GeoPoint
from fleet_routing.services.geospatial import distance_between
from fleet_routing.services.routing.fallback import synthesize_route

PAIRS = [
    (GeoPoint(33.5731, -7.5898), GeoPoint(34.0209, -6.8416)),  # Casablanca -> Rabat
    (GeoPoint(35.7595, -5.8340), GeoPoint(27.1253, -13.1625)),  # Tanger -> Laâyoune
    (GeoPoint(34.6814, -1.9086), GeoPoint(30.4278, -9.5981)),  # Oujda -> Agadir
    (GeoPoint(33.9281, -6.9067), GeoPoint(33.9281, -6.9067)),  # same point
    (GeoPoint(-45.0, 170.0), GeoPoint(45.0, -170.0)),
]


@pytest.mark.parametrize("origin, destination", PAIRS)
def test_fallback_route_invariants(origin: GeoPoint, destination: GeoPoint):
    route = synthesize_route(origin, destination)

    assert len(route.path) >= 2
    assert route.path[0] == origin
    assert route.path[-1] == destination
    assert route.distance_km >= 0
    assert route.duration_min >= 0
    assert route.source == "fallback"
    assert route.is_approximate


def test_fallback_distance_and_duration_follow_haversine():
    origin, destination = PAIRS[0]
    route = synthesize_route(origin, destination)
    expected_distance = distance_between(origin, destination)

    assert route.distance_km == pytest.approx(expected_distance)
    assert route.duration_min == round(expected_distance * 0.75 + 15)


def test_fallback_segment_count_is_clamped():
    short = synthesize_route(*PAIRS[0])
    long = synthesize_route(*PAIRS[1])

    # 3 segments -> 2 interior points; 6 segments -> 5 interior points
    assert len(short.path) == 4
    assert len(long.path) == 7


def test_fallback_deviates_on_minor_axis():
    # Mostly eastward trip: latitude delta is the smaller one and gets the bump.
    origin = GeoPoint(34.0, -6.0)
    destination = GeoPoint(34.1, -2.0)
    route = synthesize_route(origin, destination)

    segments = len(route.path) - 1
    for i, point in enumerate(route.path[1:-1], start=1):
        t = i / segments
        expected_lng = origin.longitude + (destination.longitude - origin.longitude) * t
        expected_lat = origin.latitude + (destination.latitude - origin.latitude) * t
        assert point.longitude == pytest.approx(expected_lng)
        assert point.latitude == pytest.approx(expected_lat + 0.015 * math.sin(t * math.pi * 1.5))
