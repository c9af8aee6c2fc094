"""Geometric route approximation used when the routing provider is unavailable."""

from __future__ import annotations

import math

from ...models.domain import GeoPoint, RouteResult
from ..geospatial import distance_between

KM_PER_SEGMENT = 80.0
MIN_SEGMENTS = 3
MAX_SEGMENTS = 6
DEVIATION_DEGREES = 0.015
MINUTES_PER_KM = 0.75
FIXED_OVERHEAD_MIN = 15


def _segment_count(distance_km: float) -> int:
    return max(MIN_SEGMENTS, min(MAX_SEGMENTS, round(distance_km / KM_PER_SEGMENT)))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def synthesize_route(origin: GeoPoint, destination: GeoPoint) -> RouteResult:
    """Build a plausible, non-straight path between two points.

    Interior points are interpolated linearly and pushed sideways by a sine
    bump on the axis with the smaller delta, so the deviation stays roughly
    perpendicular to the direction of travel. Duration is a flat
    0.75 min/km estimate plus a 15 minute overhead.
    """
    distance_km = distance_between(origin, destination)
    segments = _segment_count(distance_km)

    lat_diff = destination.latitude - origin.latitude
    lng_diff = destination.longitude - origin.longitude
    shift_longitude = abs(lng_diff) < abs(lat_diff)

    path = [origin]
    for i in range(1, segments):
        t = i / segments
        deviation = DEVIATION_DEGREES * math.sin(t * math.pi * 1.5)
        lat = origin.latitude + lat_diff * t
        lng = origin.longitude + lng_diff * t
        if shift_longitude:
            lng += deviation
        else:
            lat += deviation
        path.append(GeoPoint(latitude=_clamp(lat, -90.0, 90.0), longitude=_clamp(lng, -180.0, 180.0)))
    path.append(destination)

    return RouteResult(
        path=tuple(path),
        distance_km=distance_km,
        duration_min=round(distance_km * MINUTES_PER_KM + FIXED_OVERHEAD_MIN),
        source="fallback",
    )
