"""Domain models for geographic points, routes and optimization runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

RouteSource = Literal["provider", "fallback"]


@dataclass(slots=True, frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude out of range: {self.longitude}")

    def as_lat_lng(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


@dataclass(slots=True, frozen=True)
class RouteResult:
    """A drivable path between two points.

    ``source`` tells whether the data came from the routing provider or from
    the geometric approximation.
    """

    path: tuple[GeoPoint, ...]
    distance_km: float
    duration_min: float
    source: RouteSource = "provider"

    @property
    def origin(self) -> GeoPoint:
        return self.path[0]

    @property
    def destination(self) -> GeoPoint:
        return self.path[-1]

    @property
    def is_approximate(self) -> bool:
        return self.source == "fallback"


@dataclass(slots=True)
class DeliveryRouteRequest:
    """A planned delivery with every default already substituted."""

    id: str
    origin_city: str
    destination_city: str
    vehicle_label: str
    driver_label: str


@dataclass(slots=True)
class OptimizedRoute:
    id: str
    origin: str
    destination: str
    vehicle: str
    driver: str
    original_duration_min: int
    optimized_duration_min: int
    time_saved_min: int
    distance_km: float
    path: tuple[GeoPoint, ...]
    source: RouteSource = "provider"


@dataclass(slots=True)
class DeliveryFailure:
    delivery_id: str
    reason: str


@dataclass(slots=True)
class OptimizationResult:
    routes: list[OptimizedRoute]
    total_time_saved_min: int
    total_distance_km: float
    optimization_percentage: int
    failures: list[DeliveryFailure] = field(default_factory=list)


@dataclass(slots=True)
class City:
    """A registered city with its coordinates."""

    name: str
    location: GeoPoint
