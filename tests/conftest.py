import asyncio
from typing import Optional

import pytest

from fleet_routing.models.domain import GeoPoint, RouteResult


class RecordingProvider:
    """Stand-in route provider that records calls and tracks concurrency."""

    def __init__(
        self,
        duration_min: float = 120,
        distance_km: float = 100,
        error: Optional[Exception] = None,
        delays: Optional[dict] = None,
    ) -> None:
        self.duration_min = duration_min
        self.distance_km = distance_km
        self.error = error
        self.delays = delays or {}
        self.calls: list[tuple[GeoPoint, GeoPoint]] = []
        self.active = 0
        self.max_active = 0

    async def route(self, origin: GeoPoint, destination: GeoPoint) -> RouteResult:
        self.calls.append((origin, destination))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(destination, 0))
        finally:
            self.active -= 1
        if self.error is not None:
            raise self.error
        return RouteResult(
            path=(origin, destination),
            distance_km=self.distance_km,
            duration_min=self.duration_min,
        )


@pytest.fixture
def provider() -> RecordingProvider:
    return RecordingProvider()
