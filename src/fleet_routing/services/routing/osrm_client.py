"""Async HTTP client for the OSRM route service."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any

import httpx

from ...config import settings
from ...exceptions import (
    ProviderError,
    ProviderHTTPError,
    ProviderMalformedResponseError,
    ProviderTimeoutError,
)
from ...models.domain import GeoPoint, RouteResult
from .rate_limit import AsyncTokenBucket

logger = logging.getLogger(__name__)


def format_coordinate(point: GeoPoint) -> str:
    """OSRM expects ``lng,lat`` order."""
    return f"{point.longitude},{point.latitude}"


class OSRMClient:
    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        rate_limiter: AsyncTokenBucket | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url).rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        self.rate_limiter = rate_limiter
        self._transport = transport

    def _get_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            headers={"Accept": "application/json"},
            transport=self._transport,
        )

    def route_url(self, origin: GeoPoint, destination: GeoPoint) -> str:
        coordinate_str = f"{format_coordinate(origin)};{format_coordinate(destination)}"
        return f"{self.base_url}/{self.profile}/{coordinate_str}"

    async def route(self, origin: GeoPoint, destination: GeoPoint) -> RouteResult:
        """Fetch a driving route between two points.

        A single attempt is made; every failure is raised as a ``ProviderError``
        subclass so the caller can decide how to degrade.
        """
        if self.rate_limiter is not None:
            await self.rate_limiter.acquire()

        url = self.route_url(origin, destination)
        params = {"overview": "full", "geometries": "geojson"}

        async with self._get_client() as client:
            try:
                # httpx timeouts are per phase; wait_for bounds the whole exchange.
                response = await asyncio.wait_for(client.get(url, params=params), timeout=self.timeout)
                response.raise_for_status()
                payload = response.json()
            except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
                raise ProviderTimeoutError(
                    f"OSRM route request timed out after {self.timeout:.1f}s"
                ) from exc
            except httpx.HTTPStatusError as exc:
                raise ProviderHTTPError(
                    f"OSRM route request failed with status {exc.response.status_code}",
                    status_code=exc.response.status_code,
                ) from exc
            except httpx.HTTPError as exc:
                raise ProviderHTTPError(f"Failed to reach OSRM service at {self.base_url}: {exc}") from exc
            except ValueError as exc:
                raise ProviderMalformedResponseError("OSRM response is not valid JSON") from exc

        result = parse_route_payload(payload, origin, destination)
        logger.info(
            "OSRM route obtained: %s -> %s, %skm, %smin",
            format_coordinate(origin),
            format_coordinate(destination),
            result.distance_km,
            result.duration_min,
        )
        return result


def parse_route_payload(payload: Any, origin: GeoPoint, destination: GeoPoint) -> RouteResult:
    """Convert an OSRM ``route`` response into a ``RouteResult``.

    Geometry arrives as ``[lng, lat]`` pairs; distance in metres and duration
    in seconds are rounded to whole kilometres and minutes.
    """
    if not isinstance(payload, dict):
        raise ProviderMalformedResponseError("OSRM response must be a JSON object")
    code = payload.get("code")
    if code is not None and code != "Ok":
        raise ProviderMalformedResponseError(f"OSRM returned code {code!r}: {payload.get('message', '')}")

    routes = payload.get("routes") or []
    if not isinstance(routes, list) or not routes:
        raise ProviderMalformedResponseError("OSRM response contains no routes")

    first = routes[0]
    try:
        distance_m = float(first["distance"])
        duration_s = float(first["duration"])
        raw_coordinates = first["geometry"]["coordinates"]
        path = [GeoPoint(latitude=float(lat), longitude=float(lng)) for lng, lat in raw_coordinates]
    except (KeyError, TypeError, ValueError) as exc:
        raise ProviderMalformedResponseError(f"Unexpected OSRM route shape: {exc}") from exc

    if not math.isfinite(distance_m) or not math.isfinite(duration_s):
        raise ProviderMalformedResponseError("OSRM returned a non-finite distance or duration")
    if distance_m < 0 or duration_s < 0:
        raise ProviderMalformedResponseError("OSRM returned a negative distance or duration")

    # OSRM snaps endpoints to the road network; keep the requested ones at the ends.
    if not path or path[0] != origin:
        path.insert(0, origin)
    if path[-1] != destination or len(path) < 2:
        path.append(destination)

    return RouteResult(
        path=tuple(path),
        distance_km=round(distance_m / 1000),
        duration_min=round(duration_s / 60),
        source="provider",
    )


async def check_health(base_url: str | None = None, transport: httpx.AsyncBaseTransport | None = None) -> bool:
    """Check OSRM reachability with a short Casablanca -> Rabat route request."""
    client = OSRMClient(base_url=base_url, transport=transport)
    try:
        await client.route(
            GeoPoint(latitude=33.5731, longitude=-7.5898),
            GeoPoint(latitude=34.0209, longitude=-6.8416),
        )
    except ProviderError as exc:
        logger.debug("OSRM health check failed: %s", exc)
        return False
    return True
