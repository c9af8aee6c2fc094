"""Route resolution: cache, then provider, then geometric fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from ...config import settings
from ...exceptions import ProviderError
from ...models.domain import GeoPoint, RouteResult
from .cache import LRURouteCache, RouteCache, route_cache_key
from .fallback import synthesize_route
from .osrm_client import OSRMClient, format_coordinate
from .rate_limit import AsyncTokenBucket

logger = logging.getLogger(__name__)


class RouteProvider(Protocol):
    async def route(self, origin: GeoPoint, destination: GeoPoint) -> RouteResult: ...


@dataclass(slots=True, frozen=True)
class RouteResolution:
    """Outcome of one resolution: the usable route and why it was chosen."""

    result: RouteResult
    error: Optional[ProviderError] = None
    cached: bool = False

    @property
    def used_fallback(self) -> bool:
        return self.result.source == "fallback"


class RouteResolver:
    """Always returns a usable route for a coordinate pair.

    Provider failures are logged and replaced by a synthetic route, which is
    cached like a real one so a failing pair does not hit the network again.
    """

    def __init__(
        self,
        provider: RouteProvider | None = None,
        cache: RouteCache | None = None,
    ) -> None:
        self.provider = provider if provider is not None else _default_provider()
        self.cache = cache if cache is not None else LRURouteCache(settings.route_cache_max_entries)

    async def resolve(self, origin: GeoPoint, destination: GeoPoint) -> RouteResult:
        resolution = await self.resolve_detailed(origin, destination)
        return resolution.result

    async def resolve_detailed(self, origin: GeoPoint, destination: GeoPoint) -> RouteResolution:
        key = route_cache_key(origin, destination)
        cached = self.cache.get(key)
        if cached is not None:
            return RouteResolution(result=cached, cached=True)

        error: Optional[ProviderError] = None
        try:
            result = await self.provider.route(origin, destination)
        except ProviderError as exc:
            logger.warning(
                "Routing provider failed for %s -> %s (%s); using approximate route",
                format_coordinate(origin),
                format_coordinate(destination),
                exc,
            )
            error = exc
            result = synthesize_route(origin, destination)

        self.cache.set(key, result)
        return RouteResolution(result=result, error=error)

    def clear_cache(self) -> None:
        self.cache.clear()


def _default_provider() -> OSRMClient:
    return OSRMClient(
        rate_limiter=AsyncTokenBucket.per_batch(settings.batch_size, settings.batch_pause_seconds),
    )
