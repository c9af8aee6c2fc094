"""In-memory route cache keyed by rounded coordinate pairs."""

from __future__ import annotations

from collections import OrderedDict
from typing import Optional, Protocol

from ...models.domain import GeoPoint, RouteResult

# 4 decimal degrees is roughly 11 metres.
CACHE_KEY_PRECISION = 4

RouteCacheKey = tuple[float, float, float, float]


def route_cache_key(origin: GeoPoint, destination: GeoPoint) -> RouteCacheKey:
    return (
        round(origin.latitude, CACHE_KEY_PRECISION),
        round(origin.longitude, CACHE_KEY_PRECISION),
        round(destination.latitude, CACHE_KEY_PRECISION),
        round(destination.longitude, CACHE_KEY_PRECISION),
    )


class RouteCache(Protocol):
    def get(self, key: RouteCacheKey) -> Optional[RouteResult]: ...

    def set(self, key: RouteCacheKey, value: RouteResult) -> None: ...

    def clear(self) -> None: ...

    def __len__(self) -> int: ...


class LRURouteCache:
    """Least-recently-used cache with a hard entry cap and no expiry.

    Reads and writes happen on the event loop thread only, so no locking is
    needed; concurrent misses for the same key may both write, last one wins.
    """

    def __init__(self, max_entries: int = 512) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1.")
        self.max_entries = max_entries
        self._entries: OrderedDict[RouteCacheKey, RouteResult] = OrderedDict()

    def get(self, key: RouteCacheKey) -> Optional[RouteResult]:
        value = self._entries.get(key)
        if value is not None:
            self._entries.move_to_end(key)
        return value

    def set(self, key: RouteCacheKey, value: RouteResult) -> None:
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
