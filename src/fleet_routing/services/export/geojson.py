"""GeoJSON export of optimized routes for map overlays."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from shapely.geometry import LineString, mapping
from shapely.ops import unary_union

from ...models.domain import GeoPoint, OptimizationResult, OptimizedRoute

ROUTE_COLORS = (
    "#3b82f6",
    "#10b981",
    "#f59e0b",
    "#ef4444",
    "#8b5cf6",
    "#06b6d4",
    "#84cc16",
)


def route_color(index: int) -> str:
    """Cycle through a fixed palette so adjacent routes stay distinguishable."""
    return ROUTE_COLORS[index % len(ROUTE_COLORS)]


def path_to_linestring(path: Sequence[GeoPoint]) -> LineString:
    """Build a shapely LineString in GeoJSON (lon, lat) axis order."""
    if len(path) < 2:
        raise ValueError("LineString must have at least 2 coordinates")
    return LineString([(point.longitude, point.latitude) for point in path])


def route_to_feature(route: OptimizedRoute, index: int) -> Dict[str, Any]:
    line = path_to_linestring(route.path)
    return {
        "type": "Feature",
        "id": route.id,
        "geometry": mapping(line),
        "bbox": list(line.bounds),
        "properties": {
            "origin": route.origin,
            "destination": route.destination,
            "vehicle": route.vehicle,
            "driver": route.driver,
            "distance_km": route.distance_km,
            "original_duration_min": route.original_duration_min,
            "optimized_duration_min": route.optimized_duration_min,
            "time_saved_min": route.time_saved_min,
            "approximate": route.source == "fallback",
            "color": route_color(index),
        },
    }


def routes_to_feature_collection(result: OptimizationResult) -> Dict[str, Any]:
    """Convert an optimization result into a GeoJSON FeatureCollection.

    The collection ``bbox`` covers every route and is what a map view fits to.
    """
    features: List[Dict[str, Any]] = [
        route_to_feature(route, index) for index, route in enumerate(result.routes)
    ]
    collection: Dict[str, Any] = {
        "type": "FeatureCollection",
        "features": features,
        "properties": {
            "total_distance_km": result.total_distance_km,
            "total_time_saved_min": result.total_time_saved_min,
            "optimization_percentage": result.optimization_percentage,
        },
    }
    if result.routes:
        combined = unary_union([path_to_linestring(route.path) for route in result.routes])
        collection["bbox"] = list(combined.bounds)
    return collection
