"""Export services."""

from .geojson import route_to_feature, routes_to_feature_collection

__all__ = [
    "route_to_feature",
    "routes_to_feature_collection",
]
