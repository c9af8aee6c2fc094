"""Routing orchestration service used by the HTTP layer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from ...models.domain import GeoPoint, OptimizationResult, OptimizedRoute
from ...persistence.filesystem import FileStorage
from ...schemas.routing import (
    DeliveryFailureModel,
    GeoPointModel,
    OptimizationRequest,
    OptimizationResponse,
    OptimizedRouteModel,
    RouteResolveRequest,
    RouteResolveResponse,
)
from ..export.geojson import routes_to_feature_collection
from ..outputs.routing_formatter import optimization_result_to_csv, optimization_result_to_json
from .optimizer import OptimizationEvent, RouteOptimizer

logger = logging.getLogger(__name__)

_optimizer: RouteOptimizer | None = None


def get_route_optimizer() -> RouteOptimizer:
    """Process-wide optimizer so the route cache and run state are shared by requests."""
    global _optimizer
    if _optimizer is None:
        _optimizer = RouteOptimizer()
    return _optimizer


def _points(path: Sequence[GeoPoint]) -> list[GeoPointModel]:
    return [GeoPointModel(latitude=point.latitude, longitude=point.longitude) for point in path]


def _route_model(route: OptimizedRoute) -> OptimizedRouteModel:
    return OptimizedRouteModel(
        id=route.id,
        origin=route.origin,
        destination=route.destination,
        vehicle=route.vehicle,
        driver=route.driver,
        original_duration_min=route.original_duration_min,
        optimized_duration_min=route.optimized_duration_min,
        time_saved_min=route.time_saved_min,
        distance_km=route.distance_km,
        source=route.source,
        path=_points(route.path),
    )


def persist_optimization_run(result: OptimizationResult, storage: FileStorage | None = None) -> Path:
    storage = storage or FileStorage()
    run_dir = storage.make_run_directory(prefix="optimization")
    storage.write_json(run_dir / "summary.json", optimization_result_to_json(result))
    storage.write_csv(run_dir / "routes.csv", optimization_result_to_csv(result))
    storage.write_json(run_dir / "routes.geojson", routes_to_feature_collection(result))
    logger.info("Optimization outputs written to %s", run_dir)
    return run_dir


async def optimize_deliveries(
    payload: OptimizationRequest,
    optimizer: RouteOptimizer | None = None,
) -> OptimizationResponse:
    optimizer = optimizer or get_route_optimizer()
    events: list[OptimizationEvent] = []

    deliveries = [record.model_dump() for record in payload.deliveries]
    result = await optimizer.optimize(deliveries, on_event=events.append)

    metadata: dict = {"events": [{"kind": event.kind, "message": event.message} for event in events]}
    if result is None:
        return OptimizationResponse(status="no_work", message=events[-1].message, metadata=metadata)

    if payload.persist:
        try:
            metadata["output_dir"] = str(persist_optimization_run(result))
        except OSError as exc:
            # The run itself succeeded; outputs are a convenience copy.
            logger.error("Failed to write optimization outputs: %s", exc)

    metadata["approximate_routes"] = sum(1 for route in result.routes if route.source == "fallback")
    return OptimizationResponse(
        status="succeeded",
        message=events[-1].message,
        routes=[_route_model(route) for route in result.routes],
        total_time_saved_min=result.total_time_saved_min,
        total_distance_km=result.total_distance_km,
        optimization_percentage=result.optimization_percentage,
        failures=[
            DeliveryFailureModel(delivery_id=failure.delivery_id, reason=failure.reason)
            for failure in result.failures
        ],
        metadata=metadata,
    )


async def resolve_city_pair(
    payload: RouteResolveRequest,
    optimizer: RouteOptimizer | None = None,
) -> RouteResolveResponse:
    optimizer = optimizer or get_route_optimizer()
    origin = optimizer.registry.lookup(payload.origin)
    destination = optimizer.registry.lookup(payload.destination)
    resolution = await optimizer.resolver.resolve_detailed(origin, destination)
    route = resolution.result
    return RouteResolveResponse(
        origin=payload.origin,
        destination=payload.destination,
        distance_km=round(route.distance_km, 1),
        duration_min=route.duration_min,
        source=route.source,
        approximate=route.is_approximate,
        cached=resolution.cached,
        path=_points(route.path),
    )
