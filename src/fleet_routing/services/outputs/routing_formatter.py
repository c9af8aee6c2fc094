"""Serializers for optimization outputs."""

from __future__ import annotations

import csv
import io
from dataclasses import asdict

from ...models.domain import OptimizationResult
from ..routing.metrics import format_distance, format_duration


def optimization_result_to_json(result: OptimizationResult) -> dict:
    return {
        "total_time_saved_min": result.total_time_saved_min,
        "total_distance_km": result.total_distance_km,
        "optimization_percentage": result.optimization_percentage,
        "failures": [asdict(failure) for failure in result.failures],
        "routes": [
            {
                "id": route.id,
                "origin": route.origin,
                "destination": route.destination,
                "vehicle": route.vehicle,
                "driver": route.driver,
                "original_duration_min": route.original_duration_min,
                "optimized_duration_min": route.optimized_duration_min,
                "time_saved_min": route.time_saved_min,
                "distance_km": route.distance_km,
                "source": route.source,
                "path": [[point.latitude, point.longitude] for point in route.path],
            }
            for route in result.routes
        ],
    }


def optimization_result_to_csv(result: OptimizationResult) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "id",
        "origin",
        "destination",
        "vehicle",
        "driver",
        "distance_km",
        "original_duration_min",
        "optimized_duration_min",
        "time_saved_min",
        "distance",
        "optimized_duration",
        "source",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for route in result.routes:
        writer.writerow(
            {
                "id": route.id,
                "origin": route.origin,
                "destination": route.destination,
                "vehicle": route.vehicle,
                "driver": route.driver,
                "distance_km": route.distance_km,
                "original_duration_min": route.original_duration_min,
                "optimized_duration_min": route.optimized_duration_min,
                "time_saved_min": route.time_saved_min,
                "distance": format_distance(route.distance_km),
                "optimized_duration": format_duration(route.optimized_duration_min),
                "source": route.source,
            }
        )
    return buffer.getvalue()
