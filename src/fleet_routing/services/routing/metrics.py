"""Fleet-wide optimization metrics and display formatting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ...models.domain import OptimizedRoute


@dataclass(slots=True, frozen=True)
class OptimizationMetrics:
    total_time_saved_min: int
    total_distance_km: float
    total_original_duration_min: int
    optimization_percentage: int


def calculate_optimization_metrics(routes: Sequence[OptimizedRoute]) -> OptimizationMetrics:
    total_time_saved = sum(route.time_saved_min for route in routes)
    total_distance = sum(route.distance_km for route in routes)
    total_original = sum(route.original_duration_min for route in routes)
    percentage = round(100 * total_time_saved / total_original) if total_original > 0 else 0
    return OptimizationMetrics(
        total_time_saved_min=total_time_saved,
        total_distance_km=round(total_distance, 1),
        total_original_duration_min=total_original,
        optimization_percentage=percentage,
    )


def format_duration(minutes: float) -> str:
    """``45`` -> ``"45min"``, ``65`` -> ``"1h 05min"``."""
    total = max(0, round(minutes))
    hours, remainder = divmod(total, 60)
    if hours == 0:
        return f"{remainder}min"
    return f"{hours}h {remainder:02d}min"


def format_distance(kilometres: float) -> str:
    return f"{round(kilometres):d} km"
