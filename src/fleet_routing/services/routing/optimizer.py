"""Batch route optimization over planned deliveries."""

from __future__ import annotations

import asyncio
import enum
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Literal, Mapping, Optional, Sequence

from ...config import settings
from ...data.cities import CityRegistry, get_city_registry
from ...exceptions import OptimizationInProgressError, UnknownCityError
from ...models.domain import (
    DeliveryFailure,
    DeliveryRouteRequest,
    OptimizationResult,
    OptimizedRoute,
)
from .metrics import calculate_optimization_metrics, format_duration
from .resolver import RouteResolver

logger = logging.getLogger(__name__)

PLANNED_STATUS = "planned"

MESSAGE_STARTED = "Optimisation des trajets en cours"
MESSAGE_NO_WORK = "Aucune livraison planifiée à optimiser"
MESSAGE_FAILED = "Une erreur est survenue pendant le calcul des trajets optimisés"

OptimizationFactor = Callable[[float], float]
UnknownCityPolicy = Literal["abort", "skip"]


class OptimizationState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    NO_WORK = "no_work"


@dataclass(slots=True)
class OptimizationEvent:
    """Progress notification for the caller of an optimization run."""

    kind: Literal["started", "succeeded", "failed", "no_work"]
    message: str
    detail: dict[str, Any] = field(default_factory=dict)


EventCallback = Callable[[OptimizationEvent], None]


def random_optimization_factor(
    base: float | None = None,
    variable_range: float | None = None,
    rng: random.Random | None = None,
) -> OptimizationFactor:
    """``base + uniform(0, variable_range)``, independent of the route duration."""
    base = settings.optimization_base if base is None else base
    variable_range = settings.optimization_range if variable_range is None else variable_range
    source = rng or random.Random()

    def factor(original_duration_min: float) -> float:
        return base + source.uniform(0.0, variable_range)

    return factor


def fixed_optimization_factor(value: float) -> OptimizationFactor:
    return lambda original_duration_min: value


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def select_planned(deliveries: Iterable[Any]) -> list[Any]:
    return [delivery for delivery in deliveries if _field(delivery, "status") == PLANNED_STATUS]


def build_route_requests(
    deliveries: Sequence[Any],
    default_origin: str | None = None,
    default_destination: str | None = None,
) -> list[DeliveryRouteRequest]:
    """Substitute defaults for missing origin, destination, vehicle, driver and id."""
    default_origin = default_origin or settings.default_origin_city
    default_destination = default_destination or settings.default_destination_city
    requests: list[DeliveryRouteRequest] = []
    for index, delivery in enumerate(deliveries):
        delivery_id = _field(delivery, "id")
        requests.append(
            DeliveryRouteRequest(
                id=str(delivery_id) if delivery_id not in (None, "") else f"route-{index}",
                origin_city=_field(delivery, "origin") or default_origin,
                destination_city=_field(delivery, "destination") or default_destination,
                vehicle_label=_field(delivery, "vehicle") or f"TL-{1000 + index}",
                driver_label=_field(delivery, "driver") or f"Chauffeur {index + 1}",
            )
        )
    return requests


class RouteOptimizer:
    """Resolves a route per planned delivery and derives synthetic savings.

    Deliveries are processed in batches of ``batch_size``: concurrently within a
    batch, strictly one batch after another. Outbound pacing belongs to the
    provider's rate limiter, not to this loop.
    """

    def __init__(
        self,
        resolver: RouteResolver | None = None,
        registry: CityRegistry | None = None,
        optimization_factor: OptimizationFactor | None = None,
        batch_size: int | None = None,
        min_optimized_duration_min: int | None = None,
        unknown_city_policy: UnknownCityPolicy | None = None,
    ) -> None:
        self.resolver = resolver if resolver is not None else RouteResolver()
        self.registry = registry if registry is not None else get_city_registry()
        self.optimization_factor = optimization_factor or random_optimization_factor()
        self.batch_size = batch_size if batch_size is not None else settings.batch_size
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1.")
        self.min_optimized_duration_min = (
            min_optimized_duration_min
            if min_optimized_duration_min is not None
            else settings.min_optimized_duration_min
        )
        self.unknown_city_policy: UnknownCityPolicy = unknown_city_policy or settings.unknown_city_policy
        self._state = OptimizationState.IDLE
        self.last_outcome: Optional[OptimizationState] = None

    @property
    def state(self) -> OptimizationState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is OptimizationState.RUNNING

    def clear_cache(self) -> None:
        self.resolver.clear_cache()

    async def optimize(
        self,
        deliveries: Iterable[Any],
        on_event: EventCallback | None = None,
    ) -> Optional[OptimizationResult]:
        """Optimize every planned delivery; ``None`` when nothing is planned.

        Raises ``OptimizationInProgressError`` if a run is already active and
        ``UnknownCityError`` when a city cannot be geocoded under the abort
        policy. Failures are also reported through ``on_event``.
        """
        if self._state is OptimizationState.RUNNING:
            raise OptimizationInProgressError("An optimization run is already in progress.")

        self._state = OptimizationState.RUNNING
        outcome = OptimizationState.FAILED
        emit = _emitter(on_event)
        try:
            emit(OptimizationEvent(kind="started", message=MESSAGE_STARTED))
            planned = select_planned(deliveries)
            if not planned:
                logger.warning(MESSAGE_NO_WORK)
                emit(OptimizationEvent(kind="no_work", message=MESSAGE_NO_WORK))
                outcome = OptimizationState.NO_WORK
                return None

            requests = build_route_requests(planned)
            logger.info("Optimizing %d planned deliveries in batches of %d", len(requests), self.batch_size)
            result = await self._optimize_requests(requests)

            message = (
                f"{len(result.routes)} trajets optimisés, "
                f"{result.total_time_saved_min} minutes économisées au total"
            )
            logger.info(
                "Optimization finished: %d routes, %s saved (%d%%)",
                len(result.routes),
                format_duration(result.total_time_saved_min),
                result.optimization_percentage,
            )
            emit(
                OptimizationEvent(
                    kind="succeeded",
                    message=message,
                    detail={
                        "routes": len(result.routes),
                        "total_time_saved_min": result.total_time_saved_min,
                        "failures": len(result.failures),
                    },
                )
            )
            outcome = OptimizationState.SUCCEEDED
            return result
        except asyncio.CancelledError:
            emit(OptimizationEvent(kind="failed", message=MESSAGE_FAILED, detail={"reason": "cancelled"}))
            raise
        except UnknownCityError as exc:
            logger.warning("Optimization aborted: %s", exc)
            emit(OptimizationEvent(kind="failed", message=MESSAGE_FAILED, detail={"reason": str(exc)}))
            raise
        except Exception as exc:
            logger.exception("Optimization failed: %s", exc)
            emit(OptimizationEvent(kind="failed", message=MESSAGE_FAILED, detail={"reason": str(exc)}))
            raise
        finally:
            self.last_outcome = outcome
            self._state = OptimizationState.IDLE

    async def _optimize_requests(self, requests: Sequence[DeliveryRouteRequest]) -> OptimizationResult:
        routes: list[OptimizedRoute] = []
        failures: list[DeliveryFailure] = []

        for start in range(0, len(requests), self.batch_size):
            batch = requests[start : start + self.batch_size]
            # Let the whole batch settle before deciding to abort.
            outcomes = await asyncio.gather(
                *(self._optimize_delivery(request) for request in batch),
                return_exceptions=True,
            )
            for request, outcome in zip(batch, outcomes):
                if isinstance(outcome, UnknownCityError) and self.unknown_city_policy == "skip":
                    logger.warning("Skipping delivery %s: %s", request.id, outcome)
                    failures.append(DeliveryFailure(delivery_id=request.id, reason=str(outcome)))
                    continue
                if isinstance(outcome, BaseException):
                    raise outcome
                routes.append(outcome)

        metrics = calculate_optimization_metrics(routes)
        return OptimizationResult(
            routes=routes,
            total_time_saved_min=metrics.total_time_saved_min,
            total_distance_km=metrics.total_distance_km,
            optimization_percentage=metrics.optimization_percentage,
            failures=failures,
        )

    async def _optimize_delivery(self, request: DeliveryRouteRequest) -> OptimizedRoute:
        origin = self.registry.lookup(request.origin_city)
        destination = self.registry.lookup(request.destination_city)

        route = await self.resolver.resolve(origin, destination)

        original_duration = max(0, round(route.duration_min))
        factor = min(1.0, max(0.0, self.optimization_factor(original_duration)))
        time_saved = min(original_duration, round(original_duration * factor))
        optimized_duration = max(self.min_optimized_duration_min, original_duration - time_saved)

        logger.info(
            "Route %s: %s -> %s, %.0fkm, %dmin -> %dmin (saved %dmin, %s)",
            request.id,
            request.origin_city,
            request.destination_city,
            route.distance_km,
            original_duration,
            optimized_duration,
            time_saved,
            route.source,
        )
        return OptimizedRoute(
            id=request.id,
            origin=request.origin_city,
            destination=request.destination_city,
            vehicle=request.vehicle_label,
            driver=request.driver_label,
            original_duration_min=original_duration,
            optimized_duration_min=optimized_duration,
            time_saved_min=time_saved,
            distance_km=round(route.distance_km, 1),
            path=route.path,
            source=route.source,
        )


def _emitter(callback: EventCallback | None) -> EventCallback:
    def emit(event: OptimizationEvent) -> None:
        if callback is not None:
            callback(event)

    return emit
