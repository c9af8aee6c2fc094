"""Routing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...exceptions import OptimizationInProgressError, UnknownCityError
from ...schemas.routing import (
    OptimizationRequest,
    OptimizationResponse,
    RouteResolveRequest,
    RouteResolveResponse,
)
from ...services.routing import service as routing_service

router = APIRouter(prefix="/routes", tags=["routes"])

logger = logging.getLogger(__name__)


@router.post("/optimize", response_model=OptimizationResponse, status_code=status.HTTP_200_OK)
async def optimize(payload: OptimizationRequest) -> OptimizationResponse:
    try:
        return await routing_service.optimize_deliveries(payload)
    except UnknownCityError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except OptimizationInProgressError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error optimizing routes: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Une erreur est survenue pendant le calcul des trajets optimisés. Réessayez plus tard.",
        ) from exc


@router.post("/resolve", response_model=RouteResolveResponse, status_code=status.HTTP_200_OK)
async def resolve(payload: RouteResolveRequest) -> RouteResolveResponse:
    """Resolve a single origin/destination city pair."""
    try:
        return await routing_service.resolve_city_pair(payload)
    except UnknownCityError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.delete("/cache", status_code=status.HTTP_200_OK)
def clear_cache() -> dict:
    optimizer = routing_service.get_route_optimizer()
    cleared = len(optimizer.resolver.cache)
    optimizer.clear_cache()
    return {
        "success": True,
        "cleared_entries": cleared,
        "message": f"Cleared {cleared} cached route(s)",
    }
