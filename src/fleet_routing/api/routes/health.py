"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/osrm", status_code=status.HTTP_200_OK)
async def health_osrm() -> dict:
    """Check routing provider reachability. Optimization still works when this is false."""
    from ...services.routing.osrm_client import check_health

    healthy = await check_health()
    return {"service": "osrm", "healthy": healthy, "fallback_available": True}
