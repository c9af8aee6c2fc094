"""Routing request/response schemas."""

from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class GeoPointModel(BaseModel):
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


class CityModel(BaseModel):
    name: str
    latitude: float
    longitude: float


class DeliveryRecord(BaseModel):
    """A delivery as stored by the dashboard; only planned ones are optimized."""

    model_config = ConfigDict(extra="allow")

    id: Optional[Union[str, int]] = None
    status: str = Field(..., description="Delivery status, e.g. 'planned', 'completed', 'cancelled'.")
    origin: Optional[str] = Field(default=None, description="Origin city name, exactly as registered.")
    destination: Optional[str] = Field(default=None, description="Destination city name, exactly as registered.")
    vehicle: Optional[str] = None
    driver: Optional[str] = None


class OptimizationRequest(BaseModel):
    deliveries: List[DeliveryRecord]
    persist: bool = Field(default=False, description="Write summary, CSV and GeoJSON outputs for the run.")


class RouteResolveRequest(BaseModel):
    origin: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)


class RouteResolveResponse(BaseModel):
    origin: str
    destination: str
    distance_km: float
    duration_min: float
    source: Literal["provider", "fallback"]
    approximate: bool
    cached: bool
    path: List[GeoPointModel]


class OptimizedRouteModel(BaseModel):
    id: str
    origin: str
    destination: str
    vehicle: str
    driver: str
    original_duration_min: int
    optimized_duration_min: int
    time_saved_min: int
    distance_km: float
    source: Literal["provider", "fallback"]
    path: List[GeoPointModel]


class DeliveryFailureModel(BaseModel):
    delivery_id: str
    reason: str


class OptimizationResponse(BaseModel):
    status: Literal["succeeded", "no_work"]
    message: str
    routes: List[OptimizedRouteModel] = Field(default_factory=list)
    total_time_saved_min: int = 0
    total_distance_km: float = 0.0
    optimization_percentage: int = 0
    failures: List[DeliveryFailureModel] = Field(default_factory=list)
    metadata: dict = Field(default_factory=dict)
