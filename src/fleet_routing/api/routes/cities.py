"""City registry endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, HTTPException, status

from ...data.cities import get_city_registry
from ...exceptions import UnknownCityError
from ...schemas.routing import CityModel

router = APIRouter(prefix="/cities", tags=["cities"])


@router.get("", response_model=List[CityModel], status_code=status.HTTP_200_OK)
def list_cities() -> List[CityModel]:
    return [
        CityModel(name=city.name, latitude=city.location.latitude, longitude=city.location.longitude)
        for city in get_city_registry().cities()
    ]


@router.get("/{name}", response_model=CityModel, status_code=status.HTTP_200_OK)
def get_city(name: str) -> CityModel:
    try:
        point = get_city_registry().lookup(name)
    except UnknownCityError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return CityModel(name=name, latitude=point.latitude, longitude=point.longitude)
