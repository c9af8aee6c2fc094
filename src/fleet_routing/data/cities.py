"""City registry: static Moroccan city coordinates with an optional workbook supplement."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping

from openpyxl import load_workbook

from ..config import settings
from ..exceptions import UnknownCityError
from ..models.domain import City, GeoPoint

logger = logging.getLogger(__name__)

CITY_COORDINATES: Mapping[str, tuple[float, float]] = MappingProxyType(
    {
        "Casablanca": (33.5731, -7.5898),
        "Rabat": (34.0209, -6.8416),
        "Marrakech": (31.6295, -7.9811),
        "Fès": (34.0181, -5.0078),
        "Tanger": (35.7595, -5.8340),
        "Agadir": (30.4278, -9.5981),
        "Meknès": (33.8935, -5.5473),
        "Oujda": (34.6814, -1.9086),
        "Tétouan": (35.5889, -5.3626),
        "Kénitra": (34.2610, -6.5802),
        "Ifrane": (33.5228, -5.1106),
        "Béni Mellal": (32.3373, -6.3498),
        "Laâyoune": (27.1253, -13.1625),
        "Errachidia": (31.9314, -4.4246),
        "Ouarzazate": (30.9189, -6.8934),
        "Essaouira": (31.5084, -9.7595),
        "Settat": (33.0011, -7.6167),
        "Khémisset": (33.8241, -6.0661),
        "Azrou": (33.4342, -5.2228),
        "El Jadida": (33.2316, -8.5007),
        "Témara": (33.9281, -6.9067),
    }
)


class CityRegistry:
    """Read-only mapping from exact city names to coordinates."""

    def __init__(self, coordinates: Mapping[str, tuple[float, float]] | None = None) -> None:
        source = CITY_COORDINATES if coordinates is None else coordinates
        self._points: Mapping[str, GeoPoint] = MappingProxyType(
            {name: GeoPoint(latitude=lat, longitude=lon) for name, (lat, lon) in source.items()}
        )

    def lookup(self, city_name: str) -> GeoPoint:
        try:
            return self._points[city_name]
        except KeyError:
            raise UnknownCityError(city_name) from None

    def cities(self) -> list[City]:
        return [City(name=name, location=point) for name, point in self._points.items()]

    def __contains__(self, city_name: object) -> bool:
        return city_name in self._points

    def __iter__(self) -> Iterator[str]:
        return iter(self._points)

    def __len__(self) -> int:
        return len(self._points)


def _load_cities_from_file(source: Path) -> dict[str, tuple[float, float]]:
    """Load extra cities from an Excel workbook with City/Latitude/Longitude columns."""
    if not source.exists():
        raise FileNotFoundError(f"City workbook not found: {source}")

    wb = load_workbook(source, data_only=True, read_only=True)
    try:
        sheet = wb.active
        rows = sheet.iter_rows(min_row=1, values_only=True)
        header = next(rows, None)
        if header is None:
            raise ValueError(f"City workbook '{source}' is empty.")

        header_map = {name: idx for idx, name in enumerate(header)}
        missing_columns = {"City", "Latitude", "Longitude"} - set(header_map)
        if missing_columns:
            raise ValueError(f"City workbook missing columns: {', '.join(sorted(missing_columns))}")

        cities: dict[str, tuple[float, float]] = {}
        for row in rows:
            name = row[header_map["City"]]
            if not name:
                continue
            cities[str(name).strip()] = (
                float(row[header_map["Latitude"]]),
                float(row[header_map["Longitude"]]),
            )
        return cities
    finally:
        wb.close()


def build_city_registry(source: Path | None = None) -> CityRegistry:
    """Built-in cities, supplemented by the workbook when one is given."""
    coordinates = dict(CITY_COORDINATES)
    if source is not None:
        extra = _load_cities_from_file(source)
        logger.info("Loaded %d cities from %s", len(extra), source)
        coordinates.update(extra)
    return CityRegistry(coordinates)


@lru_cache()
def get_city_registry() -> CityRegistry:
    """Process-wide registry, built once from settings."""
    return build_city_registry(settings.city_registry_file)
