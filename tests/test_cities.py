from pathlib import Path

import pytest
from openpyxl import Workbook

from fleet_routing.data.cities import CITY_COORDINATES, CityRegistry, build_city_registry
from fleet_routing.exceptions import UnknownCityError
from fleet_routing.models.domain import GeoPoint


def test_lookup_known_city():
    registry = CityRegistry()

    assert registry.lookup("Casablanca") == GeoPoint(33.5731, -7.5898)
    assert "Laâyoune" in registry
    assert len(registry) == len(CITY_COORDINATES)


def test_lookup_is_exact_match():
    registry = CityRegistry()

    with pytest.raises(UnknownCityError):
        registry.lookup("casablanca")
    with pytest.raises(UnknownCityError):
        registry.lookup("Fes")


def test_cities_lists_every_entry():
    names = [city.name for city in CityRegistry().cities()]

    assert names == list(CITY_COORDINATES)


def _write_workbook(path: Path, rows) -> Path:
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    wb.save(path)
    return path


def test_workbook_supplements_builtin_cities(tmp_path: Path):
    source = _write_workbook(
        tmp_path / "cities.xlsx",
        [
            ("City", "Latitude", "Longitude"),
            ("Nador", 35.1681, -2.9335),
            ("Rabat", 34.02, -6.84),
        ],
    )

    registry = build_city_registry(source)

    assert registry.lookup("Nador") == GeoPoint(35.1681, -2.9335)
    assert registry.lookup("Rabat") == GeoPoint(34.02, -6.84)
    assert registry.lookup("Casablanca") == GeoPoint(33.5731, -7.5898)


def test_workbook_missing_columns_is_rejected(tmp_path: Path):
    source = _write_workbook(tmp_path / "bad.xlsx", [("Name", "Lat"), ("Nador", 35.1)])

    with pytest.raises(ValueError, match="missing columns"):
        build_city_registry(source)


def test_missing_workbook_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        build_city_registry(tmp_path / "absent.xlsx")
