import csv
import io
import json
from pathlib import Path

import pytest

from fleet_routing.models.domain import GeoPoint, OptimizationResult, OptimizedRoute
from fleet_routing.persistence.filesystem import FileStorage
from fleet_routing.services.export.geojson import ROUTE_COLORS, routes_to_feature_collection
from fleet_routing.services.outputs.routing_formatter import optimization_result_to_csv
from fleet_routing.services.routing.metrics import format_distance, format_duration
from fleet_routing.services.routing.service import persist_optimization_run


def _route(route_id: str, path, source: str = "provider") -> OptimizedRoute:
    return OptimizedRoute(
        id=route_id,
        origin="Casablanca",
        destination="Rabat",
        vehicle="TL-1000",
        driver="Chauffeur 1",
        original_duration_min=80,
        optimized_duration_min=68,
        time_saved_min=12,
        distance_km=87.0,
        path=tuple(path),
        source=source,
    )


@pytest.fixture
def result() -> OptimizationResult:
    return OptimizationResult(
        routes=[
            _route("r1", [GeoPoint(33.5731, -7.5898), GeoPoint(34.0209, -6.8416)]),
            _route("r2", [GeoPoint(31.6295, -7.9811), GeoPoint(30.4278, -9.5981)], source="fallback"),
        ],
        total_time_saved_min=24,
        total_distance_km=174.0,
        optimization_percentage=15,
    )


@pytest.mark.parametrize(
    "minutes, expected",
    [(0, "0min"), (45, "45min"), (60, "1h 00min"), (65, "1h 05min"), (185.4, "3h 05min")],
)
def test_format_duration(minutes, expected):
    assert format_duration(minutes) == expected


def test_format_distance():
    assert format_distance(86.6) == "87 km"


def test_feature_collection_bbox_covers_all_routes(result):
    collection = routes_to_feature_collection(result)

    assert collection["type"] == "FeatureCollection"
    assert collection["bbox"] == pytest.approx([-9.5981, 30.4278, -6.8416, 34.0209])
    first, second = collection["features"]
    assert first["geometry"]["type"] == "LineString"
    assert first["geometry"]["coordinates"][0] == pytest.approx((-7.5898, 33.5731))
    assert first["properties"]["color"] == ROUTE_COLORS[0]
    assert first["properties"]["approximate"] is False
    assert second["properties"]["approximate"] is True


def test_feature_collection_without_routes_has_no_bbox():
    empty = OptimizationResult(routes=[], total_time_saved_min=0, total_distance_km=0.0, optimization_percentage=0)

    collection = routes_to_feature_collection(empty)

    assert collection["features"] == []
    assert "bbox" not in collection


def test_csv_contains_formatted_columns(result):
    rows = list(csv.DictReader(io.StringIO(optimization_result_to_csv(result))))

    assert [row["id"] for row in rows] == ["r1", "r2"]
    assert rows[0]["distance"] == "87 km"
    assert rows[0]["optimized_duration"] == "1h 08min"
    assert rows[1]["source"] == "fallback"


def test_persist_writes_summary_csv_and_geojson(result, tmp_path: Path):
    run_dir = persist_optimization_run(result, storage=FileStorage(root=tmp_path))

    assert run_dir.parent == tmp_path.resolve() / "outputs"
    summary = json.loads((run_dir / "summary.json").read_text(encoding="utf-8"))
    assert summary["total_time_saved_min"] == 24
    assert len(summary["routes"]) == 2
    assert (run_dir / "routes.csv").read_text(encoding="utf-8").startswith("id,origin,destination")
    geojson = json.loads((run_dir / "routes.geojson").read_text(encoding="utf-8"))
    assert len(geojson["features"]) == 2


def test_file_storage_writes_json_and_csv(tmp_path: Path):
    storage = FileStorage(root=tmp_path)
    run_dir = storage.make_run_directory(prefix="optimization_test")

    storage.write_json(run_dir / "summary.json", {"hello": "world"})
    storage.write_csv(run_dir / "routes.csv", "a,b\n1,2\n")

    assert (run_dir / "summary.json").read_text(encoding="utf-8") == '{\n  "hello": "world"\n}'
    assert (run_dir / "routes.csv").read_text(encoding="utf-8") == "a,b\n1,2\n"
