from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from fleet_routing.data.cities import CityRegistry
from fleet_routing.exceptions import ProviderHTTPError
from fleet_routing.main import app
from fleet_routing.services.routing import osrm_client
from fleet_routing.services.routing import service as routing_service
from fleet_routing.services.routing.cache import LRURouteCache
from fleet_routing.services.routing.optimizer import RouteOptimizer, fixed_optimization_factor
from fleet_routing.services.routing.resolver import RouteResolver

from conftest import RecordingProvider


@pytest.fixture
def optimizer(monkeypatch, provider) -> RouteOptimizer:
    optimizer = RouteOptimizer(
        resolver=RouteResolver(provider=provider, cache=LRURouteCache()),
        registry=CityRegistry(),
        optimization_factor=fixed_optimization_factor(0.15),
    )
    monkeypatch.setattr(routing_service, "_optimizer", optimizer)
    return optimizer


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"
    assert client.get("/api/health").json() == {"status": "ok"}


def test_osrm_health_reports_provider_state(client, monkeypatch):
    async def unreachable(base_url=None, transport=None):
        return False

    monkeypatch.setattr(osrm_client, "check_health", unreachable)

    response = client.get("/api/health/osrm")

    assert response.status_code == 200
    assert response.json() == {"service": "osrm", "healthy": False, "fallback_available": True}


def test_list_and_get_cities(client):
    cities = client.get("/api/cities").json()

    assert {"name": "Rabat", "latitude": 34.0209, "longitude": -6.8416} in cities
    assert client.get("/api/cities/Marrakech").json()["latitude"] == 31.6295
    assert client.get("/api/cities/Atlantis").status_code == 404


def test_optimize_endpoint(client, optimizer):
    response = client.post(
        "/api/routes/optimize",
        json={
            "deliveries": [
                {"id": 1, "status": "planned", "origin": "Casablanca", "destination": "Rabat"},
                {"id": 2, "status": "completed", "origin": "Casablanca", "destination": "Fès"},
            ]
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "succeeded"
    assert [route["id"] for route in body["routes"]] == ["1"]
    assert body["routes"][0]["time_saved_min"] == 18
    assert body["total_time_saved_min"] == 18
    assert body["metadata"]["approximate_routes"] == 0
    assert [event["kind"] for event in body["metadata"]["events"]] == ["started", "succeeded"]


def test_optimize_endpoint_no_work(client, optimizer):
    response = client.post("/api/routes/optimize", json={"deliveries": [{"status": "cancelled"}]})

    assert response.status_code == 200
    assert response.json()["status"] == "no_work"
    assert response.json()["routes"] == []


def test_optimize_endpoint_unknown_city(client, optimizer):
    response = client.post(
        "/api/routes/optimize",
        json={"deliveries": [{"status": "planned", "origin": "Atlantis", "destination": "Rabat"}]},
    )

    assert response.status_code == 400
    assert "Atlantis" in response.json()["detail"]


def test_optimize_endpoint_persists_outputs(client, optimizer, monkeypatch, tmp_path):
    original_storage = routing_service.FileStorage
    monkeypatch.setattr(routing_service, "FileStorage", lambda: original_storage(root=tmp_path))

    response = client.post(
        "/api/routes/optimize",
        json={"deliveries": [{"status": "planned", "destination": "Agadir"}], "persist": True},
    )

    output_dir = Path(response.json()["metadata"]["output_dir"])
    assert output_dir.parent == tmp_path.resolve() / "outputs"
    assert sorted(path.name for path in output_dir.iterdir()) == [
        "routes.csv",
        "routes.geojson",
        "summary.json",
    ]


def test_resolve_endpoint_marks_fallback(client, monkeypatch):
    failing = RouteOptimizer(
        resolver=RouteResolver(provider=RecordingProvider(error=ProviderHTTPError("down")), cache=LRURouteCache()),
        registry=CityRegistry(),
    )
    monkeypatch.setattr(routing_service, "_optimizer", failing)

    first = client.post("/api/routes/resolve", json={"origin": "Casablanca", "destination": "Rabat"}).json()
    second = client.post("/api/routes/resolve", json={"origin": "Casablanca", "destination": "Rabat"}).json()

    assert first["source"] == "fallback"
    assert first["approximate"] is True
    assert first["cached"] is False
    assert second["cached"] is True
    assert first["path"][0] == {"latitude": 33.5731, "longitude": -7.5898}


def test_resolve_endpoint_unknown_city(client, optimizer):
    response = client.post("/api/routes/resolve", json={"origin": "Casablanca", "destination": "Atlantis"})

    assert response.status_code == 404


def test_clear_cache_endpoint(client, optimizer, provider):
    client.post("/api/routes/resolve", json={"origin": "Casablanca", "destination": "Rabat"})

    response = client.delete("/api/routes/cache")

    assert response.json()["cleared_entries"] == 1
    assert len(optimizer.resolver.cache) == 0
