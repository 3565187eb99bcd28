from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from main import app, reset_session


ELEMENTS = [
    {
        "type": "way",
        "id": 10,
        "tags": {"highway": "motorway", "name": "D1"},
        "geometry": [{"lat": 50.0, "lon": 14.0}, {"lat": 50.1, "lon": 14.1}],
    },
    {
        "type": "way",
        "id": 11,
        "tags": {"highway": "residential"},
        "geometry": [
            {"lat": 50.0, "lon": 14.1},
            {"lat": 50.05, "lon": 14.05},
            {"lat": 50.1, "lon": 14.0},
        ],
    },
]


@pytest.fixture
def client(monkeypatch):
    monkeypatch.delenv("ROADVIEW_WORLD_SPACE", raising=False)
    monkeypatch.delenv("ROADVIEW_TELEMETRY", raising=False)
    reset_session()
    yield TestClient(app)
    reset_session()


def _load(client: TestClient) -> dict:
    resp = client.post("/viewport", json={"width": 800, "height": 600})
    assert resp.status_code == 200
    resp = client.post(
        "/network",
        json={"elements": ELEMENTS, "label": "Prague, Czechia", "areaId": 3600435514},
    )
    assert resp.status_code == 200
    return resp.json()


def test_load_network_reports_status(client):
    status = _load(client)
    assert status["label"] == "Prague, Czechia"
    assert status["areaId"] == 3600435514
    assert status["segments"] == 2
    assert status["error"] is None
    assert status["camera"] == {"scale": 1.0, "offsetX": 0.0, "offsetY": 0.0}


def test_plan_paints_minor_before_major(client):
    _load(client)
    data = client.get("/plan").json()
    assert data["motion"] == "still"
    assert data["batched"] is False
    assert [i["tier"] for i in data["items"]] == ["minor", "major"]
    assert [i["roadId"] for i in data["items"]] == ["way/11", "way/10"]
    assert data["items"][1]["style"]["width"] > data["items"][0]["style"]["width"]
    for item in data["items"]:
        for x, y in item["path"]:
            assert 40.0 - 1e-6 <= x <= 760.0 + 1e-6
            assert 40.0 - 1e-6 <= y <= 560.0 + 1e-6
    assert data["stats"]["roadsVisible"] == 2


def test_batched_plan_groups_by_tier(client):
    _load(client)
    data = client.get("/plan", params={"batched": True}).json()
    assert data["batched"] is True
    assert [b["tier"] for b in data["items"]] == ["minor", "major"]
    assert all(len(b["paths"]) == 1 for b in data["items"])


def test_camera_zoom_and_pan(client):
    _load(client)
    resp = client.post("/camera/zoom", json={"x": 400, "y": 300, "factor": 2.0})
    assert resp.json()["camera"] == {"scale": 2.0, "offsetX": -400.0, "offsetY": -300.0}

    resp = client.post("/camera/pan", json={"dx": 10, "dy": -20})
    assert resp.json()["camera"] == {"scale": 2.0, "offsetX": -390.0, "offsetY": -320.0}

    data = client.get("/plan").json()
    assert data["motion"] == "moving"

    resp = client.post("/camera/reset")
    assert resp.json()["camera"] == {"scale": 1.0, "offsetX": 0.0, "offsetY": 0.0}


def test_zoom_rejects_non_positive_factor(client):
    _load(client)
    resp = client.post("/camera/zoom", json={"x": 0, "y": 0, "factor": 0})
    assert resp.status_code == 422


def test_wheel_is_clamped(client):
    _load(client)
    for _ in range(100):
        resp = client.post("/camera/wheel", json={"x": 400, "y": 300, "deltaY": -500})
    assert resp.json()["camera"]["scale"] == 10.0


def test_failed_load_keeps_network(client):
    _load(client)
    status = client.post("/network/error", json={"message": "Overpass timed out"}).json()
    assert status["error"] == "Overpass timed out"
    assert status["segments"] == 2
    assert len(client.get("/plan").json()["items"]) == 2


def test_clear_network(client):
    _load(client)
    status = client.delete("/network").json()
    assert status["segments"] == 0
    assert status["label"] is None
    assert client.get("/plan").json()["items"] == []


def test_telemetry_summary_disabled(client):
    assert client.get("/telemetry/summary").json() == {"enabled": False, "rows": []}


def test_empty_overpass_result_is_a_load_failure(client):
    _load(client)
    status = client.post("/network", json={"elements": [], "label": "Nowhere"}).json()
    assert status["error"] == "No roads found for the selected area"
    assert status["label"] == "Prague, Czechia"
    assert status["segments"] == 2
