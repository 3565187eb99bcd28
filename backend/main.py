from __future__ import annotations

import threading
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from render.config import RenderConfig
from render.session import MapSession
from roads.loaders import load_overpass_roads
from telemetry.singleton import get_store

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_SESSION: MapSession | None = None
_SESSION_LOCK = threading.RLock()


def get_session() -> MapSession:
    global _SESSION
    with _SESSION_LOCK:
        if _SESSION is None:
            _SESSION = MapSession(RenderConfig.from_env())
        return _SESSION


def reset_session() -> None:
    global _SESSION
    with _SESSION_LOCK:
        _SESSION = None


class ApiCenter(BaseModel):
    lat: float
    lon: float


class ApiNetwork(BaseModel):
    # Overpass `out geom;` elements, passed through as-is.
    elements: list[dict[str, Any]]
    label: str | None = None
    areaId: int | None = None
    center: ApiCenter | None = None


class ApiLoadError(BaseModel):
    message: str


class ApiViewport(BaseModel):
    width: float = Field(ge=0.0)
    height: float = Field(ge=0.0)


class ApiPan(BaseModel):
    dx: float
    dy: float


class ApiZoom(BaseModel):
    x: float
    y: float
    factor: float = Field(gt=0.0, allow_inf_nan=False)


class ApiWheel(BaseModel):
    x: float
    y: float
    deltaY: float = Field(allow_inf_nan=False)


def _status(session: MapSession) -> dict[str, Any]:
    network = session.network
    return {
        "label": network.label if network is not None else None,
        "areaId": network.area_id if network is not None else None,
        "segments": network.segment_count if network is not None else 0,
        "error": session.error,
        "camera": session.camera.state.as_dict(),
    }


@app.post("/network")
def load_network(body: ApiNetwork):
    session = get_session()
    with _SESSION_LOCK:
        network = load_overpass_roads(
            {"elements": body.elements},
            label=body.label,
            area_id=body.areaId,
            center=(body.center.lat, body.center.lon) if body.center else None,
        )
        if network.segment_count == 0:
            # An empty Overpass result means the area query failed; keep what is on screen.
            session.load_failed("No roads found for the selected area")
        else:
            session.load_network(network)
        return _status(session)


@app.post("/network/error")
def network_error(body: ApiLoadError):
    session = get_session()
    with _SESSION_LOCK:
        session.load_failed(body.message)
        return _status(session)


@app.delete("/network")
def clear_network():
    session = get_session()
    with _SESSION_LOCK:
        session.clear()
        return _status(session)


@app.post("/viewport")
def set_viewport(body: ApiViewport):
    session = get_session()
    with _SESSION_LOCK:
        # Each request is already a settled size; no need to wait out the debounce.
        session.resize(body.width, body.height)
        session.flush()
        return _status(session)


@app.post("/camera/pan")
def pan(body: ApiPan):
    session = get_session()
    with _SESSION_LOCK:
        session.pan_by(body.dx, body.dy)
        return _status(session)


@app.post("/camera/zoom")
def zoom(body: ApiZoom):
    session = get_session()
    with _SESSION_LOCK:
        session.zoom_at(body.x, body.y, body.factor)
        return _status(session)


@app.post("/camera/wheel")
def wheel(body: ApiWheel):
    session = get_session()
    with _SESSION_LOCK:
        session.wheel(body.x, body.y, body.deltaY)
        return _status(session)


@app.post("/camera/reset")
def reset_camera():
    session = get_session()
    with _SESSION_LOCK:
        session.reset_view()
        return _status(session)


@app.get("/plan")
def get_plan(batched: bool = False):
    session = get_session()
    with _SESSION_LOCK:
        session.tick()
        plan = session.frame()
        payload = plan.as_payload(session.planner.styles, batched=batched)
        payload.update(_status(session))
        return payload


@app.get("/telemetry/summary")
def telemetry_summary(motion: str | None = None):
    store = get_store()
    if store is None:
        return {"enabled": False, "rows": []}
    return {"enabled": True, "rows": store.summary(motion=motion)}
