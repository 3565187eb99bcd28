from __future__ import annotations

import math
import os
from typing import Literal

from pydantic import BaseModel, Field

from lod.policy import ToleranceProfile
from view.camera import MIN_SCALE, CameraConfig

WorldSpace = Literal["viewport", "meters"]
Projection = Literal["equirectangular", "aeqd"]


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if raw:
        try:
            return float(raw)
        except ValueError:
            pass
    return default


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if raw:
        try:
            return int(raw)
        except ValueError:
            pass
    return default


def _env_flag(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw not in {"0", "false", "no", "off"}


def world_space_from_env() -> WorldSpace:
    raw = (os.getenv("ROADVIEW_WORLD_SPACE") or "viewport").strip().lower()
    return "meters" if raw == "meters" else "viewport"


def projection_from_env() -> Projection:
    raw = (os.getenv("ROADVIEW_PROJECTION") or "equirectangular").strip().lower()
    return "aeqd" if raw == "aeqd" else "equirectangular"


class RenderConfig(BaseModel):
    """
    Everything the render pipeline can be tuned with.

    - `viewport`: world space is the dataset fitted into the current viewport (pixels);
      it is re-projected on resize and the camera zooms within [1, 10] by default.
    - `meters`: world space is ground meters around the dataset center; it never
      changes on resize and the camera is unbounded by default.
      `projection` picks the local projection: equirectangular (fast) or pyproj
      azimuthal equidistant (true distances over a whole metro area).
    """

    world_space: WorldSpace = "viewport"
    projection: Projection = "equirectangular"
    camera: CameraConfig = Field(default_factory=CameraConfig)
    still_tolerance_px: float = Field(default=1.0, gt=0.0)
    moving_tolerance_px: float = Field(default=3.0, gt=0.0)
    settle_ms: float = Field(default=150.0, gt=0.0)
    resize_debounce_ms: float = Field(default=50.0, gt=0.0)
    padding_px: float = Field(default=40.0, ge=0.0)
    # 0 disables the vertex budget.
    max_vertices: int = Field(default=200_000, ge=0)
    path_cache: bool = True

    @property
    def tolerances(self) -> ToleranceProfile:
        return ToleranceProfile(still_px=self.still_tolerance_px, moving_px=self.moving_tolerance_px)

    @classmethod
    def for_world_space(cls, world_space: WorldSpace, **kwargs) -> "RenderConfig":
        if "camera" not in kwargs and world_space == "meters":
            kwargs["camera"] = CameraConfig(min_scale=MIN_SCALE, max_scale=math.inf)
        return cls(world_space=world_space, **kwargs)

    @classmethod
    def from_env(cls) -> "RenderConfig":
        ws = world_space_from_env()
        unbounded = ws == "meters"
        camera = CameraConfig(
            min_scale=max(
                _env_float("ROADVIEW_MIN_SCALE", MIN_SCALE if unbounded else 1.0), MIN_SCALE
            ),
            max_scale=_env_float("ROADVIEW_MAX_SCALE", math.inf if unbounded else 10.0),
            wheel_base=_env_float("ROADVIEW_WHEEL_BASE", 1.1),
            wheel_normalization=_env_float("ROADVIEW_WHEEL_NORMALIZATION", 100.0),
        )
        return cls(
            world_space=ws,
            projection=projection_from_env(),
            camera=camera,
            still_tolerance_px=_env_float("ROADVIEW_STILL_TOLERANCE_PX", 1.0),
            moving_tolerance_px=_env_float("ROADVIEW_MOVING_TOLERANCE_PX", 3.0),
            settle_ms=_env_float("ROADVIEW_SETTLE_MS", 150.0),
            resize_debounce_ms=_env_float("ROADVIEW_RESIZE_DEBOUNCE_MS", 50.0),
            padding_px=_env_float("ROADVIEW_PADDING_PX", 40.0),
            max_vertices=_env_int("ROADVIEW_MAX_VERTICES", 200_000),
            path_cache=_env_flag("ROADVIEW_PATH_CACHE", True),
        )
