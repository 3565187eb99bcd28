from __future__ import annotations

import math
from dataclasses import dataclass, field

from pydantic import BaseModel, Field, model_validator

from geo.rect import Rect

# Smallest allowed zoom. Keeps world-space tolerances and visible rects finite.
MIN_SCALE = 1e-12
# Largest |ln(factor)| a single wheel event can produce.
MAX_WHEEL_LOG_FACTOR = 700.0


class CameraConfig(BaseModel):
    """
    Zoom clamp and wheel mapping.

    Use `max_scale=inf` (and `min_scale=MIN_SCALE`) for an unbounded camera; a hard range like
    [1, 10] keeps the camera from zooming out past the fitted view.
    """

    min_scale: float = Field(default=1.0, ge=MIN_SCALE)
    max_scale: float = Field(default=10.0, gt=0.0)
    wheel_base: float = Field(default=1.1, gt=1.0)
    wheel_normalization: float = Field(default=100.0, gt=0.0)

    @model_validator(mode="after")
    def _check_range(self) -> "CameraConfig":
        if self.min_scale > self.max_scale:
            raise ValueError(
                f"min_scale ({self.min_scale}) must not exceed max_scale ({self.max_scale})"
            )
        return self

    def clamp(self, scale: float) -> float:
        return max(self.min_scale, min(self.max_scale, scale))


def wheel_factor(delta_y: float, *, base: float = 1.1, normalization: float = 100.0) -> float:
    """
    Map a wheel delta to a zoom factor on a logarithmic scale.

    Negative deltaY (scroll up/forward) zooms in. Dividing by `normalization` makes
    trackpads (many small deltas) and wheels (few large ones) zoom at the same rate.
    """
    limit = MAX_WHEEL_LOG_FACTOR / math.log(base)
    exponent = max(-limit, min(limit, -float(delta_y) / normalization))
    return base ** exponent


@dataclass(frozen=True)
class CameraState:
    scale: float
    offset_x: float
    offset_y: float

    def as_dict(self) -> dict[str, float]:
        return {"scale": self.scale, "offsetX": self.offset_x, "offsetY": self.offset_y}

    def to_screen(self, point: tuple[float, float]) -> tuple[float, float]:
        return (point[0] * self.scale + self.offset_x, point[1] * self.scale + self.offset_y)

    def to_world(self, point: tuple[float, float]) -> tuple[float, float]:
        return ((point[0] - self.offset_x) / self.scale, (point[1] - self.offset_y) / self.scale)

    def visible_world_rect(self, width: float, height: float) -> Rect:
        """
        World-space rectangle currently on screen (inverse transform of the corners).
        """
        x0, y0 = self.to_world((0.0, 0.0))
        x1, y1 = self.to_world((float(width), float(height)))
        return Rect(min_x=min(x0, x1), min_y=min(y0, y1), max_x=max(x0, x1), max_y=max(y0, y1))


@dataclass
class Camera:
    """
    Pan/zoom state: screen = world * scale + offset.
    """

    config: CameraConfig = field(default_factory=CameraConfig)
    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0

    def __post_init__(self) -> None:
        self.scale = self.config.clamp(self.scale)

    @property
    def state(self) -> CameraState:
        return CameraState(scale=self.scale, offset_x=self.offset_x, offset_y=self.offset_y)

    def pan_by(self, dx: float, dy: float) -> None:
        self.offset_x += dx
        self.offset_y += dy

    def zoom_at(self, screen_x: float, screen_y: float, factor: float) -> None:
        """
        Zoom by `factor`, keeping the world point under (screen_x, screen_y) in place.
        """
        if not math.isfinite(factor) or factor <= 0:
            raise ValueError(f"zoom factor must be positive and finite, got {factor!r}")
        old = self.scale
        new = self.config.clamp(old * factor)
        if not math.isfinite(new) or new <= 0 or new == old:
            return
        ratio = new / old
        self.offset_x = screen_x - (screen_x - self.offset_x) * ratio
        self.offset_y = screen_y - (screen_y - self.offset_y) * ratio
        self.scale = new

    def wheel(self, screen_x: float, screen_y: float, delta_y: float) -> None:
        cfg = self.config
        self.zoom_at(
            screen_x,
            screen_y,
            wheel_factor(delta_y, base=cfg.wheel_base, normalization=cfg.wheel_normalization),
        )

    def reset(self) -> None:
        self.scale = self.config.clamp(1.0)
        self.offset_x = 0.0
        self.offset_y = 0.0

    def fit(self, world: Rect | None, width: float, height: float, *, padding: float = 0.0) -> None:
        """
        Center `world` in the viewport at the largest scale that fits (clamped).

        No extent (None, zero span) falls back to a neutral scale around its center.
        """
        if world is None or width <= 0 or height <= 0:
            self.reset()
            return
        avail_w = max(width - 2.0 * padding, 1.0)
        avail_h = max(height - 2.0 * padding, 1.0)
        candidates: list[float] = []
        if world.width > 0:
            candidates.append(avail_w / world.width)
        if world.height > 0:
            candidates.append(avail_h / world.height)
        s = self.config.clamp(min(candidates) if candidates else 1.0)
        if not math.isfinite(s) or s <= 0:
            s = self.config.clamp(1.0)
        cx, cy = world.center
        self.scale = s
        self.offset_x = width / 2.0 - cx * s
        self.offset_y = height / 2.0 - cy * s

    def to_screen(self, point: tuple[float, float]) -> tuple[float, float]:
        return self.state.to_screen(point)

    def to_world(self, point: tuple[float, float]) -> tuple[float, float]:
        return self.state.to_world(point)

    def visible_world_rect(self, width: float, height: float) -> Rect:
        return self.state.visible_world_rect(width, height)
