from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeAlias

from geo.aoi import Bounds


GeoPoint: TypeAlias = tuple[float, float]  # (lat, lon) degrees, WGS84
PlanePoint: TypeAlias = tuple[float, float]  # (x, y) in projection units
ScreenPoint: TypeAlias = tuple[float, float]

_revisions = itertools.count(1)


class StyleTier(str, Enum):
    minor = "minor"
    major = "major"


class MotionHint(str, Enum):
    still = "still"
    moving = "moving"


@dataclass(frozen=True)
class Road:
    id: str
    road_class: str
    points: tuple[GeoPoint, ...]
    name: str = "Unnamed Road"

    @property
    def closed(self) -> bool:
        return len(self.points) > 1 and self.points[0] == self.points[-1]


@dataclass(frozen=True)
class RoadNetwork:
    """
    A loaded dataset snapshot.

    Replaced wholesale on every load. `revision` identifies the snapshot for caches;
    two networks never share one.
    """

    roads: tuple[Road, ...]
    bounds: Bounds | None
    label: str | None = None
    # Opaque identifier from the ingestion side (e.g. an Overpass area id).
    area_id: int | None = None
    center: GeoPoint | None = None
    revision: int = field(default_factory=lambda: next(_revisions), compare=False)

    @classmethod
    def from_roads(
        cls,
        roads: list[Road],
        *,
        label: str | None = None,
        area_id: int | None = None,
        center: GeoPoint | None = None,
    ) -> "RoadNetwork":
        bounds = Bounds.of(p for r in roads for p in r.points)
        return cls(
            roads=tuple(roads),
            bounds=bounds,
            label=label,
            area_id=area_id,
            center=center,
        )

    @property
    def segment_count(self) -> int:
        return len(self.roads)

    def reference(self) -> GeoPoint | None:
        if self.center is not None:
            return self.center
        if self.bounds is None:
            return None
        return self.bounds.center


@dataclass(frozen=True)
class DrawItem:
    tier: StyleTier
    road_id: str
    path: list[ScreenPoint]


@dataclass(frozen=True)
class DrawBatch:
    tier: StyleTier
    paths: list[list[ScreenPoint]]
