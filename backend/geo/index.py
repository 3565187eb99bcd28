from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Hashable

from shapely.geometry import LineString
from shapely.geometry import box as shapely_box
from shapely.strtree import STRtree

from geo.rect import Rect
from roads.types import Road
from view.cull import is_visible


@dataclass(frozen=True)
class ProjectedRoad:
    road: Road
    points: list[tuple[float, float]]
    bbox: Rect


@dataclass
class RoadIndex:
    """
    Projected roads of one network plus an STRtree over them.

    Built once per (network revision, world space); culling then costs one tree query
    per redraw instead of a bbox test per road.
    """

    key: Hashable
    roads: list[ProjectedRoad]
    # Roads dropped at build time for having fewer than two points.
    skipped: int = 0
    _tree: STRtree | None = field(default=None, repr=False)

    @classmethod
    def build(
        cls, key: Hashable, roads: list[tuple[Road, list[tuple[float, float]]]]
    ) -> "RoadIndex":
        kept: list[ProjectedRoad] = []
        skipped = 0
        for road, pts in roads:
            if len(pts) < 2:
                skipped += 1
                continue
            bbox = Rect.of(pts)
            kept.append(ProjectedRoad(road=road, points=pts, bbox=bbox))  # type: ignore[arg-type]
        tree = STRtree([LineString(r.points) for r in kept]) if kept else None
        return cls(key=key, roads=kept, skipped=skipped, _tree=tree)

    def visible(self, rect: Rect) -> list[ProjectedRoad]:
        """
        Roads whose bbox overlaps `rect`, in original road order.
        """
        if self._tree is None:
            return []
        idxs = _to_int_list(self._tree.query(shapely_box(*rect.as_tuple())))
        idxs.sort()
        # The tree query is envelope based; confirm with the exact overlap test.
        return [self.roads[i] for i in idxs if is_visible(self.roads[i].bbox, rect)]


def _to_int_list(arr: Any) -> list[int]:
    # Shapely STRtree returns numpy.ndarray of indices.
    try:
        return [int(x) for x in arr.tolist()]
    except AttributeError:
        return [int(x) for x in arr]
