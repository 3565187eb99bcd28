from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

from geo.index import ProjectedRoad, RoadIndex
from geo.projection import project, project_aeqd, viewport_fit
from geo.rect import Rect
from lod.cache import PathCache
from lod.policy import (
    bucket_tolerance,
    cap_to_vertex_budget,
    escalation_steps,
    tolerance_bucket,
    world_tolerance,
)
from lod.simplify import count_vertices, simplify
from render.config import RenderConfig
from roads.classify import TIER_ORDER, classify
from roads.styles import TierStyles, default_tier_styles
from roads.types import DrawBatch, DrawItem, MotionHint, Road, RoadNetwork, StyleTier
from telemetry.singleton import get_store
from view.camera import CameraState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float

    @property
    def empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class DrawPlan:
    """
    Everything a renderer needs for one redraw: draw items in paint order (minor tier
    first, major last) with screen-space paths, plus the camera transform they were
    produced with.
    """

    items: list[DrawItem]
    camera: CameraState
    viewport: Viewport
    motion: MotionHint
    tolerance: float | None
    stats: dict[str, Any] = field(default_factory=dict)

    def batches(self) -> list[DrawBatch]:
        """
        One batch per tier, in paint order, for single-pass stroking.
        """
        by_tier: dict[StyleTier, list[list[tuple[float, float]]]] = {t: [] for t in TIER_ORDER}
        for item in self.items:
            by_tier[item.tier].append(item.path)
        return [DrawBatch(tier=t, paths=by_tier[t]) for t in TIER_ORDER if by_tier[t]]

    def as_payload(self, styles: TierStyles, *, batched: bool = False) -> dict[str, Any]:
        def style(tier: StyleTier) -> dict[str, Any]:
            return styles.for_tier(tier).model_dump()

        if batched:
            layers = [
                {"tier": b.tier.value, "style": style(b.tier), "paths": b.paths}
                for b in self.batches()
            ]
        else:
            layers = [
                {"tier": i.tier.value, "roadId": i.road_id, "style": style(i.tier), "path": i.path}
                for i in self.items
            ]
        return {
            "camera": self.camera.as_dict(),
            "viewport": {"width": self.viewport.width, "height": self.viewport.height},
            "motion": self.motion.value,
            "tolerance": self.tolerance,
            "batched": batched,
            "items": layers,
            "stats": self.stats,
        }


class RenderPlanner:
    """
    Turns (network, camera, viewport, motion) into a `DrawPlan`.

    Per pass: project (once per network and world space) -> cull against the visible
    world rect -> simplify at a tolerance derived from scale and motion -> classify
    into tiers -> emit minor then major. Projection, the road index and simplified
    paths are memoized; the output only depends on the inputs.
    """

    def __init__(
        self,
        config: RenderConfig | None = None,
        *,
        styles: TierStyles | None = None,
        record_telemetry: bool = True,
    ):
        self.config = config or RenderConfig()
        self.styles = styles or default_tier_styles()
        self.record_telemetry = record_telemetry
        self._majors = self.styles.major_set()
        self._index: RoadIndex | None = None
        self._cache = PathCache()

    def world_key(self, viewport: Viewport) -> tuple:
        if self.config.world_space == "viewport":
            return ("viewport", float(viewport.width), float(viewport.height), self.config.padding_px)
        return ("meters", self.config.projection)

    def road_index(self, network: RoadNetwork, viewport: Viewport) -> RoadIndex:
        key = (network.revision, self.world_key(viewport))
        if self._index is not None and self._index.key == key:
            return self._index
        self._index = RoadIndex.build(key, self._project_network(network, viewport))
        if self._index.skipped:
            logger.debug("skipped %d roads with fewer than 2 points", self._index.skipped)
        return self._index

    def world_rect(self, network: RoadNetwork, viewport: Viewport) -> Rect | None:
        """
        Extent of the projected network, used to fit the camera.
        """
        index = self.road_index(network, viewport)
        return Rect.of(
            corner
            for r in index.roads
            for corner in ((r.bbox.min_x, r.bbox.min_y), (r.bbox.max_x, r.bbox.max_y))
        )

    def invalidate(self) -> None:
        self._index = None
        self._cache.clear()

    def plan(
        self,
        network: RoadNetwork | None,
        camera: CameraState,
        viewport: Viewport,
        motion: MotionHint = MotionHint.still,
    ) -> DrawPlan:
        t0 = time.perf_counter()
        stats: dict[str, Any] = {
            "worldSpace": self.config.world_space,
            "roadsTotal": network.segment_count if network is not None else 0,
        }
        if network is None or viewport.empty:
            stats["timingsMs"] = {"total": _ms(t0)}
            return DrawPlan(
                items=[], camera=camera, viewport=viewport, motion=motion, tolerance=None, stats=stats
            )

        index = self.road_index(network, viewport)
        self._cache.bind(index.key)
        t_index = time.perf_counter()

        visible = index.visible(camera.visible_world_rect(viewport.width, viewport.height))
        t_cull = time.perf_counter()

        tolerance = world_tolerance(self.config.tolerances, motion, camera.scale)
        hits0, misses0 = self._cache.hits, self._cache.misses
        paths: list[list[tuple[float, float]]] = []
        used_tolerance = tolerance
        escalations = 0
        budget = self.config.max_vertices
        for step, tol in enumerate(escalation_steps(tolerance)):
            paths, used_tolerance = self._simplify_all(visible, tol)
            escalations = step
            if not budget or count_vertices(paths) <= budget:
                break

        tiers = [classify(r.road.road_class, self._majors) for r in visible]
        dropped: set[int] = set()
        if budget and count_vertices(paths) > budget:
            dropped = cap_to_vertex_budget(
                [(i, tiers[i], len(p)) for i, p in enumerate(paths)], budget
            )
        t_simplify = time.perf_counter()

        items: list[DrawItem] = []
        for tier in TIER_ORDER:
            for i, r in enumerate(visible):
                if tiers[i] != tier or i in dropped:
                    continue
                items.append(
                    DrawItem(
                        tier=tier,
                        road_id=r.road.id,
                        path=[camera.to_screen(p) for p in paths[i]],
                    )
                )

        stats.update(
            {
                "roadsProjected": len(index.roads),
                "skippedRoads": index.skipped,
                "roadsVisible": len(visible),
                "verticesIn": sum(len(r.points) for r in visible),
                "verticesOut": sum(len(i.path) for i in items),
                "tolerance": used_tolerance,
                "toleranceBucket": tolerance_bucket(used_tolerance)
                if self.config.path_cache
                else None,
                "budgetEscalations": escalations,
                "droppedRoads": len(dropped),
                "countsByTier": {t.value: sum(1 for i in items if i.tier == t) for t in TIER_ORDER},
                "cache": {
                    "enabled": self.config.path_cache,
                    "hits": self._cache.hits - hits0,
                    "misses": self._cache.misses - misses0,
                },
                "timingsMs": {
                    "index": (t_index - t0) * 1000.0,
                    "cull": (t_cull - t_index) * 1000.0,
                    "simplify": (t_simplify - t_cull) * 1000.0,
                    "total": _ms(t0),
                },
            }
        )
        plan = DrawPlan(
            items=items,
            camera=camera,
            viewport=viewport,
            motion=motion,
            tolerance=used_tolerance,
            stats=stats,
        )
        self._record(plan)
        return plan

    def _simplify_all(
        self, visible: list[ProjectedRoad], tolerance: float
    ) -> tuple[list[list[tuple[float, float]]], float]:
        if not self.config.path_cache:
            return [simplify(r.points, tolerance) for r in visible], tolerance

        bucket = tolerance_bucket(tolerance)
        tol = bucket_tolerance(bucket)
        out: list[list[tuple[float, float]]] = []
        for r in visible:
            path = self._cache.get(r.road.id, bucket)
            if path is None:
                path = simplify(r.points, tol)
                self._cache.put(r.road.id, bucket, path)
            out.append(path)
        return out, tol

    def _project_network(
        self, network: RoadNetwork, viewport: Viewport
    ) -> list[tuple[Road, list[tuple[float, float]]]]:
        if network.bounds is None:
            return [(road, []) for road in network.roads]
        if self.config.world_space == "viewport":
            fit = viewport_fit(
                network.bounds, viewport.width, viewport.height, padding=self.config.padding_px
            )
            return [(road, fit.apply(road.points)) for road in network.roads]
        reference = network.reference()
        fn = project_aeqd if self.config.projection == "aeqd" else project
        return [(road, fn(road.points, reference, flip_y=True)) for road in network.roads]

    def _record(self, plan: DrawPlan) -> None:
        if not self.record_telemetry:
            return
        store = get_store()
        if store is None:
            return
        store.record(
            motion=plan.motion.value,
            world_space=self.config.world_space,
            scale=plan.camera.scale,
            viewport=(plan.viewport.width, plan.viewport.height),
            tolerance=plan.tolerance,
            stats=plan.stats,
        )


def plan(
    network: RoadNetwork | None,
    camera: CameraState,
    viewport: Viewport,
    motion: MotionHint = MotionHint.still,
    *,
    config: RenderConfig | None = None,
) -> DrawPlan:
    """
    One-shot planning pass without memoization carried between calls.
    """
    return RenderPlanner(config, record_telemetry=False).plan(network, camera, viewport, motion)


def _ms(t0: float) -> float:
    return (time.perf_counter() - t0) * 1000.0
