from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from roads.types import GeoPoint, Road, RoadNetwork

logger = logging.getLogger(__name__)


def load_overpass_roads(
    payload: dict[str, Any],
    *,
    label: str | None = None,
    area_id: int | None = None,
    center: GeoPoint | None = None,
) -> RoadNetwork:
    """
    Input: Overpass JSON with `out geom;` for ways, providing `geometry: [{lat,lon}, ...]`.

    Non-way elements and ways without geometry are ignored. Ways with fewer than two
    points are kept; the planner skips them.
    """
    elements = payload.get("elements") or []

    roads: list[Road] = []
    for el in elements:
        if el.get("type") != "way":
            continue
        geom = el.get("geometry")
        if not geom:
            continue

        points: list[GeoPoint] = []
        for p in geom:
            lat = (p or {}).get("lat")
            lon = (p or {}).get("lon")
            if lat is None or lon is None:
                continue
            points.append((float(lat), float(lon)))

        tags = el.get("tags") or {}
        roads.append(
            Road(
                id=f"way/{el.get('id')}",
                road_class=str(tags.get("highway") or ""),
                points=tuple(points),
                name=str(tags.get("name") or "Unnamed Road"),
            )
        )

    network = RoadNetwork.from_roads(roads, label=label, area_id=area_id, center=center)
    logger.info("loaded %d road segments (%s)", network.segment_count, label or "unlabeled")
    return network


def load_overpass_roads_file(path: Path, **kwargs: Any) -> RoadNetwork:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Invalid Overpass JSON root: {path}")
    return load_overpass_roads(data, **kwargs)
