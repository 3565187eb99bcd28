from __future__ import annotations

import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Sequence

from pyproj import Transformer

from geo.aoi import Bounds


EARTH_RADIUS_M = 6_378_137.0
# Keeps the longitude correction finite at the poles.
_MIN_COS_LAT = 1e-12
# Uniform scale used whenever the data has no extent to fit.
NEUTRAL_SCALE = 1.0


def project(
    points: Sequence[tuple[float, float]],
    reference: tuple[float, float],
    *,
    flip_y: bool = False,
) -> list[tuple[float, float]]:
    """
    Local equirectangular projection of (lat, lon) points to meters around `reference`.

    Longitude is compressed by cos(reference latitude) so angles stay roughly correct
    near the reference. This is not a general-purpose map projection: distortion grows
    quickly away from the reference latitude.

    With `flip_y`, north points towards negative y (screen orientation).
    """
    ref_lat, ref_lon = reference
    k_x = EARTH_RADIUS_M * max(math.cos(math.radians(ref_lat)), _MIN_COS_LAT)
    k_y = -EARTH_RADIUS_M if flip_y else EARTH_RADIUS_M
    return [
        (
            math.radians(lon - ref_lon) * k_x,
            math.radians(lat - ref_lat) * k_y,
        )
        for lat, lon in points
    ]


@lru_cache(maxsize=16)
def _aeqd_transformer(ref_lat: float, ref_lon: float) -> Transformer:
    crs = f"+proj=aeqd +lat_0={ref_lat} +lon_0={ref_lon} +datum=WGS84 +units=m +no_defs"
    return Transformer.from_crs("EPSG:4326", crs, always_xy=True)


def project_aeqd(
    points: Sequence[tuple[float, float]],
    reference: tuple[float, float],
    *,
    flip_y: bool = False,
) -> list[tuple[float, float]]:
    """
    Azimuthal equidistant projection around `reference` (meters).

    Slower than `project`, but distances from the reference stay true over a whole
    metro area.
    """
    if not points:
        return []
    t = _aeqd_transformer(round(reference[0], 7), round(reference[1], 7))
    lats = [p[0] for p in points]
    lons = [p[1] for p in points]
    xs, ys = t.transform(lons, lats)
    sign = -1.0 if flip_y else 1.0
    return [(float(x), sign * float(y)) for x, y in zip(xs, ys)]


@dataclass(frozen=True)
class ViewportFit:
    """
    Per-dataset scale/offset mapping a `Bounds` into a width x height pixel box.
    """

    scale: float
    offset_x: float
    offset_y: float
    lat_scale: float
    min_lat: float
    min_lon: float
    height: float

    def apply(self, points: Sequence[tuple[float, float]]) -> list[tuple[float, float]]:
        s = self.scale
        return [
            (
                (lon - self.min_lon) * s + self.offset_x,
                self.height - ((lat - self.min_lat) * self.lat_scale * s + self.offset_y),
            )
            for lat, lon in points
        ]


def viewport_fit(
    bounds: Bounds, width: float, height: float, *, padding: float = 40.0
) -> ViewportFit:
    b = bounds.normalized()
    avg_lat = (b.min_lat + b.max_lat) / 2.0
    lat_scale = 1.0 / max(math.cos(math.radians(avg_lat)), _MIN_COS_LAT)

    lon_range = b.lon_span
    lat_range = b.lat_span * lat_scale
    avail_w = max(float(width) - 2.0 * padding, 1.0)
    avail_h = max(float(height) - 2.0 * padding, 1.0)

    candidates: list[float] = []
    if lon_range > 0:
        candidates.append(avail_w / lon_range)
    if lat_range > 0:
        candidates.append(avail_h / lat_range)
    s = min(candidates) if candidates else NEUTRAL_SCALE
    if not math.isfinite(s) or s <= 0:
        s = NEUTRAL_SCALE

    return ViewportFit(
        scale=s,
        offset_x=(float(width) - lon_range * s) / 2.0,
        offset_y=(float(height) - lat_range * s) / 2.0,
        lat_scale=lat_scale,
        min_lat=b.min_lat,
        min_lon=b.min_lon,
        height=float(height),
    )


def project_to_viewport(
    points: Sequence[tuple[float, float]],
    bounds: Bounds | None,
    width: float,
    height: float,
    *,
    padding: float = 40.0,
) -> list[tuple[float, float]]:
    """
    Fit (lat, lon) points into a width x height pixel box, aspect preserved and centered.

    Used when world space is locked to the current viewport size. Missing bounds are
    taken from the points themselves.
    """
    b = bounds or Bounds.of(points)
    if b is None:
        return []
    return viewport_fit(b, width, height, padding=padding).apply(points)
