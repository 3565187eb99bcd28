from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class Bounds:
    """
    WGS84 envelope of a loaded dataset, in degrees.

    An empty dataset has no bounds at all (`Bounds.of` returns None) rather than an
    inverted envelope.
    """

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    @classmethod
    def of(cls, points: Iterable[tuple[float, float]]) -> "Bounds | None":
        """
        Envelope of (lat, lon) points, or None for no points.
        """
        min_lat = max_lat = min_lon = max_lon = None
        for lat, lon in points:
            if min_lat is None:
                min_lat = max_lat = lat
                min_lon = max_lon = lon
                continue
            min_lat = min(min_lat, lat)
            max_lat = max(max_lat, lat)
            min_lon = min(min_lon, lon)
            max_lon = max(max_lon, lon)
        if min_lat is None:
            return None
        return cls(
            min_lat=float(min_lat),
            max_lat=float(max_lat),
            min_lon=float(min_lon),
            max_lon=float(max_lon),
        )

    def normalized(self) -> "Bounds":
        return Bounds(
            min_lat=min(self.min_lat, self.max_lat),
            max_lat=max(self.min_lat, self.max_lat),
            min_lon=min(self.min_lon, self.max_lon),
            max_lon=max(self.min_lon, self.max_lon),
        )

    @property
    def center(self) -> tuple[float, float]:
        return ((self.min_lat + self.max_lat) / 2.0, (self.min_lon + self.max_lon) / 2.0)

    @property
    def lat_span(self) -> float:
        return self.max_lat - self.min_lat

    @property
    def lon_span(self) -> float:
        return self.max_lon - self.min_lon

