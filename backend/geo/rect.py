from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class Rect:
    """
    Axis-aligned rectangle in planar (world or screen) units.
    """

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def of(cls, points: Iterable[tuple[float, float]]) -> "Rect | None":
        min_x = min_y = max_x = max_y = None
        for x, y in points:
            if min_x is None:
                min_x = max_x = x
                min_y = max_y = y
                continue
            min_x = min(min_x, x)
            max_x = max(max_x, x)
            min_y = min(min_y, y)
            max_y = max(max_y, y)
        if min_x is None:
            return None
        return cls(min_x=min_x, min_y=min_y, max_x=max_x, max_y=max_y)

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> tuple[float, float]:
        return ((self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0)

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.min_x, self.min_y, self.max_x, self.max_y)
