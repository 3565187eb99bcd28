from __future__ import annotations

import math
from typing import Iterable, Sequence


class InvalidTolerance(ValueError):
    """
    Raised for a non-positive or non-finite simplification tolerance.

    This is a caller bug (the planner derives tolerances), so it is never clamped.
    """


def count_vertices(paths: Iterable[Sequence[tuple[float, float]]]) -> int:
    return sum(len(p) for p in paths)


def seg_dist_sq(
    p: tuple[float, float], a: tuple[float, float], b: tuple[float, float]
) -> float:
    """
    Squared distance from `p` to segment a-b (projection clamped to the segment).
    """
    px, py = p
    ax, ay = a
    dx = b[0] - ax
    dy = b[1] - ay
    if dx != 0.0 or dy != 0.0:
        t = ((px - ax) * dx + (py - ay) * dy) / (dx * dx + dy * dy)
        if t > 1.0:
            ax, ay = b
        elif t > 0.0:
            ax += dx * t
            ay += dy * t
    ex = px - ax
    ey = py - ay
    return ex * ex + ey * ey


def simplify(
    points: Sequence[tuple[float, float]], tolerance: float
) -> list[tuple[float, float]]:
    """
    Douglas-Peucker simplification.

    Keeps the subsequence of `points` whose removal would move the line by more than
    `tolerance` (same unit as the points). First and last points always survive;
    on equal distances the earliest point wins, so output is reproducible.

    Uses an explicit stack instead of recursion so long near-collinear inputs can't
    hit the recursion limit.
    """
    if not math.isfinite(tolerance) or tolerance <= 0:
        raise InvalidTolerance(f"tolerance must be positive and finite, got {tolerance!r}")

    n = len(points)
    if n <= 2:
        return list(points)

    tol_sq = tolerance * tolerance
    keep = [False] * n
    keep[0] = keep[n - 1] = True

    stack: list[tuple[int, int]] = [(0, n - 1)]
    while stack:
        first, last = stack.pop()
        if last - first < 2:
            continue
        a = points[first]
        b = points[last]
        max_sq = -1.0
        index = first
        for i in range(first + 1, last):
            d = seg_dist_sq(points[i], a, b)
            if d > max_sq:
                max_sq = d
                index = i
        if max_sq > tol_sq:
            keep[index] = True
            stack.append((index, last))
            stack.append((first, index))

    return [p for p, k in zip(points, keep) if k]
