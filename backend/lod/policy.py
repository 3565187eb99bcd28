from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import Sequence

from roads.types import MotionHint, StyleTier


# Tolerance buckets are spaced by a factor of 2 ** (1 / BUCKETS_PER_OCTAVE).
BUCKETS_PER_OCTAVE = 4

# World-space tolerance range. The upper end collapses any road to its endpoints.
MIN_TOLERANCE = sys.float_info.min
MAX_TOLERANCE = 1e12


@dataclass(frozen=True)
class ToleranceProfile:
    """
    Screen-pixel simplification tolerances per motion state.
    """

    still_px: float = 1.0
    moving_px: float = 3.0

    def base_for(self, motion: MotionHint) -> float:
        return self.moving_px if motion == MotionHint.moving else self.still_px


def world_tolerance(profile: ToleranceProfile, motion: MotionHint, scale: float) -> float:
    """
    Tolerance in world units that keeps the on-screen tolerance fixed.

    Coarser when zoomed out, and coarser still while the camera moves.
    """
    return _clamp_tolerance(profile.base_for(motion) / scale)


def tolerance_bucket(tolerance: float) -> int:
    return int(math.floor(math.log2(tolerance) * BUCKETS_PER_OCTAVE))


def bucket_tolerance(bucket: int) -> float:
    # Lower edge of the bucket, so a bucketed pass is never coarser than asked for.
    return 2.0 ** (bucket / BUCKETS_PER_OCTAVE)


def escalation_steps(tolerance: float) -> list[float]:
    # Start with the requested tolerance, then increase until we're under budget.
    return [_clamp_tolerance(tolerance * k) for k in (1, 2, 4, 8)]


def _clamp_tolerance(tolerance: float) -> float:
    if math.isnan(tolerance):
        return MAX_TOLERANCE
    return max(MIN_TOLERANCE, min(MAX_TOLERANCE, tolerance))


def cap_to_vertex_budget(
    entries: Sequence[tuple[int, StyleTier, int]], max_vertices: int
) -> set[int]:
    """
    Hard fallback: pick entries to drop until the vertex total fits the budget.

    `entries` are (position, tier, vertex_count). Minor roads go first, heaviest
    first; major roads only once every minor road is gone. Ties break on position,
    so the result is deterministic.
    """
    total = sum(n for _, _, n in entries)
    order = sorted(
        entries,
        key=lambda e: (e[1] == StyleTier.major, -e[2], e[0]),
    )
    dropped: set[int] = set()
    for pos, _tier, n in order:
        if total <= max_vertices:
            break
        dropped.add(pos)
        total -= n
    return dropped
