from __future__ import annotations

import math

import pytest

from lod.cache import PathCache
from lod.policy import (
    MAX_TOLERANCE,
    MIN_TOLERANCE,
    ToleranceProfile,
    bucket_tolerance,
    cap_to_vertex_budget,
    escalation_steps,
    tolerance_bucket,
    world_tolerance,
)
from roads.types import MotionHint, StyleTier


def test_world_tolerance_shrinks_with_zoom():
    profile = ToleranceProfile()
    assert world_tolerance(profile, MotionHint.still, 1.0) == 1.0
    assert world_tolerance(profile, MotionHint.still, 4.0) == 0.25
    assert world_tolerance(profile, MotionHint.moving, 2.0) == 1.5


def test_moving_is_coarser_than_still():
    profile = ToleranceProfile()
    for scale in (0.01, 1.0, 3.0, 250.0):
        assert world_tolerance(profile, MotionHint.moving, scale) > world_tolerance(
            profile, MotionHint.still, scale
        )


@pytest.mark.parametrize("tol", [1e-4, 0.3, 0.5, 1.0, 3.0, 17.0, 5000.0])
def test_bucket_lower_edge_never_exceeds_tolerance(tol):
    b = tolerance_bucket(tol)
    assert bucket_tolerance(b) <= tol * (1 + 1e-12)
    assert bucket_tolerance(b + 1) > tol


def test_bucket_values():
    assert tolerance_bucket(1.0) == 0
    assert tolerance_bucket(0.5) == -4
    assert tolerance_bucket(3.0) == 6
    assert math.isclose(bucket_tolerance(6), 2.0**1.5)


def test_escalation_doubles():
    assert escalation_steps(0.5) == [0.5, 1.0, 2.0, 4.0]


def test_cap_drops_heaviest_minor_roads_first():
    entries = [
        (0, StyleTier.minor, 10),
        (1, StyleTier.major, 50),
        (2, StyleTier.minor, 30),
        (3, StyleTier.minor, 5),
    ]
    assert cap_to_vertex_budget(entries, 60) == {0, 2}
    assert cap_to_vertex_budget(entries, 95) == set()
    assert cap_to_vertex_budget(entries, 20) == {0, 1, 2, 3}


def test_cap_ties_break_on_position():
    entries = [(0, StyleTier.minor, 10), (1, StyleTier.minor, 10), (2, StyleTier.minor, 10)]
    assert cap_to_vertex_budget(entries, 25) == {0}


def test_path_cache_hits_and_invalidation():
    cache = PathCache(max_buckets=2)
    cache.bind(("rev", 1))
    assert cache.get("a", 0) is None
    cache.put("a", 0, [(0.0, 0.0), (1.0, 1.0)])
    assert cache.get("a", 0) == [(0.0, 0.0), (1.0, 1.0)]
    assert (cache.hits, cache.misses) == (1, 1)

    # Same owner keeps entries.
    cache.bind(("rev", 1))
    assert len(cache) == 1

    cache.bind(("rev", 2))
    assert len(cache) == 0


def test_path_cache_bounds_bucket_count():
    cache = PathCache(max_buckets=2)
    cache.bind("owner")
    cache.put("a", 0, [])
    cache.put("a", 1, [])
    cache.put("a", 2, [])
    assert cache.get("a", 0) is None
    assert cache.get("a", 2) == []


def test_world_tolerance_stays_finite_at_extreme_scales():
    profile = ToleranceProfile()
    huge = world_tolerance(profile, MotionHint.moving, 1e-320)
    assert huge == MAX_TOLERANCE
    tiny = world_tolerance(ToleranceProfile(still_px=1e-300), MotionHint.still, 1e300)
    assert tiny == MIN_TOLERANCE
    tolerance_bucket(huge)
    tolerance_bucket(tiny)
    assert all(math.isfinite(t) for t in escalation_steps(huge))
