from __future__ import annotations

from typing import Iterable

from roads.types import Road, StyleTier

MAJOR_CLASSES: tuple[str, ...] = (
    "motorway",
    "trunk",
    "primary",
    "secondary",
)

# Draw order: earlier tiers are painted first, so later tiers sit on top.
TIER_ORDER: tuple[StyleTier, ...] = (StyleTier.minor, StyleTier.major)


def normalize_class(raw: str | None) -> str:
    return str(raw or "").strip().lower()


def classify(road_class: str | None, major_classes: Iterable[str] = MAJOR_CLASSES) -> StyleTier:
    """
    Map a highway class tag to a style tier. Link roads (`motorway_link`, ...) and
    anything unknown are minor.
    """
    majors = major_classes if isinstance(major_classes, (set, frozenset)) else set(major_classes)
    return StyleTier.major if normalize_class(road_class) in majors else StyleTier.minor


def count_by_tier(roads: Iterable[Road], major_classes: Iterable[str] = MAJOR_CLASSES) -> dict[str, int]:
    majors = set(major_classes)
    out = {t.value: 0 for t in TIER_ORDER}
    for r in roads:
        out[classify(r.road_class, majors).value] += 1
    return out
