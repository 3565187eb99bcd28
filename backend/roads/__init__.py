from .classify import MAJOR_CLASSES, TIER_ORDER, classify
from .types import DrawBatch, DrawItem, MotionHint, Road, RoadNetwork, StyleTier

__all__ = [
    "MAJOR_CLASSES",
    "TIER_ORDER",
    "classify",
    "DrawBatch",
    "DrawItem",
    "MotionHint",
    "Road",
    "RoadNetwork",
    "StyleTier",
]
