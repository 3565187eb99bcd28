from __future__ import annotations

from geo.rect import Rect


def is_visible(bbox: Rect, visible: Rect) -> bool:
    """
    True when the two rectangles overlap; touching edges count as overlap.
    """
    return not (
        bbox.max_x < visible.min_x
        or bbox.min_x > visible.max_x
        or bbox.max_y < visible.min_y
        or bbox.min_y > visible.max_y
    )
