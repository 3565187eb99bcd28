from __future__ import annotations

from geo.index import RoadIndex
from geo.rect import Rect
from roads.types import Road
from view.cull import is_visible

VIEW = Rect(min_x=0.0, min_y=0.0, max_x=100.0, max_y=100.0)


def test_overlap_is_commutative():
    rects = [
        Rect(-10.0, -10.0, 5.0, 5.0),
        Rect(50.0, 50.0, 60.0, 60.0),
        Rect(200.0, 0.0, 300.0, 10.0),
        Rect(-50.0, 40.0, 150.0, 45.0),
        Rect(100.0, 100.0, 120.0, 120.0),
    ]
    for a in rects:
        for b in [*rects, VIEW]:
            assert is_visible(a, b) == is_visible(b, a)


def test_disjoint_rect_is_not_visible():
    assert not is_visible(Rect(101.0, 0.0, 200.0, 100.0), VIEW)
    assert not is_visible(Rect(0.0, -20.0, 100.0, -0.5), VIEW)


def test_rect_containing_the_view_is_visible():
    assert is_visible(Rect(-1e6, -1e6, 1e6, 1e6), VIEW)


def test_touching_edges_count_as_visible():
    assert is_visible(Rect(100.0, 100.0, 110.0, 110.0), VIEW)


def test_degenerate_bbox_inside_view_is_visible():
    assert is_visible(Rect(5.0, 5.0, 5.0, 5.0), VIEW)


def _road(rid: str) -> Road:
    return Road(id=rid, road_class="residential", points=((0.0, 0.0),))


def test_road_index_returns_visible_roads_in_original_order():
    projected = [
        (_road("a"), [(150.0, 150.0), (160.0, 170.0)]),
        (_road("b"), [(10.0, 10.0), (20.0, 20.0)]),
        (_road("c"), [(-30.0, 50.0), (-10.0, 55.0)]),
        (_road("d"), [(-50.0, -50.0), (150.0, 150.0)]),
        (_road("e"), [(90.0, 90.0)]),
        (_road("f"), [(40.0, 40.0), (40.0, 40.0)]),
    ]
    index = RoadIndex.build("k", projected)
    assert index.skipped == 1
    ids = [r.road.id for r in index.visible(VIEW)]
    assert ids == ["b", "d", "f"]


def test_road_index_agrees_with_bbox_test():
    projected = [
        (_road(f"r{i}"), [(float(i * 13 % 300) - 100, float(i * 7 % 250) - 80), (float(i * 13 % 300) - 90, float(i * 7 % 250) - 70)])
        for i in range(200)
    ]
    index = RoadIndex.build("k", projected)
    expected = [r.road.id for r in index.roads if is_visible(r.bbox, VIEW)]
    assert [r.road.id for r in index.visible(VIEW)] == expected


def test_empty_index_sees_nothing():
    assert RoadIndex.build("k", []).visible(VIEW) == []
