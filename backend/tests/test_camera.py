from __future__ import annotations

import math

import pytest
from pydantic import ValidationError

from geo.rect import Rect
from view.camera import MIN_SCALE, Camera, CameraConfig, wheel_factor

UNBOUNDED = CameraConfig(min_scale=MIN_SCALE, max_scale=math.inf)


def test_cursor_anchored_zoom_scenario():
    cam = Camera()
    world = cam.to_world((100.0, 100.0))
    assert cam.to_screen((100.0, 100.0)) == (100.0, 100.0)

    cam.zoom_at(100.0, 100.0, 2.0)

    assert cam.scale == 2.0
    assert (cam.offset_x, cam.offset_y) == (-100.0, -100.0)
    assert world == (100.0, 100.0)
    assert cam.to_screen(world) == (100.0, 100.0)


@pytest.mark.parametrize(
    "start,factor,cursor",
    [
        ((1.0, 0.0, 0.0), 1.7, (320.0, 240.0)),
        ((3.3, -51.5, 12.25), 0.4, (10.0, 700.0)),
        ((0.02, 1e4, -3e3), 11.0, (0.0, 0.0)),
        ((250.0, 7.0, 9.0), 0.001, (1024.0, 1.0)),
    ],
)
def test_point_under_cursor_stays_put(start, factor, cursor):
    scale, ox, oy = start
    cam = Camera(config=UNBOUNDED, scale=scale, offset_x=ox, offset_y=oy)
    world = cam.to_world(cursor)
    cam.zoom_at(cursor[0], cursor[1], factor)
    sx, sy = cam.to_screen(world)
    assert sx == pytest.approx(cursor[0], abs=1e-6)
    assert sy == pytest.approx(cursor[1], abs=1e-6)


def test_clamped_zoom_still_anchors_at_cursor():
    cam = Camera(config=CameraConfig(min_scale=1.0, max_scale=10.0), scale=8.0)
    world = cam.to_world((50.0, 60.0))
    cam.zoom_at(50.0, 60.0, 4.0)
    assert cam.scale == 10.0
    assert cam.to_screen(world) == (pytest.approx(50.0), pytest.approx(60.0))

    cam.zoom_at(50.0, 60.0, 0.001)
    assert cam.scale == 1.0
    assert cam.to_screen(world) == (pytest.approx(50.0), pytest.approx(60.0))


def test_zoom_at_clamp_limit_is_a_no_op():
    cam = Camera(config=CameraConfig(min_scale=1.0, max_scale=10.0))
    cam.zoom_at(200.0, 200.0, 0.5)
    assert (cam.scale, cam.offset_x, cam.offset_y) == (1.0, 0.0, 0.0)


def test_pan_round_trip_restores_offset():
    cam = Camera(offset_x=12.5, offset_y=-3.0)
    cam.pan_by(40.0, -7.5)
    assert (cam.offset_x, cam.offset_y) == (52.5, -10.5)
    assert cam.scale == 1.0
    cam.pan_by(-40.0, 7.5)
    assert (cam.offset_x, cam.offset_y) == (12.5, -3.0)


@pytest.mark.parametrize("factor", [0.0, -2.0, math.inf, math.nan])
def test_invalid_zoom_factor_is_rejected(factor):
    with pytest.raises(ValueError):
        Camera().zoom_at(0.0, 0.0, factor)


def test_visible_world_rect_inverts_corners():
    cam = Camera(config=UNBOUNDED, scale=2.0, offset_x=-100.0, offset_y=50.0)
    r = cam.visible_world_rect(800, 600)
    assert r == Rect(min_x=50.0, min_y=-25.0, max_x=450.0, max_y=275.0)


def test_wheel_up_zooms_in_and_down_zooms_out():
    assert wheel_factor(-100.0, base=1.1, normalization=100.0) == pytest.approx(1.1)
    assert wheel_factor(100.0, base=1.1, normalization=100.0) == pytest.approx(1 / 1.1)
    assert wheel_factor(0.0) == 1.0

    cam = Camera(config=UNBOUNDED)
    cam.wheel(10.0, 10.0, -300.0)
    assert cam.scale == pytest.approx(1.1**3)


def test_many_small_deltas_match_one_large_delta():
    a = Camera(config=UNBOUNDED)
    b = Camera(config=UNBOUNDED)
    for _ in range(10):
        a.wheel(0.0, 0.0, -4.0)
    b.wheel(0.0, 0.0, -40.0)
    assert a.scale == pytest.approx(b.scale)


def test_reset_restores_identity():
    cam = Camera(config=UNBOUNDED, scale=4.0, offset_x=3.0, offset_y=9.0)
    cam.reset()
    assert (cam.scale, cam.offset_x, cam.offset_y) == (1.0, 0.0, 0.0)


def test_fit_centers_world_rect():
    cam = Camera(config=UNBOUNDED)
    cam.fit(Rect(min_x=-500.0, min_y=-250.0, max_x=500.0, max_y=250.0), 800, 600, padding=0)
    assert cam.scale == pytest.approx(0.8)
    assert cam.to_screen((0.0, 0.0)) == (pytest.approx(400.0), pytest.approx(300.0))


def test_fit_degenerate_rect_uses_neutral_scale():
    cam = Camera(config=UNBOUNDED)
    cam.fit(Rect(min_x=5.0, min_y=5.0, max_x=5.0, max_y=5.0), 800, 600, padding=40)
    assert cam.scale == 1.0
    assert cam.to_screen((5.0, 5.0)) == (400.0, 300.0)
    cam.fit(None, 800, 600)
    assert (cam.scale, cam.offset_x, cam.offset_y) == (1.0, 0.0, 0.0)


def test_config_rejects_inverted_range():
    with pytest.raises(ValidationError):
        CameraConfig(min_scale=5.0, max_scale=2.0)


def test_config_rejects_zero_min_scale():
    with pytest.raises(ValidationError):
        CameraConfig(min_scale=0.0, max_scale=math.inf)


@pytest.mark.parametrize("delta_y", [1e6, -1e6, 1e300, -1e300])
def test_huge_wheel_delta_stays_finite(delta_y):
    f = wheel_factor(delta_y)
    assert math.isfinite(f)
    assert f > 0


def test_huge_wheel_delta_hits_the_clamp():
    cam = Camera(config=CameraConfig(min_scale=1.0, max_scale=10.0))
    cam.wheel(0.0, 0.0, -1e6)
    assert cam.scale == 10.0
    cam.wheel(0.0, 0.0, 1e6)
    assert cam.scale == 1.0


def test_extreme_zoom_factors_keep_unbounded_camera_finite():
    cam = Camera(config=UNBOUNDED)
    cam.zoom_at(0.0, 0.0, 1e-320)
    assert cam.scale == MIN_SCALE
    r = cam.visible_world_rect(800, 600)
    assert math.isfinite(r.max_x) and math.isfinite(r.max_y)

    cam.reset()
    cam.wheel(400.0, 300.0, -1e6)
    cam.wheel(400.0, 300.0, -1e6)
    assert math.isfinite(cam.scale)
    assert math.isfinite(cam.offset_x) and math.isfinite(cam.offset_y)
