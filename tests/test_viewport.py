"""Tests for zoom/pan state and the screen <-> image mapping."""
from __future__ import annotations

import pytest

from canvas.viewport import Viewport
from models import ZoomDirection


@pytest.fixture()
def vp():
    return Viewport()


def test_defaults_come_from_settings(settings):
    settings.settings.canvas.zoom.max_zoom = 4.0
    v = Viewport()
    assert v.max_zoom == 4.0
    assert v.min_zoom == 0.1
    assert (v.zoom_level, v.pan_x, v.pan_y) == (1.0, 0.0, 0.0)


def test_reset_after_zoom_and_pan(vp):
    vp.zoom_level = 2.5
    vp.pan(40, -10)
    vp.reset()
    assert vp.zoom_level == 1.0
    assert (vp.pan_x, vp.pan_y) == (0.0, 0.0)


def test_pan_accumulates(vp):
    vp.pan(5, 3)
    vp.pan(-2, 1)
    assert (vp.pan_x, vp.pan_y) == (3.0, 4.0)


def test_zoom_in_steps_by_factor(vp):
    assert vp.zoom_at((0, 0), ZoomDirection.IN)
    assert vp.zoom_level == pytest.approx(1.1)
    assert vp.zoom_at((0, 0), ZoomDirection.OUT)
    assert vp.zoom_level == pytest.approx(0.99)


def test_wheel_delta_sign_picks_direction(vp):
    vp.zoom_at((0, 0), 120)
    assert vp.zoom_level == pytest.approx(1.1)
    vp.zoom_at((0, 0), -120)
    assert vp.zoom_level == pytest.approx(0.99)


def test_zoom_keeps_anchor_fixed(vp):
    vp.pan(13, -7)
    anchor = (120.0, 45.0)
    before = vp.screen_to_image(anchor)
    vp.zoom_at(anchor, ZoomDirection.IN)
    vp.zoom_at(anchor, ZoomDirection.IN)
    after = vp.screen_to_image(anchor)
    assert after == pytest.approx(before)


def test_zoom_in_then_out_restores_anchor_mapping(vp):
    anchor = (64.0, 32.0)
    before = vp.screen_to_image(anchor)
    vp.zoom_at(anchor, ZoomDirection.IN)
    vp.zoom_at(anchor, ZoomDirection.OUT)
    assert vp.screen_to_image(anchor) == pytest.approx(before)


def test_zoom_clamped_to_range(vp):
    for _ in range(100):
        vp.zoom_at((10, 10), ZoomDirection.IN)
    assert vp.zoom_level == pytest.approx(10.0)
    assert not vp.zoom_at((10, 10), ZoomDirection.IN)

    for _ in range(200):
        vp.zoom_at((10, 10), ZoomDirection.OUT)
    assert vp.zoom_level == pytest.approx(0.1)
    assert not vp.zoom_at((10, 10), ZoomDirection.OUT)


def test_unchanged_zoom_leaves_pan_alone(vp):
    vp.zoom_level = vp.max_zoom
    vp.pan(5, 5)
    vp.zoom_at((100, 100), ZoomDirection.IN)
    assert (vp.pan_x, vp.pan_y) == (5.0, 5.0)


def test_screen_to_image_inverts_image_to_screen(vp):
    vp.zoom_level = 2.5
    vp.pan(40, -10)
    for p in [(0, 0), (5, 2), (123.25, 77.5)]:
        assert vp.screen_to_image(vp.image_to_screen(p)) == pytest.approx(p)


def test_screen_to_image_scales_displayed_to_buffer(vp):
    # canvas buffer 800x600 shown at 400x300: screen (100, 50) is buffer (200, 100)
    assert vp.screen_to_image((100, 50), (400, 300), (800, 600)) == pytest.approx((200, 100))

    vp.zoom_level = 2.0
    vp.pan(10, 20)
    assert vp.screen_to_image((100, 50), (400, 300), (800, 600)) == pytest.approx((95, 40))


def test_screen_to_image_ignores_degenerate_display_size(vp):
    assert vp.screen_to_image((7, 9), (0, 0), (800, 600)) == (7.0, 9.0)


def test_qtransform_matches_image_to_screen(vp):
    vp.zoom_level = 1.5
    vp.pan(12, -3)
    t = vp.to_qtransform()
    x, y = t.map(4.0, 6.0)
    assert (x, y) == pytest.approx(vp.image_to_screen((4.0, 6.0)))
