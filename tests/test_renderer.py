"""Pixel-level checks of the scene renderer on an offscreen QImage."""
from __future__ import annotations

import pytest
from PyQt6.QtGui import QColor, QImage, QPainter

from canvas.renderer import RenderStyle, label_rect, render_scene
from canvas.viewport import Viewport
from models import FIELD_COLORS, OCR_COLOR
from session.state import AnnotationState

BOX = [[10, 10], [50, 10], [50, 30], [10, 30]]
SMALL = [[2, 2], [12, 2], [12, 8], [2, 8]]


def _raster(w=60, h=40):
    img = QImage(w, h, QImage.Format.Format_RGB32)
    img.fill(QColor("#ffffff"))
    return img


def _render(image, state, viewport, style=None):
    buf = QImage(image.width(), image.height(), QImage.Format.Format_ARGB32_Premultiplied)
    painter = QPainter(buf)
    try:
        render_scene(painter, image, state, viewport, style)
    finally:
        painter.end()
    return buf


def _px(img, x, y):
    return img.pixelColor(x, y).name()


def test_raster_only(qapp):
    buf = _render(_raster(), None, Viewport())
    assert _px(buf, 0, 0) == "#ffffff"
    assert _px(buf, 59, 39) == "#ffffff"


def test_ocr_boxes_drawn_in_gray(qapp):
    state = AnnotationState.from_dict({"ocr": [BOX], "fields": {"total": None}})
    buf = _render(_raster(), state, Viewport())
    assert _px(buf, 30, 30) == QColor(OCR_COLOR).name()
    assert _px(buf, 30, 20) == "#ffffff"


def test_field_box_on_top_of_ocr_box(qapp):
    state = AnnotationState.from_dict({"ocr": [BOX], "fields": {"total": None}})
    state.assign_box_to_field("total", BOX)
    buf = _render(_raster(), state, Viewport())
    assert _px(buf, 30, 30) == QColor(FIELD_COLORS[0]).name()
    # label background sits above the first vertex
    assert _px(buf, 12, 5) == QColor(FIELD_COLORS[0]).name()


def test_field_colour_is_positional(qapp):
    state = AnnotationState.from_dict({"ocr": [BOX], "fields": {"total": None, "date": None}})
    state.assign_box_to_field("date", BOX)
    buf = _render(_raster(), state, Viewport())
    assert _px(buf, 30, 30) == QColor(FIELD_COLORS[1]).name()


def test_viewport_transform_applies_to_overlays(qapp):
    state = AnnotationState.from_dict({"ocr": [SMALL], "fields": {}})
    plain = _render(_raster(), state, Viewport())
    assert _px(plain, 14, 16) == "#ffffff"

    vp = Viewport()
    vp.zoom_level = 2.0
    zoomed = _render(_raster(), state, vp)
    # bottom edge y=8 lands on y=16 at 2x
    assert _px(zoomed, 14, 16) == QColor(OCR_COLOR).name()


def test_pan_uncovers_transparent_background(qapp):
    vp = Viewport()
    vp.pan(30, 0)
    buf = _render(_raster(), None, vp)
    assert buf.pixelColor(5, 5).alpha() == 0
    assert _px(buf, 45, 5) == "#ffffff"


def test_malformed_boxes_are_skipped(qapp):
    state = AnnotationState.from_dict({"ocr": [None, [[1, 1]], BOX], "fields": {"total": "bogus"}})
    buf = _render(_raster(), state, Viewport())
    assert _px(buf, 30, 30) == QColor(OCR_COLOR).name()


def test_label_rect_anchored_at_first_vertex(qapp):
    style = RenderStyle()
    font = style.label_font(40)
    rect = label_rect(BOX, "total", font, 6)
    assert rect.left() == pytest.approx(10)
    assert rect.bottom() == pytest.approx(10)
    assert rect.width() > 12


def test_label_size_scales_with_image_height():
    style = RenderStyle()
    assert style.label_pixel_size(2000) == 40
    assert style.label_pixel_size(100) == 14


def test_style_from_settings(settings):
    settings.settings.canvas.boxes.ocr_line_width = 2.5
    settings.settings.canvas.labels.min_px = 9
    style = RenderStyle.from_settings()
    assert style.ocr_line_width == 2.5
    assert style.label_min_px == 9
    assert style.palette == FIELD_COLORS
