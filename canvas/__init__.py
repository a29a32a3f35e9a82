"""
canvas package

Box geometry, viewport transform, scene rendering and the canvas widget.
"""

from canvas.geometry import boxes_equal, find_box_at, is_box, point_in_polygon
from canvas.viewport import Viewport
from canvas.renderer import RenderStyle, render_scene
from canvas.view import AnnotationCanvas

__all__ = [
    "boxes_equal",
    "find_box_at",
    "is_box",
    "point_in_polygon",
    "Viewport",
    "RenderStyle",
    "render_scene",
    "AnnotationCanvas",
]
