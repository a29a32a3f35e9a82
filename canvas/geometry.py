"""
canvas/geometry.py

Hit-testing helpers for OCR quadrilaterals.

Boxes are plain ``[[x, y], [x, y], [x, y], [x, y]]`` lists in image pixel
coordinates, exactly as they appear in the sidecar JSON.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence, Tuple

from PyQt6.QtCore import QPointF
from PyQt6.QtGui import QPolygonF

from models import Box

Point = Tuple[float, float]


def is_box(value: Any) -> bool:
    """Return True for a sequence of exactly 4 two-number points."""
    if not isinstance(value, (list, tuple)) or len(value) != 4:
        return False
    for pt in value:
        if not isinstance(pt, (list, tuple)) or len(pt) < 2:
            return False
        for v in pt[:2]:
            if isinstance(v, bool) or not isinstance(v, (int, float)):
                return False
    return True


def point_in_polygon(point: Sequence[float], box: Any) -> bool:
    """
    Ray-casting containment test over the box's 4 vertices.

    The polygon is closed implicitly (vertex 3 back to vertex 0).
    Self-intersecting quads give the usual even-odd parity result.

    Args:
        point: (x, y) in image coordinates
        box: Box to test; anything that is not a well-formed Box is False

    Returns:
        True if the point is inside.
    """
    if not is_box(box):
        return False

    x, y = point[0], point[1]
    inside = False
    j = 3
    for i in range(4):
        xi, yi = box[i][0], box[i][1]
        xj, yj = box[j][0], box[j][1]
        # (yi > y) != (yj > y) guarantees yj != yi below
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def boxes_equal(a: Any, b: Any) -> bool:
    """Exact coordinate equality of two boxes (no tolerance)."""
    if not is_box(a) or not is_box(b):
        return False
    for i in range(4):
        if a[i][0] != b[i][0] or a[i][1] != b[i][1]:
            return False
    return True


def find_box_at(point: Sequence[float], boxes: Optional[Iterable[Any]]) -> Optional[Box]:
    """Return the first box in list order containing the point, or None."""
    if not boxes:
        return None
    for box in boxes:
        if point_in_polygon(point, box):
            return box
    return None


def box_to_polygon(box: Box) -> QPolygonF:
    """Closed Qt polygon for drawing a box."""
    return QPolygonF([QPointF(float(pt[0]), float(pt[1])) for pt in box])


def box_centroid(box: Box) -> Point:
    """Vertex average; inside any convex box."""
    return (
        sum(float(pt[0]) for pt in box) / 4.0,
        sum(float(pt[1]) for pt in box) / 4.0,
    )
