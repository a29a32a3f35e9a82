"""
canvas/viewport.py

Zoom/pan state and the screen <-> image coordinate mapping.

The render transform is translate(pan) then scale(zoom); hit-testing
inverts exactly that transform.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple, Union

from PyQt6.QtGui import QTransform

from models import ZoomDirection
from settings import get_settings

Point = Tuple[float, float]
Size = Tuple[float, float]


class Viewport:
    """
    Zoom level and pan offset of the annotation canvas.

    All values are in backing-buffer (device) pixels relative to the
    canvas origin.  ``zoom_level`` stays within ``[min_zoom, max_zoom]``.
    """

    def __init__(
        self,
        min_zoom: Optional[float] = None,
        max_zoom: Optional[float] = None,
        zoom_in_factor: Optional[float] = None,
        zoom_out_factor: Optional[float] = None,
    ):
        zs = get_settings().settings.canvas.zoom
        self.min_zoom = zs.min_zoom if min_zoom is None else min_zoom
        self.max_zoom = zs.max_zoom if max_zoom is None else max_zoom
        self.zoom_in_factor = zs.zoom_in_factor if zoom_in_factor is None else zoom_in_factor
        self.zoom_out_factor = zs.zoom_out_factor if zoom_out_factor is None else zoom_out_factor

        self.zoom_level = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0

    def __repr__(self) -> str:
        return f"Viewport(zoom_level={self.zoom_level!r}, pan_x={self.pan_x!r}, pan_y={self.pan_y!r})"

    def reset(self) -> None:
        """Back to 100% with no pan."""
        self.zoom_level = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0

    def pan(self, dx: float, dy: float) -> None:
        self.pan_x += dx
        self.pan_y += dy

    def clamp_zoom(self, zoom: float) -> float:
        return max(self.min_zoom, min(self.max_zoom, zoom))

    def zoom_at(self, anchor: Sequence[float], direction: Union[str, int, float]) -> bool:
        """
        Zoom one step keeping the image point under ``anchor`` fixed.

        Args:
            anchor: Screen (buffer) point, e.g. the cursor position
            direction: ZoomDirection.IN / ZoomDirection.OUT, or a signed
                number such as a wheel delta (> 0 zooms in)

        Returns:
            True if the zoom level changed.
        """
        if isinstance(direction, str):
            zoom_in = direction == ZoomDirection.IN
        else:
            zoom_in = direction > 0
        factor = self.zoom_in_factor if zoom_in else self.zoom_out_factor

        old_zoom = self.zoom_level
        new_zoom = self.clamp_zoom(old_zoom * factor)
        if new_zoom == old_zoom:
            return False

        ratio = new_zoom / old_zoom
        ax, ay = anchor[0], anchor[1]
        self.pan_x = ax - (ax - self.pan_x) * ratio
        self.pan_y = ay - (ay - self.pan_y) * ratio
        self.zoom_level = new_zoom
        return True

    def screen_to_image(
        self,
        point: Sequence[float],
        displayed_size: Optional[Size] = None,
        buffer_size: Optional[Size] = None,
    ) -> Point:
        """
        Map a screen point to image coordinates.

        When the canvas is displayed at a size different from its backing
        buffer, the point is first scaled by ``buffer / displayed`` per axis.

        Args:
            point: (x, y) relative to the displayed canvas origin
            displayed_size: (width, height) the canvas is shown at
            buffer_size: (width, height) of the backing buffer

        Returns:
            (x, y) in image pixels.
        """
        x, y = float(point[0]), float(point[1])
        if displayed_size and buffer_size:
            dw, dh = displayed_size
            bw, bh = buffer_size
            if dw > 0 and dh > 0:
                x *= bw / dw
                y *= bh / dh
        return ((x - self.pan_x) / self.zoom_level, (y - self.pan_y) / self.zoom_level)

    def image_to_screen(self, point: Sequence[float]) -> Point:
        """Map an image point to backing-buffer coordinates."""
        return (
            float(point[0]) * self.zoom_level + self.pan_x,
            float(point[1]) * self.zoom_level + self.pan_y,
        )

    def to_qtransform(self) -> QTransform:
        """The render transform: translate by pan, then scale by zoom."""
        t = QTransform()
        t.translate(self.pan_x, self.pan_y)
        t.scale(self.zoom_level, self.zoom_level)
        return t
