"""
canvas/view.py

Annotation canvas widget: a backing buffer at the raster's native size,
redrawn by render_scene() and shown scaled to the widget.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Tuple

from PyQt6.QtCore import QPointF, QRectF, QSize, Qt, pyqtSignal
from PyQt6.QtGui import QColor, QImage, QPainter
from PyQt6.QtWidgets import QSizePolicy, QWidget

from canvas.renderer import RenderStyle, render_scene
from canvas.viewport import Viewport
from debug_trace import trace
from settings import get_settings

if TYPE_CHECKING:
    from session.state import AnnotationState


class AnnotationCanvas(QWidget):
    """
    Canvas for one raster with OCR and field overlays.

    Mouse behavior:
    - Left click selects the OCR box under the cursor (``clicked``)
    - Shift + left drag or middle drag pans (``pan_requested``)
    - Wheel zooms around the cursor (``zoom_requested``)

    Display scaling:
    - The backing buffer always matches the raster's pixel size
    - ``display_scale`` stretches it on screen (Fit / Actual Size); events
      are mapped back to buffer pixels before they leave the widget

    Signals:
        clicked(QPointF): Click position in widget coordinates
        pan_requested(float, float): Pan delta in buffer pixels
        zoom_requested(QPointF, int): Anchor in buffer pixels, wheel delta
    """

    clicked = pyqtSignal(QPointF)
    pan_requested = pyqtSignal(float, float)
    zoom_requested = pyqtSignal(QPointF, int)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setSizePolicy(QSizePolicy.Policy.Fixed, QSizePolicy.Policy.Fixed)

        self._image: Optional[QImage] = None
        self._state: Optional[AnnotationState] = None
        self._viewport: Optional[Viewport] = None
        self._buffer = QImage(1, 1, QImage.Format.Format_ARGB32_Premultiplied)
        self._buffer.fill(QColor(0, 0, 0, 0))
        self._style: Optional[RenderStyle] = None
        self.display_scale = 1.0

        # Pan interaction state
        self._panning = False
        self._pan_armed = False
        self._pan_last = QPointF()
        self._pan_origin = QPointF()

    # ── Scene ─────────────────────────────────────────

    def set_scene(self, image: Optional[QImage], state: Optional[AnnotationState], viewport: Viewport):
        """Install a new raster/document pair and size the buffer to the raster."""
        self._image = image
        self._state = state
        self._viewport = viewport
        self._style = RenderStyle.from_settings()
        if image is not None and not image.isNull():
            self._buffer = QImage(image.width(), image.height(), QImage.Format.Format_ARGB32_Premultiplied)
        else:
            self._buffer = QImage(1, 1, QImage.Format.Format_ARGB32_Premultiplied)
        self._buffer.fill(QColor(0, 0, 0, 0))
        self._cancel_pan()
        self._apply_size()
        self.refresh()

    def refresh(self):
        """Redraw the backing buffer and schedule a repaint."""
        if self._viewport is None:
            return
        painter = QPainter(self._buffer)
        try:
            render_scene(painter, self._image, self._state, self._viewport, self._style)
        finally:
            painter.end()
        self.update()

    def buffer(self) -> QImage:
        return self._buffer

    def buffer_size(self) -> Tuple[float, float]:
        return float(self._buffer.width()), float(self._buffer.height())

    def displayed_size(self) -> Tuple[float, float]:
        return float(self.width()), float(self.height())

    # ── Display scaling ───────────────────────────────

    def set_display_scale(self, scale: float):
        scale = max(0.01, float(scale))
        if scale == self.display_scale:
            return
        self.display_scale = scale
        self._apply_size()
        self.update()

    def fit_scale_for(self, available: QSize) -> float:
        """Largest scale (at most 1.0) that shows the whole buffer in ``available``."""
        bw, bh = self.buffer_size()
        if bw <= 0 or bh <= 0 or available.width() <= 0 or available.height() <= 0:
            return 1.0
        return min(1.0, available.width() / bw, available.height() / bh)

    def _apply_size(self):
        bw, bh = self.buffer_size()
        self.setFixedSize(max(1, int(round(bw * self.display_scale))), max(1, int(round(bh * self.display_scale))))

    def sizeHint(self) -> QSize:
        return self.size()

    def _to_buffer(self, pos: QPointF) -> QPointF:
        dw, dh = self.displayed_size()
        bw, bh = self.buffer_size()
        if dw <= 0 or dh <= 0:
            return QPointF(pos)
        return QPointF(pos.x() * bw / dw, pos.y() * bh / dh)

    # ── Painting ──────────────────────────────────────

    def paintEvent(self, event):
        painter = QPainter(self)
        try:
            painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, True)
            painter.drawImage(QRectF(self.rect()), self._buffer)
        finally:
            painter.end()

    # ── Mouse ─────────────────────────────────────────

    def mousePressEvent(self, event):
        """Start a pan on Shift + left / middle press, otherwise emit a click."""
        button = event.button()
        shift = bool(event.modifiers() & Qt.KeyboardModifier.ShiftModifier)
        if button == Qt.MouseButton.MiddleButton or (button == Qt.MouseButton.LeftButton and shift):
            self._pan_armed = True
            self._pan_origin = event.position()
            self._pan_last = event.position()
            self.setCursor(Qt.CursorShape.ClosedHandCursor)
            event.accept()
            return
        if button == Qt.MouseButton.LeftButton and self._viewport is not None:
            trace(f"click at {event.position().x():.1f},{event.position().y():.1f}", "CANVAS")
            self.clicked.emit(event.position())
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if not self._pan_armed:
            if event.modifiers() & Qt.KeyboardModifier.ShiftModifier:
                self.setCursor(Qt.CursorShape.OpenHandCursor)
            else:
                self.unsetCursor()
            return

        pos = event.position()
        if not self._panning:
            threshold = get_settings().settings.canvas.pan.drag_threshold
            if (pos - self._pan_origin).manhattanLength() <= threshold:
                return
            self._panning = True

        delta = self._to_buffer(pos) - self._to_buffer(self._pan_last)
        self._pan_last = pos
        self.pan_requested.emit(delta.x(), delta.y())

    def mouseReleaseEvent(self, event):
        if self._pan_armed:
            self._cancel_pan()
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def leaveEvent(self, event):
        self._cancel_pan()
        super().leaveEvent(event)

    def _cancel_pan(self):
        self._pan_armed = False
        self._panning = False
        self.unsetCursor()

    def wheelEvent(self, event):
        """Zoom around the cursor."""
        if self._viewport is None:
            return
        delta = event.angleDelta().y()
        if delta == 0:
            return
        self.zoom_requested.emit(self._to_buffer(event.position()), delta)
        event.accept()
