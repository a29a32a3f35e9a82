"""
canvas/renderer.py

Redraws the raster image with OCR and field overlays under the viewport
transform.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from PyQt6.QtCore import QPointF, QRectF, Qt
from PyQt6.QtGui import QBrush, QColor, QFont, QFontMetricsF, QImage, QPainter, QPen

from canvas.geometry import box_to_polygon, is_box
from canvas.viewport import Viewport
from debug_trace import trace
from models import FIELD_COLORS, OCR_COLOR, Box
from settings import get_settings
from utils import hex_to_qcolor

if TYPE_CHECKING:
    from session.state import AnnotationState


@dataclass
class RenderStyle:
    """Colours, widths and label metrics used by render_scene()."""
    ocr_color: str = OCR_COLOR
    ocr_line_width: float = 4.0
    field_line_width: float = 5.0
    palette: List[str] = field(default_factory=lambda: list(FIELD_COLORS))
    label_font_family: str = "Arial"
    label_bold: bool = True
    label_fraction: float = 0.02
    label_min_px: int = 14
    label_padding: int = 6
    label_text_color: str = "#000000"
    background: str = "#00000000"

    @classmethod
    def from_settings(cls) -> "RenderStyle":
        canvas = get_settings().settings.canvas
        return cls(
            ocr_color=canvas.boxes.ocr_color,
            ocr_line_width=canvas.boxes.ocr_line_width,
            field_line_width=canvas.boxes.field_line_width,
            palette=list(canvas.boxes.palette) or list(FIELD_COLORS),
            label_font_family=canvas.labels.font_family,
            label_bold=canvas.labels.bold,
            label_fraction=canvas.labels.height_fraction,
            label_min_px=canvas.labels.min_px,
            label_padding=canvas.labels.padding,
            label_text_color=canvas.labels.text_color,
        )

    def label_pixel_size(self, image_height: int) -> int:
        """Label font size: a fraction of the image height, never below the floor."""
        return max(int(self.label_min_px), int(round(image_height * self.label_fraction)))

    def label_font(self, image_height: int) -> QFont:
        font = QFont(self.label_font_family)
        font.setPixelSize(self.label_pixel_size(image_height))
        font.setBold(self.label_bold)
        return font


def render_scene(
    painter: QPainter,
    image: Optional[QImage],
    state: Optional[AnnotationState],
    viewport: Viewport,
    style: Optional[RenderStyle] = None,
) -> None:
    """
    Draw one frame onto ``painter``'s device.

    Order: clear, apply the viewport transform, raster at (0, 0), OCR
    boxes, field boxes, field labels, restore.  Field boxes sit on top of
    OCR boxes.

    Args:
        painter: Active painter on the backing buffer
        image: Raster to draw (None draws overlays only)
        state: Annotation state (None draws the raster only)
        viewport: Zoom/pan transform
        style: Drawing style; defaults to the current settings
    """
    style = style or RenderStyle.from_settings()
    device = painter.device()
    trace(f"render {device.width()}x{device.height()} {viewport!r}", "PAINT")

    # 1. clear
    painter.save()
    painter.resetTransform()
    painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_Source)
    painter.fillRect(QRectF(0, 0, device.width(), device.height()), hex_to_qcolor(style.background, QColor(0, 0, 0, 0)))
    painter.restore()

    # 2. push transform
    painter.save()
    painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
    painter.setTransform(viewport.to_qtransform(), True)

    # 3. raster in image space
    if image is not None and not image.isNull():
        painter.drawImage(QPointF(0, 0), image)

    if state is not None:
        image_height = image.height() if image is not None and not image.isNull() else 0

        # 4. OCR boxes
        ocr_color = hex_to_qcolor(style.ocr_color, QColor(OCR_COLOR))
        for box in state.ocr_boxes:
            if is_box(box):
                _draw_box(painter, box, ocr_color, style.ocr_line_width)

        # 5. field boxes, 6. labels
        font = style.label_font(image_height)
        for idx, (name, box) in enumerate(state.fields.items()):
            if not is_box(box):
                continue
            color = hex_to_qcolor(style.palette[idx % len(style.palette)], QColor(FIELD_COLORS[0]))
            _draw_box(painter, box, color, style.field_line_width)
            _draw_label(painter, box, name, color, font, style)

    # 7. pop transform
    painter.restore()


def _draw_box(painter: QPainter, box: Box, color: QColor, line_width: float) -> None:
    pen = QPen(color)
    pen.setWidthF(float(line_width))
    pen.setJoinStyle(Qt.PenJoinStyle.MiterJoin)
    painter.setPen(pen)
    painter.setBrush(Qt.BrushStyle.NoBrush)
    painter.drawPolygon(box_to_polygon(box))


def label_rect(box: Box, text: str, font: QFont, padding: float) -> QRectF:
    """Label background: bottom-left at the box's first vertex, extending upward."""
    fm = QFontMetricsF(font)
    text_w = fm.horizontalAdvance(text)
    text_h = fm.height()
    x = float(box[0][0])
    y = float(box[0][1])
    return QRectF(x, y - text_h - padding, text_w + padding * 2, text_h + padding)


def _draw_label(painter: QPainter, box: Box, name: str, color: QColor, font: QFont, style: RenderStyle) -> None:
    padding = float(style.label_padding)
    rect = label_rect(box, name, font, padding)

    painter.setPen(Qt.PenStyle.NoPen)
    painter.setBrush(QBrush(color))
    painter.drawRect(rect)

    painter.setFont(font)
    painter.setPen(hex_to_qcolor(style.label_text_color, QColor("#000000")))
    text_rect = QRectF(rect.x() + padding, rect.y() + padding / 2, rect.width() - padding * 2, rect.height() - padding)
    painter.drawText(text_rect, Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop, name)
