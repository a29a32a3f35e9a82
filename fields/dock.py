"""
fields/dock.py

Field dock: the document's fields with their colours, the Reset Field
button, and the info of the image on screen.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QColor, QIcon, QPixmap
from PyQt6.QtWidgets import (
    QDockWidget,
    QFormLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QScrollArea,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from utils import hex_to_qcolor

if TYPE_CHECKING:
    from session.state import AnnotationState

log = logging.getLogger(__name__)

ASSIGNED_MARK = "●"
UNASSIGNED_MARK = "○"

SELECT_HINT = "Select a field, then click an OCR box."
NO_FIELDS_HINT = "No fields defined in JSON"


def _swatch(color: QColor, size: int = 14) -> QIcon:
    pm = QPixmap(size, size)
    pm.fill(color)
    return QIcon(pm)


class FieldDock(QDockWidget):
    """
    Dock with two tabs:
    - Fields: one row per field (swatch, assignment marker, name) and a
      Reset Field button enabled while a field is selected
    - Image: path, size, mode, colour depth and file size

    Clicking a row selects that field; the selection is owned by the
    session controller and pushed back through set_selected().
    """

    field_selected = pyqtSignal(str)
    reset_requested = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__("Fields", parent)
        self._image_info: Dict[str, Any] = {}
        self._updating = False

        w = QWidget()
        self.setWidget(w)
        layout = QVBoxLayout(w)
        layout.setContentsMargins(0, 0, 0, 0)

        self.tabs = QTabWidget()
        layout.addWidget(self.tabs)

        # === Fields Tab ===
        fields_tab = QWidget()
        fields_layout = QVBoxLayout(fields_tab)

        self.field_list = QListWidget()
        self.field_list.setSelectionMode(QListWidget.SelectionMode.SingleSelection)
        self.field_list.itemClicked.connect(self._on_item_clicked)
        fields_layout.addWidget(self.field_list)

        self.hint = QLabel(SELECT_HINT)
        self.hint.setWordWrap(True)
        fields_layout.addWidget(self.hint)

        self.reset_btn = QPushButton("Reset Field")
        self.reset_btn.setToolTip("Clear the box assigned to the selected field (Del)")
        self.reset_btn.setEnabled(False)
        self.reset_btn.clicked.connect(self.reset_requested.emit)
        fields_layout.addWidget(self.reset_btn)

        self.tabs.addTab(fields_tab, "Fields")

        # === Image Tab ===
        image_tab = QWidget()
        image_layout = QVBoxLayout(image_tab)

        self.img_path = QLabel("-")
        self.img_path.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        self.img_path.setWordWrap(False)

        self.path_scroll = QScrollArea()
        self.path_scroll.setWidget(self.img_path)
        self.path_scroll.setWidgetResizable(True)
        self.path_scroll.setMinimumWidth(200)
        self.path_scroll.setMaximumHeight(40)
        self.path_scroll.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.path_scroll.setFrameShape(QScrollArea.Shape.NoFrame)

        self.img_size = QLabel("-")
        self.img_mode = QLabel("-")
        self.img_depth = QLabel("-")
        self.img_filesize = QLabel("-")

        img_form = QFormLayout()
        img_form.addRow("Path:", self.path_scroll)
        img_form.addRow("Size:", self.img_size)
        img_form.addRow("Mode:", self.img_mode)
        img_form.addRow("Color depth:", self.img_depth)
        img_form.addRow("File size:", self.img_filesize)
        image_layout.addLayout(img_form)
        image_layout.addStretch(1)

        self.tabs.addTab(image_tab, "Image")

    # ── Fields ────────────────────────────────────────

    def set_fields(self, state: Optional[AnnotationState], selected: Optional[str] = None):
        """Rebuild the list from the document's fields (document order)."""
        self._updating = True
        try:
            self.field_list.clear()
            if state is not None:
                for name in state.field_names():
                    item = QListWidgetItem()
                    item.setData(Qt.ItemDataRole.UserRole, name)
                    item.setIcon(_swatch(hex_to_qcolor(state.field_color(name), QColor("#000000"))))
                    self.field_list.addItem(item)
            self.refresh_assignments(state)
            no_fields = state is not None and not state.field_names()
            self.hint.setText(NO_FIELDS_HINT if no_fields else SELECT_HINT)
        finally:
            self._updating = False
        self.set_selected(selected)

    def refresh_assignments(self, state: Optional[AnnotationState]):
        """Update the assigned/unassigned markers."""
        for row in range(self.field_list.count()):
            item = self.field_list.item(row)
            name = item.data(Qt.ItemDataRole.UserRole)
            assigned = state is not None and state.field_box(name) is not None
            mark = ASSIGNED_MARK if assigned else UNASSIGNED_MARK
            item.setText(f"{mark}  {name}")
            item.setToolTip(f"{name}: {'assigned' if assigned else 'no box'}")

    def set_selected(self, name: Optional[str]):
        """Highlight ``name`` (or nothing) without emitting field_selected."""
        self._updating = True
        try:
            self.field_list.clearSelection()
            for row in range(self.field_list.count()):
                item = self.field_list.item(row)
                if name and item.data(Qt.ItemDataRole.UserRole) == name:
                    item.setSelected(True)
                    self.field_list.setCurrentItem(item)
                    break
        finally:
            self._updating = False
        self.reset_btn.setEnabled(bool(name))

    def _on_item_clicked(self, item: QListWidgetItem):
        if self._updating:
            return
        name = item.data(Qt.ItemDataRole.UserRole)
        log.debug("Field clicked: %s", name)
        self.field_selected.emit(name)

    # ── Image info ────────────────────────────────────

    def set_image_info(self, info: Dict[str, Any]):
        """Update the image info display."""
        self._image_info = info or {}
        path = str(self._image_info.get("path", "-"))
        self.img_path.setText(path)
        self.img_path.setToolTip(path)
        self.img_size.setText(str(self._image_info.get("size", "-")))
        self.img_mode.setText(str(self._image_info.get("mode", "-")))
        self.img_depth.setText(str(self._image_info.get("depth", "-")))
        self.img_filesize.setText(str(self._image_info.get("filesize", "-")))
