"""
main.py

FieldBox - OCR Field Annotation Tool

PyQt6 application for assigning OCR bounding boxes to named fields:
- Image catalog with viewed/updated progress
- Zoomable, pannable canvas with OCR and field overlays
- Field dock with per-field colours and image info
- Local data folder or annotation server as the store

Usage:
    python main.py [DATA_DIR] [--server URL]

Dependencies:
    pip install PyQt6 pillow platformdirs tomli-w requests
"""

from __future__ import annotations

import argparse
import logging
import sys
import traceback
from typing import List, Optional

from PyQt6.QtCore import QPointF, QSize, Qt
from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import (
    QApplication,
    QComboBox,
    QFileDialog,
    QInputDialog,
    QLabel,
    QMainWindow,
    QMessageBox,
    QScrollArea,
    QToolBar,
)

from canvas import AnnotationCanvas
from debug_trace import close_log, configure, trace, trace_exception
from fields import FieldDock
from help_dialog import SHORTCUTS_TAB, HelpDialog, show_about_dialog
from models import ImageStatus, NoticeLevel, ZoomDirection
from session import SessionController, TaskRunner
from settings import SettingsManager, get_settings
from store import DataStore, FolderStore, HttpStore

STATUS_MARKERS = {
    ImageStatus.UNVIEWED: "    ",
    ImageStatus.VIEWED: "○  ",
    ImageStatus.UPDATED: "✔  ",
}


def build_store(args: argparse.Namespace, settings_manager: SettingsManager) -> DataStore:
    """Pick the store: --server, then DATA_DIR, then the settings."""
    general = settings_manager.settings.general
    if args.server:
        return HttpStore(args.server, timeout=general.request_timeout)
    if args.data_dir:
        return FolderStore(args.data_dir)
    if general.server_url:
        return HttpStore(general.server_url, timeout=general.request_timeout)
    return FolderStore(settings_manager.get_data_dir())


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="fieldbox",
        description="Assign OCR bounding boxes to named document fields.",
    )
    parser.add_argument("data_dir", nargs="?", default="",
                        help="folder with images and their JSON sidecars")
    parser.add_argument("--server", default="",
                        help="annotation server URL, e.g. http://localhost:3000")
    return parser.parse_args(argv)


class MainWindow(QMainWindow):
    """Main application window.

    Args:
        settings_manager: The SettingsManager instance for application settings.
        store: Where images, documents and progress come from.
        runner: Task runner for store calls (threads by default).
    """

    def __init__(self, settings_manager: SettingsManager, store: DataStore, runner: Optional[TaskRunner] = None):
        super().__init__()
        self.settings_manager = settings_manager
        self.setWindowTitle("FieldBox[*]")

        self.controller = SessionController(store, runner, self)

        # Canvas inside a scroll area; the canvas sizes itself
        self.canvas = AnnotationCanvas()
        self.scroll = QScrollArea()
        self.scroll.setWidget(self.canvas)
        self.scroll.setWidgetResizable(False)
        self.scroll.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.setCentralWidget(self.scroll)

        self.fields = FieldDock(self)
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, self.fields)

        self._fit_to_window = True

        self._build_actions()
        self._build_menus()
        self._build_toolbar()
        self._connect_signals()

        self._update_navigation()
        self.statusBar().showMessage("Loading images...")

    # ── UI construction ───────────────────────────────

    def _build_actions(self):
        self.open_folder_act = QAction("Open Data Folder...", self)
        self.open_folder_act.setShortcut(QKeySequence.StandardKey.Open)
        self.open_folder_act.triggered.connect(self.open_folder_dialog)

        self.connect_server_act = QAction("Connect to Server...", self)
        self.connect_server_act.triggered.connect(self.connect_server_dialog)

        self.save_act = QAction("Save Changes", self)
        self.save_act.setShortcut(QKeySequence("Ctrl+S"))
        self.save_act.setToolTip("Save the field assignments (Ctrl+S)")
        self.save_act.triggered.connect(lambda: self.controller.save())

        self.prev_act = QAction("Previous", self)
        self.prev_act.setShortcut(QKeySequence(Qt.Key.Key_Left))
        self.prev_act.setToolTip("Previous image (Left)")
        self.prev_act.triggered.connect(lambda: self.controller.navigate(-1))

        self.next_act = QAction("Next", self)
        self.next_act.setShortcut(QKeySequence(Qt.Key.Key_Right))
        self.next_act.setToolTip("Next image (Right)")
        self.next_act.triggered.connect(lambda: self.controller.navigate(1))

        self.reset_field_act = QAction("Reset Field", self)
        self.reset_field_act.setShortcuts([QKeySequence(Qt.Key.Key_Delete), QKeySequence(Qt.Key.Key_Backspace)])
        self.reset_field_act.setToolTip("Clear the selected field's box (Del)")
        self.reset_field_act.setEnabled(False)
        self.reset_field_act.triggered.connect(self.controller.clear_selected_field)

        self.zoom_in_act = QAction("Zoom In", self)
        self.zoom_in_act.setShortcut(QKeySequence.StandardKey.ZoomIn)
        self.zoom_in_act.triggered.connect(lambda: self._zoom_center(ZoomDirection.IN))

        self.zoom_out_act = QAction("Zoom Out", self)
        self.zoom_out_act.setShortcut(QKeySequence.StandardKey.ZoomOut)
        self.zoom_out_act.triggered.connect(lambda: self._zoom_center(ZoomDirection.OUT))

        self.reset_view_act = QAction("Reset View", self)
        self.reset_view_act.setShortcut(QKeySequence(Qt.Key.Key_0))
        self.reset_view_act.triggered.connect(self.controller.reset_view)

        self.fit_act = QAction("Fit to Window", self)
        self.fit_act.setCheckable(True)
        self.fit_act.setChecked(self._fit_to_window)
        self.fit_act.toggled.connect(self._on_fit_toggled)

        self.actual_size_act = QAction("Actual Size", self)
        self.actual_size_act.triggered.connect(lambda: self.fit_act.setChecked(False))

    def _build_menus(self):
        """Build the application menu bar."""
        menubar = self.menuBar()

        file_menu = menubar.addMenu("&File")
        file_menu.addAction(self.open_folder_act)
        file_menu.addAction(self.connect_server_act)
        file_menu.addSeparator()
        file_menu.addAction(self.save_act)
        file_menu.addSeparator()
        exit_act = QAction("E&xit", self)
        exit_act.triggered.connect(self.close)
        file_menu.addAction(exit_act)

        edit_menu = menubar.addMenu("&Edit")
        edit_menu.addAction(self.reset_field_act)

        view_menu = menubar.addMenu("&View")
        view_menu.addAction(self.prev_act)
        view_menu.addAction(self.next_act)
        view_menu.addSeparator()
        view_menu.addAction(self.zoom_in_act)
        view_menu.addAction(self.zoom_out_act)
        view_menu.addAction(self.reset_view_act)
        view_menu.addSeparator()
        view_menu.addAction(self.fit_act)
        view_menu.addAction(self.actual_size_act)
        view_menu.addSeparator()
        view_menu.addAction(self.fields.toggleViewAction())

        help_menu = menubar.addMenu("&Help")
        help_contents_act = QAction("Help Contents", self)
        help_contents_act.setShortcut(QKeySequence(Qt.Key.Key_F1))
        help_contents_act.triggered.connect(self._show_help_dialog)
        help_menu.addAction(help_contents_act)

        shortcuts_act = QAction("Keyboard Shortcuts", self)
        shortcuts_act.triggered.connect(lambda: self._show_help_dialog(tab=SHORTCUTS_TAB))
        help_menu.addAction(shortcuts_act)

        help_menu.addSeparator()

        about_act = QAction("About FieldBox", self)
        about_act.triggered.connect(lambda: show_about_dialog(self))
        help_menu.addAction(about_act)

    def _build_toolbar(self):
        """Build the application toolbar."""
        tb = QToolBar("Images")
        tb.setIconSize(QSize(18, 18))
        tb.setObjectName("images_toolbar")
        self.addToolBar(tb)

        self.image_select = QComboBox()
        self.image_select.setMinimumWidth(220)
        self.image_select.setToolTip("Images (✔ updated, ○ viewed)")
        self.image_select.activated.connect(self.controller.load_image)
        tb.addWidget(self.image_select)

        tb.addAction(self.prev_act)
        self.counter = QLabel("")
        self.counter.setContentsMargins(6, 0, 6, 0)
        tb.addWidget(self.counter)
        tb.addAction(self.next_act)

        tb.addSeparator()
        tb.addAction(self.save_act)
        tb.addAction(self.reset_field_act)

        tb.addSeparator()
        tb.addAction(self.zoom_in_act)
        tb.addAction(self.zoom_out_act)
        tb.addAction(self.reset_view_act)
        tb.addAction(self.fit_act)

    def _connect_signals(self):
        c = self.controller
        c.catalog_loaded.connect(self._on_catalog_loaded)
        c.loading_started.connect(self._on_loading_started)
        c.load_failed.connect(self._on_load_failed)
        c.image_displayed.connect(self._on_image_displayed)
        c.document_changed.connect(self._on_document_changed)
        c.viewport_changed.connect(self.canvas.refresh)
        c.selection_changed.connect(self._on_selection_changed)
        c.progress_changed.connect(self._refresh_image_list)
        c.image_info_changed.connect(self.fields.set_image_info)
        c.notice.connect(self._show_notice)
        c.input_required.connect(self._show_input_required)

        self.canvas.clicked.connect(self._on_canvas_clicked)
        self.canvas.pan_requested.connect(c.pan_by)
        self.canvas.zoom_requested.connect(self._on_canvas_zoom)

        self.fields.field_selected.connect(c.select_field)
        self.fields.reset_requested.connect(c.clear_selected_field)

    # ── Store ─────────────────────────────────────────

    def start(self):
        """Fetch the catalog from the current store."""
        trace(f"Using store {self.controller.store.describe()}", "MAIN")
        self.controller.load_catalog()

    def switch_store(self, store: DataStore):
        self.controller.set_store(store)
        self.canvas.set_scene(None, None, self.controller.viewport)
        self.fields.set_fields(None)
        self.fields.set_image_info({})
        self.setWindowModified(False)
        self.statusBar().showMessage(f"Opening {store.describe()}...")
        self.start()

    def open_folder_dialog(self):
        start_dir = str(self.settings_manager.get_data_dir())
        path = QFileDialog.getExistingDirectory(self, "Open Data Folder", start_dir)
        if not path:
            return
        general = self.settings_manager.settings.general
        general.data_dir = path
        general.server_url = ""
        self.switch_store(FolderStore(path))

    def connect_server_dialog(self):
        general = self.settings_manager.settings.general
        url, ok = QInputDialog.getText(self, "Connect to Server", "Server URL:", text=general.server_url or "http://localhost:3000")
        url = url.strip()
        if not ok or not url:
            return
        general.server_url = url
        self.switch_store(HttpStore(url, timeout=general.request_timeout))

    # ── Controller -> UI ──────────────────────────────

    def _on_catalog_loaded(self):
        self.image_select.blockSignals(True)
        self.image_select.clear()
        for entry in self.controller.catalog:
            self.image_select.addItem(entry.image_path, entry.id)
        self.image_select.blockSignals(False)
        self._refresh_image_list()
        self._update_navigation()
        if self.controller.catalog:
            self.statusBar().showMessage(f"{len(self.controller.catalog)} images in {self.controller.store.describe()}")

    def _refresh_image_list(self):
        for i, entry in enumerate(self.controller.catalog):
            if i >= self.image_select.count():
                break
            marker = STATUS_MARKERS.get(self.controller.status_of(i), "")
            self.image_select.setItemText(i, f"{marker}{entry.image_path}")

    def _on_loading_started(self, index: int):
        self._select_in_list(index)
        self._update_navigation()
        self.statusBar().showMessage(f"Loading {self.controller.catalog[index].image_path}...")

    def _on_load_failed(self, index: int):
        self._select_in_list(self.controller.current_index)
        self._update_navigation()

    def _on_image_displayed(self, index: int):
        c = self.controller
        self.canvas.set_scene(c.image, c.document, c.viewport)
        self._apply_display_scale()
        self.fields.set_fields(c.document, c.selected_field)
        self._select_in_list(index)
        self._update_navigation()
        self.setWindowModified(False)
        self.statusBar().clearMessage()

    def _on_document_changed(self):
        self.canvas.refresh()
        self.fields.refresh_assignments(self.controller.document)
        self.setWindowModified(self.controller.document is not None and self.controller.document.dirty)

    def _on_selection_changed(self, name: str):
        self.fields.set_selected(name or None)
        self.reset_field_act.setEnabled(bool(name))

    def _select_in_list(self, index: int):
        self.image_select.blockSignals(True)
        self.image_select.setCurrentIndex(index)
        self.image_select.blockSignals(False)

    def _update_navigation(self):
        c = self.controller
        total = len(c.catalog)
        self.prev_act.setEnabled(c.can_navigate(-1))
        self.next_act.setEnabled(c.can_navigate(1))
        self.counter.setText(f"Image {c.target_index + 1} of {total}" if total and c.target_index >= 0 else "")

    def _show_notice(self, level: str, message: str):
        trace(f"{level}: {message}", "NOTICE")
        timeout = self.settings_manager.settings.general.status_timeout_ms
        if level == NoticeLevel.ERROR:
            timeout *= 2
        self.statusBar().showMessage(message, timeout)

    def _show_input_required(self, message: str):
        QMessageBox.warning(self, "FieldBox", message)

    # ── Canvas -> controller ──────────────────────────

    def _on_canvas_clicked(self, pos: QPointF):
        self.controller.assign_at((pos.x(), pos.y()), self.canvas.displayed_size(), self.canvas.buffer_size())

    def _on_canvas_zoom(self, anchor: QPointF, delta: int):
        self.controller.zoom_at((anchor.x(), anchor.y()), delta)

    def _zoom_center(self, direction: str):
        bw, bh = self.canvas.buffer_size()
        self.controller.zoom_at((bw / 2, bh / 2), direction)

    # ── Display scaling ───────────────────────────────

    def _on_fit_toggled(self, checked: bool):
        self._fit_to_window = checked
        self._apply_display_scale()

    def _apply_display_scale(self):
        if self._fit_to_window:
            self.canvas.set_display_scale(self.canvas.fit_scale_for(self.scroll.viewport().size()))
        else:
            self.canvas.set_display_scale(1.0)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        if self._fit_to_window:
            self._apply_display_scale()

    # ── Misc ──────────────────────────────────────────

    def _show_help_dialog(self, tab: int = 0):
        dlg = HelpDialog(self, initial_tab=tab)
        dlg.exec()

    def closeEvent(self, event):
        trace("Main window closing", "MAIN")
        self.controller.shutdown()
        super().closeEvent(event)


def main(argv: Optional[List[str]] = None):
    """Application entry point."""
    args = parse_args(argv)

    settings_manager = get_settings()
    settings_manager.ensure_file_complete()

    debug = settings_manager.settings.debug
    configure(debug.trace, debug.trace_paint, debug.log_file)
    logging.basicConfig(level=logging.DEBUG if debug.trace else logging.WARNING)

    trace("Application starting", "MAIN")
    app = QApplication(sys.argv[:1])
    app.setApplicationName("FieldBox")

    # Save settings on application quit
    def save_on_quit():
        trace("Saving settings on quit", "MAIN")
        settings_manager.save()
        close_log()

    app.aboutToQuit.connect(save_on_quit)

    try:
        store = build_store(args, settings_manager)
    except ValueError as e:
        QMessageBox.critical(None, "FieldBox", str(e))
        return 2

    trace("Creating MainWindow", "MAIN")
    w = MainWindow(settings_manager, store)
    w.resize(1400, 900)
    w.show()
    w.start()
    trace("Entering event loop", "MAIN")
    return app.exec()


if __name__ == "__main__":
    # Set up global exception handler to catch crashes
    def excepthook(exc_type, exc_value, exc_tb):
        trace("UNCAUGHT EXCEPTION:", "CRASH")
        trace("".join(traceback.format_exception(exc_type, exc_value, exc_tb)), "CRASH")
        close_log()
        sys.__excepthook__(exc_type, exc_value, exc_tb)

    sys.excepthook = excepthook

    try:
        sys.exit(main())
    except Exception as e:
        trace(f"FATAL: {type(e).__name__}: {e}", "CRASH")
        trace_exception("Fatal exception")
        close_log()
        raise
