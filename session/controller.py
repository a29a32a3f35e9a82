"""
session/controller.py

Session controller: catalog, image switching, progress and persistence.

The controller is the single context object for one annotation session.
It owns the catalog, the progress record, the current document, the
selected field and the viewport, and talks to the store through
background workers.  Results are applied on the UI thread; results of a
superseded image load are dropped by sequence number.
"""

from __future__ import annotations

import copy
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot
from PyQt6.QtGui import QImage

from canvas.geometry import find_box_at
from canvas.viewport import Viewport
from debug_trace import trace, trace_call
from models import (
    Box,
    CatalogEntry,
    NoticeLevel,
    ProgressKind,
    ProgressRecord,
    SessionState,
)
from session.state import AnnotationState
from session.worker import StoreWorker, TaskResult, TaskRunner
from store.base import DataStore, StoreError
from utils import describe_raster

SELECT_FIELD_FIRST = "Please select a field first!"


def load_raster(store: DataStore, entry: CatalogEntry) -> Tuple[QImage, Dict[str, Any]]:
    """Fetch and decode a raster (runs on a worker thread).

    Raises:
        StoreError: If the bytes cannot be fetched or decoded.
    """
    data = store.fetch_raster(entry.id)
    image = QImage.fromData(data)
    if image.isNull():
        raise StoreError(f"Could not decode image {entry.image_path}")
    return image, describe_raster(data, entry.image_path)


class SessionController(QObject):
    """
    Sequences image loading, viewport reset, progress and save/load.

    State machine: idle -> loading -> displaying, re-entering loading on
    navigation or explicit selection.

    Signals:
        catalog_loaded(): The catalog (and selectable index) is available
        loading_started(int): A load for the catalog index began
        load_failed(int): The load for the catalog index failed
        image_displayed(int): Document and raster for the index are installed
        document_changed(): Field assignments changed
        viewport_changed(): Zoom or pan changed
        selection_changed(str): Selected field changed ("" for none)
        progress_changed(): Viewed/updated sets changed
        image_info_changed(dict): Path/size/mode info of the shown raster
        notice(str, str): Transient (level, message) for the status bar
        input_required(str): Blocking notice; the action was aborted
    """

    catalog_loaded = pyqtSignal()
    loading_started = pyqtSignal(int)
    load_failed = pyqtSignal(int)
    image_displayed = pyqtSignal(int)
    document_changed = pyqtSignal()
    viewport_changed = pyqtSignal()
    selection_changed = pyqtSignal(str)
    progress_changed = pyqtSignal()
    image_info_changed = pyqtSignal(dict)
    notice = pyqtSignal(str, str)
    input_required = pyqtSignal(str)

    def __init__(self, store: DataStore, runner: Optional[TaskRunner] = None, parent=None):
        super().__init__(parent)
        self.store = store
        self.runner = runner or TaskRunner()

        self.catalog: List[CatalogEntry] = []
        self.progress = ProgressRecord()
        self.state = SessionState.IDLE

        self.current_index = -1
        self.document: Optional[AnnotationState] = None
        self.image: Optional[QImage] = None
        self.image_info: Dict[str, Any] = {}
        self.selected_field: Optional[str] = None
        self.viewport = Viewport()

        # Store generation (catalog, progress, save) and image load bookkeeping
        self._generation = 0
        self._load_seq = 0
        self._pending_index = -1
        self._pending: Dict[str, Any] = {}

        self._handlers: Dict[str, Callable[[TaskResult], None]] = {
            "catalog": self._on_catalog,
            "progress": self._on_progress,
            "document": self._on_load_part,
            "raster": self._on_load_part,
            "save": self._on_saved,
        }

    # ── Background tasks ──────────────────────────────

    def _start(self, kind: str, fn: Callable[[], Any], seq: int = 0) -> None:
        worker = StoreWorker(kind, fn, seq)
        worker.finished.connect(self._on_task_finished)
        worker.failed.connect(self._on_task_failed)
        self.runner.start(worker)

    def _is_stale(self, result: TaskResult) -> bool:
        if result.kind in ("document", "raster"):
            return result.seq != self._load_seq
        if result.kind in ("catalog", "progress", "save"):
            return result.seq != self._generation
        return False

    @pyqtSlot(object)
    def _on_task_finished(self, result: TaskResult):
        trace(f"task done: {result.kind} #{result.seq}", "SESSION")
        if self._is_stale(result):
            trace(f"dropping stale {result.kind} #{result.seq}", "SESSION")
            return
        handler = self._handlers.get(result.kind)
        if handler is not None:
            handler(result)

    @pyqtSlot(object)
    def _on_task_failed(self, result: TaskResult):
        trace(f"task failed: {result.kind} #{result.seq}: {result.error}", "SESSION")
        if self._is_stale(result):
            trace(f"dropping stale {result.kind} failure #{result.seq}", "SESSION")
            return
        kind = result.kind
        if kind == "catalog":
            self.notice.emit(
                NoticeLevel.ERROR,
                f"Error loading images. Make sure the data folder exists and contains images. ({result.error})",
            )
        elif kind == "progress":
            self.notice.emit(NoticeLevel.WARNING, f"Could not load progress: {result.error}")
        elif kind in ("document", "raster"):
            failed_index = self._pending_index
            # Drop the other half of this load when it arrives
            self._load_seq += 1
            self._pending = {}
            self._pending_index = -1
            self.state = SessionState.DISPLAYING if self.document is not None else SessionState.IDLE
            self.notice.emit(NoticeLevel.ERROR, f"Error loading image data: {result.error}")
            self.load_failed.emit(failed_index)
        elif kind == "save":
            self.notice.emit(NoticeLevel.ERROR, f"Error saving changes: {result.error}")
        elif kind == "progress_append":
            self.notice.emit(NoticeLevel.WARNING, f"Could not record progress: {result.error}")

    # ── Catalog ───────────────────────────────────────

    @trace_call("SESSION")
    def set_store(self, store: DataStore) -> None:
        """Switch to another store and forget everything about the old one."""
        self.store = store
        self._generation += 1
        self._load_seq += 1
        self._pending = {}
        self._pending_index = -1

        self.catalog = []
        self.progress = ProgressRecord()
        self.current_index = -1
        self.document = None
        self.image = None
        self.image_info = {}
        self.selected_field = None
        self.viewport.reset()
        self.state = SessionState.IDLE
        self.catalog_loaded.emit()

    def load_catalog(self) -> None:
        """Fetch the catalog and progress record; the first image loads after."""
        self._start("catalog", self.store.list_catalog, self._generation)
        self._start("progress", self.store.fetch_progress, self._generation)

    def _on_catalog(self, result: TaskResult):
        self.catalog = list(result.payload or [])
        self.catalog_loaded.emit()
        if not self.catalog:
            self.notice.emit(NoticeLevel.WARNING, "No images with JSON sidecars found.")
            return
        if self.current_index < 0:
            self.load_image(0)

    def _on_progress(self, result: TaskResult):
        record: ProgressRecord = result.payload or ProgressRecord()
        # Keep ids recorded locally before the fetch came back
        self.progress.viewed |= record.viewed
        self.progress.updated |= record.updated
        self.progress_changed.emit()

    @property
    def current_entry(self) -> Optional[CatalogEntry]:
        if 0 <= self.current_index < len(self.catalog):
            return self.catalog[self.current_index]
        return None

    @property
    def target_index(self) -> int:
        """Index being loaded, or the displayed index when idle."""
        if self.state == SessionState.LOADING and self._pending_index >= 0:
            return self._pending_index
        return self.current_index

    def status_of(self, index: int) -> str:
        return self.progress.status_of(self.catalog[index].id)

    # ── Image loading ─────────────────────────────────

    def load_image(self, index: int) -> None:
        """
        Load the document and raster for a catalog index.

        Out-of-range indexes are ignored.  A newer load supersedes any load
        still in flight.
        """
        if not 0 <= index < len(self.catalog):
            return

        self._load_seq += 1
        seq = self._load_seq
        self._pending = {}
        self._pending_index = index
        self.state = SessionState.LOADING

        entry = self.catalog[index]
        store = self.store
        trace(f"load #{seq}: {entry.id}", "SESSION")
        self.loading_started.emit(index)

        self._start("document", lambda: store.fetch_document(entry.id), seq)
        self._start("raster", lambda: load_raster(store, entry), seq)

    def _on_load_part(self, result: TaskResult):
        self._pending[result.kind] = result.payload
        if "document" in self._pending and "raster" in self._pending:
            self._display()

    def _display(self):
        index = self._pending_index
        image, info = self._pending["raster"]
        document = AnnotationState.from_dict(self._pending["document"])
        self._pending = {}
        self._pending_index = -1

        self.document = document
        self.image = image
        self.image_info = info
        self.current_index = index
        self.viewport.reset()
        self.selected_field = None

        self.state = SessionState.DISPLAYING
        self.image_info_changed.emit(info)
        self.image_displayed.emit(index)
        self.selection_changed.emit("")
        self.viewport_changed.emit()

        self.mark_as_viewed(self.catalog[index].id)

    def navigate(self, direction: int) -> None:
        """Load the previous (-1) or next (+1) image when there is one."""
        if self.can_navigate(direction):
            self.load_image(self.target_index + direction)

    def can_navigate(self, direction: int) -> bool:
        new_index = self.target_index + direction
        return 0 <= new_index < len(self.catalog)

    # ── Progress ──────────────────────────────────────

    def mark_as_viewed(self, image_id: str) -> None:
        """Record ``image_id`` as viewed; repeated calls change nothing."""
        if not self.progress.add(ProgressKind.VIEWED, image_id):
            return
        self.progress_changed.emit()
        store = self.store
        self._start("progress_append", lambda: store.append_progress(ProgressKind.VIEWED, image_id))

    # ── Persistence ───────────────────────────────────

    @trace_call("SESSION")
    def save(self) -> None:
        """Send the current document to the store, null fields included."""
        entry = self.current_entry
        if entry is None or self.document is None:
            self.notice.emit(NoticeLevel.WARNING, "No image loaded.")
            return
        payload = copy.deepcopy(self.document.to_dict())
        store = self.store
        image_id = entry.id

        def _save():
            store.store_document(image_id, payload)
            return image_id

        trace(f"save {image_id}", "SESSION")
        self._start("save", _save, self._generation)

    def _on_saved(self, result: TaskResult):
        image_id = result.payload
        entry = self.current_entry
        if entry is not None and entry.id == image_id and self.document is not None:
            self.document.dirty = False
        if self.progress.add(ProgressKind.UPDATED, image_id):
            self.progress_changed.emit()
        self.notice.emit(NoticeLevel.INFO, "Changes saved successfully!")

    # ── Field selection and assignment ────────────────

    def select_field(self, field_name: str) -> None:
        if self.document is None or not self.document.has_field(field_name):
            return
        self.selected_field = field_name
        self.selection_changed.emit(field_name)

    def assign_at(
        self,
        screen_point: Sequence[float],
        displayed_size: Optional[Tuple[float, float]] = None,
        buffer_size: Optional[Tuple[float, float]] = None,
    ) -> Optional[Box]:
        """
        Assign the OCR box under a click to the selected field.

        Returns:
            The assigned box, or None if nothing was hit.
        """
        if self.document is None:
            return None
        if not self.selected_field:
            self.input_required.emit(SELECT_FIELD_FIRST)
            return None

        point = self.viewport.screen_to_image(screen_point, displayed_size, buffer_size)
        box = find_box_at(point, self.document.ocr_boxes)
        if box is None:
            return None

        box = [list(pt) for pt in box]
        self.document.assign_box_to_field(self.selected_field, box)
        self.document_changed.emit()
        return box

    def clear_selected_field(self) -> bool:
        """Clear the selected field's box; False if no field is selected."""
        if self.document is None:
            return False
        if not self.selected_field:
            self.input_required.emit(SELECT_FIELD_FIRST)
            return False
        self.document.clear_field(self.selected_field)
        self.document_changed.emit()
        return True

    # ── Viewport ──────────────────────────────────────

    def zoom_at(self, anchor: Sequence[float], direction) -> None:
        if self.viewport.zoom_at(anchor, direction):
            self.viewport_changed.emit()

    def pan_by(self, dx: float, dy: float) -> None:
        self.viewport.pan(dx, dy)
        self.viewport_changed.emit()

    def reset_view(self) -> None:
        self.viewport.reset()
        self.viewport_changed.emit()

    def shutdown(self) -> None:
        self.runner.wait_all()
