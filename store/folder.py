"""
store/folder.py

Data-folder store: ``<id>.png|.jpg|.jpeg`` rasters next to ``<id>.json``
sidecars, with the progress record kept in the same folder.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from models import CatalogEntry, ProgressKind, ProgressRecord
from store.base import RASTER_EXTENSIONS, DataStore, StoreError

log = logging.getLogger(__name__)

PROGRESS_FILE = ".fieldbox_progress.json"


def write_json_atomic(path: Path, data: Any) -> None:
    """
    Replace ``path`` with ``data`` as 4-space-indented JSON.

    The text is serialized up front and written to a temp file in the same
    folder, then moved over ``path``; a failure leaves the old file intact.
    """
    text = json.dumps(data, indent=4)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp, path)
    except OSError:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


class FolderStore(DataStore):
    """
    Store backed by a local data folder.

    Args:
        data_dir: Folder containing the rasters and JSON sidecars.
        progress_file: File name of the progress record inside data_dir.
    """

    def __init__(self, data_dir: Union[str, Path], progress_file: str = PROGRESS_FILE):
        self.data_dir = Path(data_dir)
        self.progress_path = self.data_dir / progress_file
        self._progress_lock = threading.Lock()

    def describe(self) -> str:
        return str(self.data_dir.resolve())

    def _json_path(self, image_id: str) -> Path:
        return self.data_dir / f"{image_id}.json"

    def _raster_path(self, image_id: str) -> Optional[Path]:
        for path in self._raster_files():
            if path.stem == image_id:
                return path
        return None

    def _raster_files(self) -> List[Path]:
        try:
            files = sorted(p for p in self.data_dir.iterdir() if p.is_file())
        except OSError as e:
            raise StoreError(f"Cannot read data folder {self.data_dir}: {e}") from e
        return [p for p in files if p.suffix.lower() in RASTER_EXTENSIONS]

    def list_catalog(self) -> List[CatalogEntry]:
        entries = []
        for path in self._raster_files():
            if self._json_path(path.stem).exists():
                entries.append(CatalogEntry(id=path.stem, image_path=path.name))
        log.debug("Catalog of %s: %d images", self.data_dir, len(entries))
        return entries

    def fetch_raster(self, image_id: str) -> bytes:
        path = self._raster_path(image_id)
        if path is None:
            raise StoreError(f"Image not found: {image_id}")
        try:
            return path.read_bytes()
        except OSError as e:
            raise StoreError(f"Cannot read image {path.name}: {e}") from e

    def fetch_document(self, image_id: str) -> Dict[str, Any]:
        path = self._json_path(image_id)
        if not path.exists():
            raise StoreError(f"JSON file not found: {path.name}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise StoreError(f"Cannot read {path.name}: {e}") from e

    def store_document(self, image_id: str, data: Dict[str, Any]) -> None:
        path = self._json_path(image_id)
        try:
            write_json_atomic(path, data)
        except (OSError, TypeError, ValueError) as e:
            raise StoreError(f"Cannot write {path.name}: {e}") from e
        log.info("Saved %s", path)
        try:
            self.append_progress(ProgressKind.UPDATED, image_id)
        except StoreError as e:
            # The document itself is saved; progress is best-effort
            log.warning("Saved %s but could not record progress: %s", image_id, e)

    def fetch_progress(self) -> ProgressRecord:
        if not self.progress_path.exists():
            return ProgressRecord()
        try:
            with open(self.progress_path, "r", encoding="utf-8") as f:
                return ProgressRecord.from_dict(json.load(f))
        except (OSError, ValueError) as e:
            raise StoreError(f"Cannot read progress record: {e}") from e

    def append_progress(self, kind: str, image_id: str) -> None:
        if kind not in ProgressKind.ALL:
            raise StoreError(f"Unknown progress kind: {kind}")
        with self._progress_lock:
            record = self.fetch_progress()
            if not record.add(kind, image_id):
                return
            try:
                write_json_atomic(self.progress_path, record.to_dict())
            except OSError as e:
                raise StoreError(f"Cannot write progress record: {e}") from e
