"""
store/base.py

Interface to the external image/document/progress store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from models import CatalogEntry, ProgressRecord

# Raster formats the catalog accepts (static bitmaps only)
RASTER_EXTENSIONS = (".jpg", ".jpeg", ".png")


class StoreError(RuntimeError):
    """A store operation failed (transport, missing item, bad payload)."""
    pass


class DataStore(ABC):
    """
    Key-value access to rasters, JSON documents and the progress record.

    Every method may block; callers run them on worker threads.
    Every failure is raised as StoreError.
    """

    @abstractmethod
    def list_catalog(self) -> List[CatalogEntry]:
        """Every image that has both a raster and a JSON sidecar, in order."""

    @abstractmethod
    def fetch_raster(self, image_id: str) -> bytes:
        """Encoded raster bytes for ``image_id``."""

    @abstractmethod
    def fetch_document(self, image_id: str) -> Dict[str, Any]:
        """Parsed JSON document for ``image_id``."""

    @abstractmethod
    def store_document(self, image_id: str, data: Dict[str, Any]) -> None:
        """Overwrite the document for ``image_id`` (no merge)."""

    @abstractmethod
    def fetch_progress(self) -> ProgressRecord:
        """Current viewed/updated sets."""

    @abstractmethod
    def append_progress(self, kind: str, image_id: str) -> None:
        """Add ``image_id`` to the ``kind`` set; appending twice is harmless."""

    def describe(self) -> str:
        """Short human-readable location for the status bar."""
        return type(self).__name__
