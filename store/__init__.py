"""
store package

Access to the external image/document/progress store.
"""

from store.base import DataStore, StoreError, RASTER_EXTENSIONS
from store.folder import FolderStore
from store.http import HttpStore

__all__ = [
    "DataStore",
    "StoreError",
    "RASTER_EXTENSIONS",
    "FolderStore",
    "HttpStore",
]
