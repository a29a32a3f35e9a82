"""
models.py

Data models and constants for the FieldBox annotator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

# A Box is kept in its JSON-native form: [[x, y], [x, y], [x, y], [x, y]].
Box = List[List[float]]


# ----------------------------
# Colour constants
# ----------------------------

# Field colours, assigned by a field's position in the document.
FIELD_COLORS: List[str] = [
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#FFA07A", "#98D8C8",
    "#F7DC6F", "#BB8FCE", "#85C1E2", "#F8B739", "#52B788",
    "#FF8FAB", "#06FFA5", "#FFD93D", "#6BCF7F", "#A8DADC",
]

OCR_COLOR = "#95A5A6"  # neutral gray for OCR boxes


# ----------------------------
# Document model
# ----------------------------

@dataclass
class Document:
    """Per-image annotation document.

    ``ocr`` is the detection list (read-only after load) and ``fields``
    maps each field name to a Box or ``None``.  Any additional top-level
    keys found in the sidecar are preserved in ``extras`` so they survive
    the load -> save round-trip.
    """
    ocr: List[Any] = field(default_factory=list)
    fields: Dict[str, Optional[Box]] = field(default_factory=dict)
    extras: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, d: Any) -> "Document":
        """Create a Document from parsed sidecar JSON.

        A missing or non-object ``fields`` becomes an empty mapping and a
        missing or non-list ``ocr`` becomes an empty list.  Malformed
        entries inside ``ocr`` are kept as-is; hit-testing and drawing
        skip them.

        Args:
            d: Parsed JSON value (normally a dict).

        Returns:
            A Document instance.
        """
        if not isinstance(d, dict):
            return cls()
        ocr = d.get("ocr")
        if not isinstance(ocr, list):
            ocr = []
        fields_ = d.get("fields")
        if not isinstance(fields_, dict):
            fields_ = {}
        extras = {k: v for k, v in d.items() if k not in ("ocr", "fields")}
        return cls(ocr=ocr, fields=dict(fields_), extras=extras)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize verbatim, null-valued fields included.

        Returns:
            Dict with ``ocr`` and ``fields`` first, then any extras.
        """
        d: Dict[str, Any] = {"ocr": self.ocr, "fields": dict(self.fields)}
        d.update(self.extras)
        return d


# ----------------------------
# Catalog and progress
# ----------------------------

@dataclass(frozen=True)
class CatalogEntry:
    """One selectable image: its id and the raster file name."""
    id: str
    image_path: str

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CatalogEntry":
        return cls(id=str(d["id"]), image_path=str(d.get("imagePath", d["id"])))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "imagePath": self.image_path}


class ImageStatus:
    """Derived per-image progress status constants."""
    UNVIEWED = "unviewed"
    VIEWED = "viewed"
    UPDATED = "updated"


class ProgressKind:
    """Progress sets that can be appended to."""
    VIEWED = "viewed"
    UPDATED = "updated"

    ALL = (VIEWED, UPDATED)


@dataclass
class ProgressRecord:
    """Viewed/updated id sets tracked by the external store."""
    viewed: Set[str] = field(default_factory=set)
    updated: Set[str] = field(default_factory=set)

    @classmethod
    def from_dict(cls, d: Any) -> "ProgressRecord":
        if not isinstance(d, dict):
            return cls()
        viewed = d.get("viewed")
        updated = d.get("updated")
        if not isinstance(viewed, list):
            viewed = []
        if not isinstance(updated, list):
            updated = []
        return cls(viewed={str(v) for v in viewed}, updated={str(u) for u in updated})

    def to_dict(self) -> Dict[str, List[str]]:
        return {"viewed": sorted(self.viewed), "updated": sorted(self.updated)}

    def add(self, kind: str, image_id: str) -> bool:
        """Add an id to one of the sets.

        Returns:
            True if the id was not already present.
        """
        target = self.viewed if kind == ProgressKind.VIEWED else self.updated
        if image_id in target:
            return False
        target.add(image_id)
        return True

    def status_of(self, image_id: str) -> str:
        if image_id in self.updated:
            return ImageStatus.UPDATED
        if image_id in self.viewed:
            return ImageStatus.VIEWED
        return ImageStatus.UNVIEWED


# ----------------------------
# Interaction constants
# ----------------------------

class ZoomDirection:
    """Zoom direction constants for the viewport."""
    IN = "in"
    OUT = "out"


class SessionState:
    """Session controller state machine constants."""
    IDLE = "idle"
    LOADING = "loading"
    DISPLAYING = "displaying"


class NoticeLevel:
    """Severity of a user-facing notice."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
