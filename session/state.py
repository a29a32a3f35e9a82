"""
session/state.py

In-memory annotation document with the one-box-per-field rule.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from canvas.geometry import boxes_equal, is_box
from models import Box, Document
from settings import get_settings


class AnnotationState:
    """
    Owns the current Document and enforces its invariants.

    A given Box (compared by coordinates) is held by at most one field;
    assigning it to a field vacates whichever field held it before.
    Field names are fixed as loaded: nothing here adds or removes one.
    """

    def __init__(self, document: Optional[Document] = None, palette: Optional[List[str]] = None):
        self.document = document if document is not None else Document()
        self.palette = list(palette) if palette else list(get_settings().settings.canvas.boxes.palette)
        self.dirty = False

    @classmethod
    def from_dict(cls, data: Any, palette: Optional[List[str]] = None) -> "AnnotationState":
        return cls(Document.from_dict(data), palette=palette)

    def to_dict(self) -> Dict[str, Any]:
        return self.document.to_dict()

    # ── Queries ───────────────────────────────────────

    @property
    def ocr_boxes(self) -> List[Any]:
        return self.document.ocr

    @property
    def fields(self) -> Dict[str, Optional[Box]]:
        return self.document.fields

    def field_names(self) -> List[str]:
        return list(self.document.fields.keys())

    def has_field(self, field_name: str) -> bool:
        return field_name in self.document.fields

    def field_box(self, field_name: str) -> Optional[Box]:
        return self.document.fields.get(field_name)

    def field_index(self, field_name: str) -> int:
        """Position of the field in document order (-1 if absent)."""
        try:
            return self.field_names().index(field_name)
        except ValueError:
            return -1

    def field_color(self, field_name: str) -> str:
        """Palette colour by position; reordering fields reassigns colours."""
        idx = self.field_index(field_name)
        if idx < 0:
            return self.palette[0]
        return self.palette[idx % len(self.palette)]

    def owner_of(self, box: Any) -> Optional[str]:
        """Name of the field currently holding ``box``, if any."""
        for name, field_box in self.document.fields.items():
            if boxes_equal(field_box, box):
                return name
        return None

    def assigned_count(self) -> int:
        return sum(1 for b in self.document.fields.values() if is_box(b))

    # ── Mutations ─────────────────────────────────────

    def assign_box_to_field(self, field_name: str, box: Box) -> None:
        """
        Assign ``box`` to ``field_name``.

        Every other field holding an equal box is cleared first, so a
        reassignment from field A to field B vacates A.

        Raises:
            KeyError: If the field is not part of the document.
        """
        fields = self.document.fields
        if field_name not in fields:
            raise KeyError(field_name)

        for name in list(fields.keys()):
            if boxes_equal(fields[name], box):
                # Keep the key; the field just loses its box
                fields[name] = None

        fields[field_name] = box
        self.dirty = True

    def clear_field(self, field_name: str) -> None:
        """Set the field to None; no-op if it is already empty or absent."""
        fields = self.document.fields
        if field_name not in fields or fields[field_name] is None:
            return
        fields[field_name] = None
        self.dirty = True
