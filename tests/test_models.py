"""Tests for document normalization, catalog entries and progress."""
from __future__ import annotations

import pytest

from models import (
    CatalogEntry,
    Document,
    ImageStatus,
    ProgressKind,
    ProgressRecord,
)

BOX_A = [[0, 0], [10, 0], [10, 5], [0, 5]]


class TestDocument:
    def test_from_dict(self):
        doc = Document.from_dict({"ocr": [BOX_A], "fields": {"total": None}})
        assert doc.ocr == [BOX_A]
        assert doc.fields == {"total": None}
        assert doc.extras == {}

    @pytest.mark.parametrize("data", [None, [], "text", 42])
    def test_non_object_becomes_empty(self, data):
        doc = Document.from_dict(data)
        assert doc.ocr == []
        assert doc.fields == {}

    def test_missing_or_bad_members(self):
        doc = Document.from_dict({"fields": ["total"], "ocr": {"0": BOX_A}})
        assert doc.ocr == []
        assert doc.fields == {}

    def test_malformed_ocr_entries_are_kept(self):
        doc = Document.from_dict({"ocr": [BOX_A, None, [[1, 2]]], "fields": {}})
        assert len(doc.ocr) == 3

    def test_to_dict_order_and_extras(self):
        doc = Document.from_dict({"version": 2, "fields": {"a": None}, "ocr": []})
        out = doc.to_dict()
        assert list(out) == ["ocr", "fields", "version"]
        assert out["fields"] == {"a": None}


class TestCatalogEntry:
    def test_from_dict(self):
        entry = CatalogEntry.from_dict({"id": "inv001", "imagePath": "inv001.png", "hasJson": True})
        assert entry == CatalogEntry("inv001", "inv001.png")
        assert entry.to_dict() == {"id": "inv001", "imagePath": "inv001.png"}

    def test_image_path_defaults_to_id(self):
        assert CatalogEntry.from_dict({"id": "x"}).image_path == "x"


class TestProgressRecord:
    def test_add_is_idempotent(self):
        record = ProgressRecord()
        assert record.add(ProgressKind.VIEWED, "a")
        assert not record.add(ProgressKind.VIEWED, "a")
        assert record.viewed == {"a"}

    def test_status(self):
        record = ProgressRecord(viewed={"a", "b"}, updated={"b", "c"})
        assert record.status_of("a") == ImageStatus.VIEWED
        assert record.status_of("b") == ImageStatus.UPDATED
        assert record.status_of("c") == ImageStatus.UPDATED
        assert record.status_of("d") == ImageStatus.UNVIEWED

    def test_dict_round_trip(self):
        record = ProgressRecord(viewed={"b", "a"}, updated={"a"})
        d = record.to_dict()
        assert d == {"viewed": ["a", "b"], "updated": ["a"]}
        assert ProgressRecord.from_dict(d) == record

    def test_from_bad_payload(self):
        assert ProgressRecord.from_dict(None) == ProgressRecord()
        assert ProgressRecord.from_dict({"viewed": None}) == ProgressRecord()

    def test_non_list_entries_are_ignored(self):
        record = ProgressRecord.from_dict({"viewed": "inv001", "updated": 7})
        assert record == ProgressRecord()
        record = ProgressRecord.from_dict({"viewed": ["inv001"], "updated": {"inv002": True}})
        assert record.viewed == {"inv001"}
        assert record.updated == set()
