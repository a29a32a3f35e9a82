"""Tests for the REST store against a fake requests session."""
from __future__ import annotations

from typing import Any, Dict, List, Tuple

import pytest
import requests

from models import CatalogEntry, ProgressKind, ProgressRecord
from store import HttpStore, StoreError


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, content: bytes = b""):
        self.status_code = status_code
        self._body = body
        self.content = content
        self.text = "" if body is None else str(body)

    def json(self):
        if self._body is None:
            raise ValueError("no JSON body")
        return self._body


class FakeSession:
    """Answers requests from a {(method, path): response} table."""

    def __init__(self, base: str, routes: Dict[Tuple[str, str], Any]):
        self.base = base
        self.routes = routes
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []

    def request(self, method, url, **kwargs):
        path = url[len(self.base):]
        self.calls.append((method, path, kwargs))
        resp = self.routes.get((method, path))
        if isinstance(resp, Exception):
            raise resp
        if resp is None:
            return FakeResponse(404, {"error": "not found"})
        return resp


BASE = "http://annot.local:3000"
OK = FakeResponse(200, {"success": True})


def make_store(routes) -> Tuple[HttpStore, FakeSession]:
    session = FakeSession(BASE, routes)
    return HttpStore(BASE + "/", timeout=2.5, session=session), session


def test_requires_url():
    with pytest.raises(ValueError):
        HttpStore("")


def test_constructor_options():
    store, session = make_store({})
    assert store.base_url == BASE
    assert store.describe() == BASE
    assert store.timeout == 2.5
    assert store.session is session


def test_catalog_skips_entries_without_json():
    store, session = make_store({
        ("GET", "/api/images"): FakeResponse(200, [
            {"id": "inv001", "imagePath": "inv001.png", "hasJson": True},
            {"id": "scan", "imagePath": "scan.jpg", "hasJson": False},
            {"imagePath": "broken.png"},
            {"id": "inv002", "imagePath": "inv002.jpg"},
        ]),
    })
    assert store.list_catalog() == [
        CatalogEntry("inv001", "inv001.png"),
        CatalogEntry("inv002", "inv002.jpg"),
    ]
    assert session.calls[0][2]["timeout"] == 2.5


def test_catalog_wrong_shape():
    store, _ = make_store({("GET", "/api/images"): FakeResponse(200, {"images": []})})
    with pytest.raises(StoreError):
        store.list_catalog()


def test_fetch_raster_and_document():
    doc = {"ocr": [], "fields": {"total": None}}
    store, _ = make_store({
        ("GET", "/api/image/inv001"): FakeResponse(200, content=b"\x89PNG..."),
        ("GET", "/api/data/inv001"): FakeResponse(200, doc),
    })
    assert store.fetch_raster("inv001") == b"\x89PNG..."
    assert store.fetch_document("inv001") == doc


def test_ids_are_quoted_in_paths():
    store, session = make_store({("GET", "/api/data/a%20b"): FakeResponse(200, {})})
    assert store.fetch_document("a b") == {}
    assert session.calls[0][1] == "/api/data/a%20b"


def test_store_document_posts_json_and_records_update():
    doc = {"ocr": [], "fields": {"total": None}}
    store, session = make_store({
        ("POST", "/api/data/inv001"): OK,
        ("POST", "/api/progress/updated/inv001"): OK,
    })
    store.store_document("inv001", doc)
    method, path, kwargs = session.calls[0]
    assert (method, path) == ("POST", "/api/data/inv001")
    assert kwargs["json"] == doc
    assert session.calls[1][1] == "/api/progress/updated/inv001"


def test_store_document_progress_failure_is_not_fatal():
    store, _ = make_store({("POST", "/api/data/inv001"): OK})
    store.store_document("inv001", {"ocr": [], "fields": {}})


def test_store_document_requires_confirmation():
    store, _ = make_store({("POST", "/api/data/inv001"): FakeResponse(200, {"success": False})})
    with pytest.raises(StoreError):
        store.store_document("inv001", {})


def test_http_error_status():
    store, _ = make_store({("GET", "/api/data/x"): FakeResponse(500, {"error": "Failed to read JSON file"})})
    with pytest.raises(StoreError, match="Failed to read JSON file"):
        store.fetch_document("x")


def test_transport_error():
    store, _ = make_store({("GET", "/api/images"): requests.ConnectionError("refused")})
    with pytest.raises(StoreError):
        store.list_catalog()


def test_non_json_body():
    store, _ = make_store({("GET", "/api/data/x"): FakeResponse(200, None)})
    with pytest.raises(StoreError):
        store.fetch_document("x")


def test_progress():
    store, session = make_store({
        ("GET", "/api/progress"): FakeResponse(200, {"viewed": ["a"], "updated": []}),
        ("POST", "/api/progress/viewed/a"): OK,
    })
    assert store.fetch_progress() == ProgressRecord(viewed={"a"})
    store.append_progress(ProgressKind.VIEWED, "a")
    assert session.calls[-1][:2] == ("POST", "/api/progress/viewed/a")
    with pytest.raises(StoreError):
        store.append_progress("bogus", "a")
