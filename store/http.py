"""
store/http.py

REST client for the annotation file server.

Endpoints:
- GET  /api/images                  -> [{id, imagePath, hasJson}]
- GET  /api/image/<id>              -> raster bytes
- GET  /api/data/<id>               -> document JSON
- POST /api/data/<id>               -> {"success": true}
- GET  /api/progress                -> {viewed: [...], updated: [...]}
- POST /api/progress/<kind>/<id>    -> {"success": true}

No automatic retry: failures surface as StoreError and the user retries.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from models import CatalogEntry, ProgressKind, ProgressRecord
from store.base import DataStore, StoreError

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class HttpStore(DataStore):
    """
    Store backed by the annotation server's REST API.

    Args:
        base_url: Server root, e.g. http://localhost:3000
        timeout: Per-request timeout in seconds
        session: Optional requests.Session (shared connection pool, tests)

    Raises:
        ValueError: If base_url is empty.
    """

    def __init__(self, base_url: str, *, timeout: float = DEFAULT_TIMEOUT, session: Optional[requests.Session] = None):
        if not base_url:
            raise ValueError("Server URL required")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def describe(self) -> str:
        return self.base_url

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            log.warning("%s %s failed: %s", method, url, e)
            raise StoreError(f"Request to {url} failed: {e}") from e
        if not 200 <= resp.status_code < 300:
            raise StoreError(f"{method} {path} failed: {resp.status_code} {_error_text(resp)}")
        return resp

    def _json(self, method: str, path: str, **kwargs) -> Any:
        resp = self._request(method, path, **kwargs)
        try:
            return resp.json()
        except ValueError as e:
            raise StoreError(f"{method} {path} returned invalid JSON") from e

    def _expect_success(self, method: str, path: str, **kwargs) -> None:
        result = self._json(method, path, **kwargs)
        if not isinstance(result, dict) or result.get("success") is not True:
            raise StoreError(f"{method} {path} was not confirmed by the server: {result}")

    def list_catalog(self) -> List[CatalogEntry]:
        items = self._json("GET", "/api/images")
        if not isinstance(items, list):
            raise StoreError(f"Unexpected catalog payload: {type(items).__name__}")
        entries = []
        for it in items:
            if not isinstance(it, dict) or "id" not in it:
                continue
            if it.get("hasJson") is False:
                continue
            entries.append(CatalogEntry.from_dict(it))
        return entries

    def fetch_raster(self, image_id: str) -> bytes:
        return self._request("GET", f"/api/image/{quote(image_id)}").content

    def fetch_document(self, image_id: str) -> Dict[str, Any]:
        return self._json("GET", f"/api/data/{quote(image_id)}")

    def store_document(self, image_id: str, data: Dict[str, Any]) -> None:
        self._expect_success("POST", f"/api/data/{quote(image_id)}", json=data)
        try:
            self.append_progress(ProgressKind.UPDATED, image_id)
        except StoreError as e:
            log.warning("Saved %s but could not record progress: %s", image_id, e)

    def fetch_progress(self) -> ProgressRecord:
        return ProgressRecord.from_dict(self._json("GET", "/api/progress"))

    def append_progress(self, kind: str, image_id: str) -> None:
        if kind not in ProgressKind.ALL:
            raise StoreError(f"Unknown progress kind: {kind}")
        self._expect_success("POST", f"/api/progress/{kind}/{quote(image_id)}")


def _error_text(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict) and "error" in body:
        return str(body["error"])
    return str(body)[:200]
