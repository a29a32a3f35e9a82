"""Shared fixtures: one QApplication, isolated settings, sample data folders
and task runners that execute store calls without threads.
"""
from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import platformdirs
import pytest
from PIL import Image
from PyQt6.QtWidgets import QApplication

# Ensure project root is on sys.path so imports work
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import settings as settings_module


BOX_A = [[0, 0], [10, 0], [10, 5], [0, 5]]
BOX_B = [[20, 10], [35, 10], [35, 18], [20, 18]]


# ---------------------------------------------------------------------------
# Application and settings
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def qapp():
    """Provide a single QApplication for the entire test session."""
    app = QApplication.instance() or QApplication(sys.argv[:1])
    yield app


@pytest.fixture(autouse=True)
def settings(tmp_path, monkeypatch):
    """Point the settings file at a temp dir and start from defaults."""
    config_dir = tmp_path / "config"
    monkeypatch.setattr(platformdirs, "user_config_dir", lambda *args, **kwargs: str(config_dir))
    settings_module.set_settings(None)
    yield settings_module.get_settings()
    settings_module.set_settings(None)


# ---------------------------------------------------------------------------
# Task runners
# ---------------------------------------------------------------------------

class InlineTaskRunner:
    """Runs each worker immediately on the calling thread."""

    def __init__(self):
        self.kinds: List[str] = []

    def start(self, worker):
        self.kinds.append(worker.kind)
        worker.run()

    def active_count(self) -> int:
        return 0

    def wait_all(self, msecs: int = 5000) -> None:
        pass


class DeferredTaskRunner:
    """Queues workers; the test decides when (and in which order) they run."""

    def __init__(self):
        self.queue: List[Any] = []

    def start(self, worker):
        self.queue.append(worker)

    def take(self, kind: str, seq: int = None):
        for worker in self.queue:
            if worker.kind == kind and (seq is None or worker.seq == seq):
                self.queue.remove(worker)
                return worker
        raise LookupError(f"no queued {kind} task (seq={seq})")

    def run(self, kind: str, seq: int = None):
        self.take(kind, seq).run()

    def run_all(self):
        while self.queue:
            self.queue.pop(0).run()

    def active_count(self) -> int:
        return len(self.queue)

    def wait_all(self, msecs: int = 5000) -> None:
        pass


@pytest.fixture()
def inline_runner():
    return InlineTaskRunner()


@pytest.fixture()
def deferred_runner():
    return DeferredTaskRunner()


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

def write_sample(folder: Path, image_id: str, document: Any, size=(40, 20), ext: str = ".png") -> None:
    """Write ``<image_id><ext>`` and, unless document is None, ``<image_id>.json``."""
    folder.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, "white").save(folder / f"{image_id}{ext}")
    if document is not None:
        with open(folder / f"{image_id}.json", "w", encoding="utf-8") as f:
            json.dump(document, f, indent=4)


@pytest.fixture()
def sample_document() -> Dict[str, Any]:
    return {"ocr": [BOX_A, BOX_B], "fields": {"total": None, "date": None}}


@pytest.fixture()
def data_dir(tmp_path, sample_document) -> Path:
    """A data folder with two annotatable images and some noise."""
    folder = tmp_path / "data"
    write_sample(folder, "inv001", sample_document)
    write_sample(folder, "inv002", {"ocr": [BOX_B], "fields": {"vendor": None}}, ext=".jpg")
    write_sample(folder, "orphan", None)
    (folder / "notes.txt").write_text("not an image", encoding="utf-8")
    return folder
