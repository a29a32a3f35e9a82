"""
session/worker.py

Background workers for store calls.
Each call runs in its own QThread so the UI thread never blocks; results
come back through signals and are handled on the UI thread.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from typing import Any, Callable, List, Tuple

from PyQt6.QtCore import QObject, QThread, pyqtSignal

from debug_trace import trace
from store.base import StoreError


@dataclass
class TaskResult:
    """Outcome of one store call.

    Attributes:
        kind: What was requested ("catalog", "document", "raster", ...)
        seq: Image load number or store generation the request belongs to
        payload: Return value of the call on success
        error: Message on failure
    """
    kind: str
    seq: int = 0
    payload: Any = None
    error: str = ""


class StoreWorker(QObject):
    """
    Runs a single store call.

    Signals:
        finished(TaskResult): Emitted with the payload on success
        failed(TaskResult): Emitted with an error message on failure
    """

    finished = pyqtSignal(object)
    failed = pyqtSignal(object)

    def __init__(self, kind: str, fn: Callable[[], Any], seq: int = 0):
        """
        Args:
            kind: Task label carried into the TaskResult
            fn: Blocking call to run
            seq: Sequence tag carried into the TaskResult
        """
        super().__init__()
        self.kind = kind
        self.fn = fn
        self.seq = seq

    def run(self):
        """Execute the store call."""
        try:
            payload = self.fn()
        except StoreError as e:
            trace(f"{self.kind} #{self.seq} failed: {e}", "STORE")
            self.failed.emit(TaskResult(self.kind, self.seq, error=str(e)))
            return
        except Exception as e:
            msg = f"{e}\n\n{traceback.format_exc()}"
            trace(f"{self.kind} #{self.seq} crashed: {msg}", "ERROR")
            self.failed.emit(TaskResult(self.kind, self.seq, error=str(e) or type(e).__name__))
            return
        self.finished.emit(TaskResult(self.kind, self.seq, payload=payload))


class TaskRunner:
    """Starts workers on their own threads and keeps them alive until done."""

    def __init__(self):
        self._jobs: List[Tuple[QThread, StoreWorker]] = []

    def start(self, worker: StoreWorker) -> None:
        thread = QThread()
        worker.moveToThread(thread)

        thread.started.connect(worker.run)
        worker.finished.connect(thread.quit)
        worker.failed.connect(thread.quit)

        job = (thread, worker)
        self._jobs.append(job)

        def _cleanup():
            if job in self._jobs:
                self._jobs.remove(job)
            worker.deleteLater()

        thread.finished.connect(_cleanup)
        thread.finished.connect(thread.deleteLater)
        thread.start()

    def active_count(self) -> int:
        return len(self._jobs)

    def wait_all(self, msecs: int = 5000) -> None:
        """Block until running threads end (used on shutdown)."""
        for thread, _worker in list(self._jobs):
            thread.quit()
            thread.wait(msecs)
