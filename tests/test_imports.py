"""Each package imports cleanly on its own in a fresh interpreter."""
from __future__ import annotations

import os
import subprocess
import sys

import pytest

ROOT = os.path.join(os.path.dirname(__file__), "..")


@pytest.mark.parametrize("module", [
    "session.state",
    "session",
    "canvas",
    "canvas.renderer",
    "fields",
    "store",
    "main",
])
def test_module_imports_standalone(module):
    env = dict(os.environ, QT_QPA_PLATFORM="offscreen")
    result = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        cwd=ROOT,
        env=env,
        capture_output=True,
        text=True,
        timeout=60,
    )
    assert result.returncode == 0, result.stderr
