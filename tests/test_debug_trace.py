"""Tests for the trace switches."""
from __future__ import annotations

import pytest

import debug_trace


@pytest.fixture(autouse=True)
def restore_trace():
    saved = (debug_trace.DEBUG_TRACE, debug_trace.TRACE_PAINT, debug_trace.LOG_FILE)
    yield
    debug_trace.close_log()
    debug_trace.DEBUG_TRACE, debug_trace.TRACE_PAINT, debug_trace.LOG_FILE = saved


def test_trace_writes_log_file(tmp_path, capsys):
    log = tmp_path / "trace.log"
    debug_trace.configure(True, False, str(log))
    debug_trace.trace("catalog loaded", "SESSION")
    debug_trace.trace("frame", "PAINT")
    debug_trace.close_log()

    text = log.read_text(encoding="utf-8")
    assert "[SESSION] catalog loaded" in text
    assert "PAINT" not in text
    assert "[SESSION] catalog loaded" in capsys.readouterr().err


def test_disabled_trace_is_silent(monkeypatch, capsys):
    monkeypatch.delenv("FIELDBOX_TRACE", raising=False)
    debug_trace.configure(False, False, "")
    debug_trace.trace("hidden")
    assert capsys.readouterr().err == ""


def test_trace_call_passes_through_results_and_errors(tmp_path):
    debug_trace.configure(True, False, str(tmp_path / "calls.log"))

    @debug_trace.trace_call("TEST")
    def divide(a, b):
        return a / b

    assert divide(6, 3) == 2
    with pytest.raises(ZeroDivisionError):
        divide(1, 0)
    debug_trace.close_log()
    text = (tmp_path / "calls.log").read_text(encoding="utf-8")
    assert ">>> test_trace_call_passes_through_results_and_errors.<locals>.divide" in text
    assert "!!!" in text
