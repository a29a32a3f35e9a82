"""
debug_trace.py

Trace logging for the annotator.
Enable with ``[debug] trace = true`` in settings.toml or FIELDBOX_TRACE=1.
"""

import os
import sys
import traceback
from datetime import datetime
from functools import wraps

# Set by configure(); FIELDBOX_TRACE=1 turns tracing on before settings load
DEBUG_TRACE = os.environ.get("FIELDBOX_TRACE", "") == "1"

# Paint events are very verbose
TRACE_PAINT = False

# Log file (None for stderr only)
LOG_FILE = "fieldbox_debug.log"

_log_file = None


def configure(enabled: bool, trace_paint: bool = False, log_file: str = LOG_FILE):
    """Apply trace switches from settings; the environment can only turn tracing on."""
    global DEBUG_TRACE, TRACE_PAINT, LOG_FILE
    DEBUG_TRACE = enabled or os.environ.get("FIELDBOX_TRACE", "") == "1"
    TRACE_PAINT = trace_paint
    LOG_FILE = log_file or None


def _get_log_file():
    global _log_file, LOG_FILE
    if LOG_FILE and _log_file is None:
        try:
            _log_file = open(LOG_FILE, "w", encoding="utf-8")
        except OSError as e:
            print(f"[trace] cannot open {LOG_FILE}: {e}", file=sys.stderr)
            LOG_FILE = None
    return _log_file


def trace(msg: str, category: str = "INFO"):
    """Print a trace message with timestamp."""
    if not DEBUG_TRACE:
        return
    if category == "PAINT" and not TRACE_PAINT:
        return

    timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
    line = f"[{timestamp}] [{category}] {msg}"

    print(line, file=sys.stderr, flush=True)

    log_file = _get_log_file()
    if log_file:
        try:
            log_file.write(line + "\n")
            log_file.flush()
        except OSError:
            pass


def trace_exception(msg: str = "Exception"):
    """Print exception info."""
    if not DEBUG_TRACE:
        return
    trace(f"{msg}: {traceback.format_exc()}", "ERROR")


def trace_call(category: str = "CALL"):
    """Decorator to trace function calls."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if not DEBUG_TRACE:
                return func(*args, **kwargs)
            func_name = func.__qualname__
            trace(f">>> {func_name}", category)
            try:
                result = func(*args, **kwargs)
                trace(f"<<< {func_name}", category)
                return result
            except Exception as e:
                trace(f"!!! {func_name} raised {type(e).__name__}: {e}", "ERROR")
                raise
        return wrapper
    return decorator


def close_log():
    """Close log file."""
    global _log_file
    if _log_file:
        try:
            _log_file.close()
        except OSError:
            pass
        _log_file = None
