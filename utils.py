"""
utils.py

Utility functions for the FieldBox annotator.
"""

from __future__ import annotations

import io
import json
from typing import Any, Dict

from PIL import Image
from PyQt6.QtGui import QColor


def hex_to_qcolor(s: str, fallback: QColor) -> QColor:
    """
    Parse a hex string to a QColor.

    Args:
        s: Hex string like "#RRGGBB" or "#RRGGBBAA"
        fallback: Color to return if parsing fails

    Returns:
        Parsed QColor or fallback
    """
    try:
        if not s:
            return QColor(fallback)
        s = s.strip()
        if s.startswith("#"):
            s = s[1:]
        if len(s) == 6:
            r = int(s[0:2], 16)
            g = int(s[2:4], 16)
            b = int(s[4:6], 16)
            return QColor(r, g, b)
        if len(s) == 8:
            r = int(s[0:2], 16)
            g = int(s[2:4], 16)
            b = int(s[4:6], 16)
            a = int(s[6:8], 16)
            return QColor(r, g, b, a)
    except ValueError:
        pass
    return QColor(fallback)


# Bits per pixel for the PIL modes a static raster can have
MODE_TO_BPP = {"1": 1, "L": 8, "P": 8, "RGB": 24, "RGBA": 32, "CMYK": 32, "I": 32, "F": 32}


def describe_raster(data: bytes, path: str = "") -> Dict[str, Any]:
    """
    Build the image info shown in the field panel.

    Args:
        data: Encoded raster bytes (PNG/JPEG)
        path: Display path of the raster

    Returns:
        Dict with path, size, mode, depth and filesize strings; "unknown"
        for anything Pillow cannot read.
    """
    filesize_kb = len(data) / 1024.0
    try:
        with Image.open(io.BytesIO(data)) as img:
            w, h = img.size
            mode = img.mode
    except (OSError, ValueError):
        return {
            "path": path,
            "size": "unknown",
            "mode": "unknown",
            "depth": "unknown",
            "filesize": f"{filesize_kb:.1f} KB",
        }
    bpp = MODE_TO_BPP.get(mode, "unknown")
    return {
        "path": path,
        "size": f"{w} x {h}px",
        "mode": mode,
        "depth": f"{bpp} bpp" if bpp != "unknown" else "unknown",
        "filesize": f"{filesize_kb:.1f} KB",
    }


def canonical_json(data: Any) -> str:
    """Serialize with sorted keys and no whitespace, for payload comparison."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"))
