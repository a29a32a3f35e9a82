"""
settings.py

Persistent settings management for FieldBox.

Handles cross-platform settings storage using TOML format with platformdirs
for proper user config directory detection.

Settings file location:
    - Windows: %APPDATA%/fieldbox/settings.toml
    - macOS: ~/Library/Application Support/fieldbox/settings.toml
    - Linux: ~/.config/fieldbox/settings.toml

Default values are documented in comments throughout this file.
If settings.toml is corrupted, these defaults will be used.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import platformdirs

# TOML reading - use tomllib for Python 3.11+, tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

from models import FIELD_COLORS, OCR_COLOR

APP_NAME = "fieldbox"

# Global settings manager instance (singleton)
_settings_manager: Optional["SettingsManager"] = None


def get_settings() -> "SettingsManager":
    """Get the global settings manager instance.

    Returns:
        The singleton SettingsManager instance.
    """
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
    return _settings_manager


def set_settings(manager: Optional["SettingsManager"]) -> None:
    """Replace the global settings manager (``None`` forces a reload)."""
    global _settings_manager
    _settings_manager = manager


# =============================================================================
# General Settings
# =============================================================================

@dataclass
class GeneralSettings:
    """Where documents come from and how notices behave.

    Defaults:
        data_dir: ""
        server_url: ""
        request_timeout: 10.0
        status_timeout_ms: 4000
    """
    data_dir: str = ""                # Default: "" (~/Documents/FieldBox)
    server_url: str = ""              # Default: "" (use the data folder directly)
    request_timeout: float = 10.0     # Default: 10.0 seconds
    status_timeout_ms: int = 4000     # Default: 4000 ms for transient notices


# =============================================================================
# Canvas Settings
# =============================================================================

@dataclass
class CanvasZoomSettings:
    """Zoom behavior settings.

    Defaults:
        zoom_in_factor: 1.1
        zoom_out_factor: 0.9
        min_zoom: 0.1
        max_zoom: 10.0
    """
    zoom_in_factor: float = 1.1    # Default: 1.1 (10% per wheel step)
    zoom_out_factor: float = 0.9   # Default: 0.9
    min_zoom: float = 0.1          # Default: 0.1
    max_zoom: float = 10.0         # Default: 10.0


@dataclass
class CanvasBoxSettings:
    """OCR and field box outline settings.

    Defaults:
        ocr_color: "#95A5A6"
        ocr_line_width: 4.0
        field_line_width: 5.0
        palette: the 15 FIELD_COLORS
    """
    ocr_color: str = OCR_COLOR          # Default: neutral gray
    ocr_line_width: float = 4.0         # Default: 4.0 pixels
    field_line_width: float = 5.0       # Default: 5.0 pixels
    palette: List[str] = field(default_factory=lambda: list(FIELD_COLORS))


@dataclass
class CanvasLabelSettings:
    """Field label settings.

    Defaults:
        font_family: "Arial"
        bold: True
        height_fraction: 0.02
        min_px: 14
        padding: 6
        text_color: "#000000"
    """
    font_family: str = "Arial"       # Default: "Arial"
    bold: bool = True                # Default: True
    height_fraction: float = 0.02    # Default: 2% of the image height
    min_px: int = 14                 # Default: 14 pixels
    padding: int = 6                 # Default: 6 pixels
    text_color: str = "#000000"      # Default: black


@dataclass
class CanvasPanSettings:
    """Pan gesture settings.

    Defaults:
        drag_threshold: 3
    """
    drag_threshold: int = 3  # Default: 3 pixels before a press becomes a drag


@dataclass
class CanvasSettings:
    """All canvas-related settings."""
    zoom: CanvasZoomSettings = field(default_factory=CanvasZoomSettings)
    boxes: CanvasBoxSettings = field(default_factory=CanvasBoxSettings)
    labels: CanvasLabelSettings = field(default_factory=CanvasLabelSettings)
    pan: CanvasPanSettings = field(default_factory=CanvasPanSettings)


# =============================================================================
# Debug Settings
# =============================================================================

@dataclass
class DebugSettings:
    """Trace logging settings.

    Defaults:
        trace: False
        trace_paint: False
        log_file: "fieldbox_debug.log"
    """
    trace: bool = False                    # Default: False
    trace_paint: bool = False              # Default: False (very verbose)
    log_file: str = "fieldbox_debug.log"   # Default: "fieldbox_debug.log" ("" = stderr only)


# =============================================================================
# Main App Settings
# =============================================================================

@dataclass
class AppSettings:
    """Application settings with default values.

    Attributes:
        general: Data source and notice settings.
        canvas: Canvas-related settings.
        debug: Trace logging settings.
    """
    general: GeneralSettings = field(default_factory=GeneralSettings)
    canvas: CanvasSettings = field(default_factory=CanvasSettings)
    debug: DebugSettings = field(default_factory=DebugSettings)


# =============================================================================
# Settings Manager
# =============================================================================

class SettingsManager:
    """Manages loading, saving, and accessing application settings.

    Settings are stored in a TOML file at the platform-appropriate location.
    If the settings file doesn't exist, defaults are used and the file is
    created on first save.

    Args:
        app_name: Application name used for the config directory.
    """

    def __init__(self, app_name: str = APP_NAME):
        self.settings_dir = Path(platformdirs.user_config_dir(app_name))
        self.settings_file = self.settings_dir / "settings.toml"
        self.settings = self.load()
        self._needs_save = not self.settings_file.exists()  # Save if file didn't exist

    def ensure_file_complete(self) -> None:
        """Ensure settings file exists with all sections. Call once at startup."""
        if self._needs_save or not self.settings_file.exists():
            self.save()
            self._needs_save = False

    def load(self) -> AppSettings:
        """Load settings from the TOML file.

        Returns:
            AppSettings instance with values from file or defaults if file
            doesn't exist or is invalid.
        """
        if not self.settings_file.exists():
            return AppSettings()

        try:
            with open(self.settings_file, "rb") as f:
                data = tomllib.load(f)

            return self._parse_toml(data)
        except Exception:
            # If file is corrupted or invalid, return defaults
            return AppSettings()

    def _parse_toml(self, data: Dict[str, Any]) -> AppSettings:
        """Parse TOML data into AppSettings.

        Args:
            data: Parsed TOML dictionary.

        Returns:
            AppSettings instance populated from TOML data.
        """
        settings = AppSettings()

        # General section
        general = data.get("general", {})
        settings.general.data_dir = general.get("data_dir", settings.general.data_dir)
        settings.general.server_url = general.get("server_url", settings.general.server_url)
        settings.general.request_timeout = general.get("request_timeout", settings.general.request_timeout)
        settings.general.status_timeout_ms = general.get("status_timeout_ms", settings.general.status_timeout_ms)

        # Canvas section
        canvas = data.get("canvas", {})
        if "zoom" in canvas:
            zm = canvas["zoom"]
            settings.canvas.zoom.zoom_in_factor = zm.get("zoom_in_factor", settings.canvas.zoom.zoom_in_factor)
            settings.canvas.zoom.zoom_out_factor = zm.get("zoom_out_factor", settings.canvas.zoom.zoom_out_factor)
            settings.canvas.zoom.min_zoom = zm.get("min_zoom", settings.canvas.zoom.min_zoom)
            settings.canvas.zoom.max_zoom = zm.get("max_zoom", settings.canvas.zoom.max_zoom)
        if "boxes" in canvas:
            b = canvas["boxes"]
            settings.canvas.boxes.ocr_color = b.get("ocr_color", settings.canvas.boxes.ocr_color)
            settings.canvas.boxes.ocr_line_width = b.get("ocr_line_width", settings.canvas.boxes.ocr_line_width)
            settings.canvas.boxes.field_line_width = b.get("field_line_width", settings.canvas.boxes.field_line_width)
            palette = b.get("palette", settings.canvas.boxes.palette)
            if palette:
                settings.canvas.boxes.palette = list(palette)
        if "labels" in canvas:
            lb = canvas["labels"]
            settings.canvas.labels.font_family = lb.get("font_family", settings.canvas.labels.font_family)
            settings.canvas.labels.bold = lb.get("bold", settings.canvas.labels.bold)
            settings.canvas.labels.height_fraction = lb.get("height_fraction", settings.canvas.labels.height_fraction)
            settings.canvas.labels.min_px = lb.get("min_px", settings.canvas.labels.min_px)
            settings.canvas.labels.padding = lb.get("padding", settings.canvas.labels.padding)
            settings.canvas.labels.text_color = lb.get("text_color", settings.canvas.labels.text_color)
        if "pan" in canvas:
            p = canvas["pan"]
            settings.canvas.pan.drag_threshold = p.get("drag_threshold", settings.canvas.pan.drag_threshold)

        # Debug section
        debug = data.get("debug", {})
        settings.debug.trace = debug.get("trace", settings.debug.trace)
        settings.debug.trace_paint = debug.get("trace_paint", settings.debug.trace_paint)
        settings.debug.log_file = debug.get("log_file", settings.debug.log_file)

        return settings

    def save(self) -> None:
        """Save current settings to the TOML file.

        Creates the settings directory if it doesn't exist.
        """
        # Ensure directory exists
        self.settings_dir.mkdir(parents=True, exist_ok=True)

        # Convert settings to TOML structure
        data = self._to_toml_dict()

        with open(self.settings_file, "wb") as f:
            tomli_w.dump(data, f)

    def _to_toml_dict(self) -> Dict[str, Any]:
        """Convert settings to a TOML-compatible dictionary structure.

        Returns:
            Dictionary organized by TOML sections.
        """
        s = self.settings
        return {
            "general": {
                "data_dir": s.general.data_dir,
                "server_url": s.general.server_url,
                "request_timeout": s.general.request_timeout,
                "status_timeout_ms": s.general.status_timeout_ms,
            },
            "canvas": {
                "zoom": {
                    "zoom_in_factor": s.canvas.zoom.zoom_in_factor,
                    "zoom_out_factor": s.canvas.zoom.zoom_out_factor,
                    "min_zoom": s.canvas.zoom.min_zoom,
                    "max_zoom": s.canvas.zoom.max_zoom,
                },
                "boxes": {
                    "ocr_color": s.canvas.boxes.ocr_color,
                    "ocr_line_width": s.canvas.boxes.ocr_line_width,
                    "field_line_width": s.canvas.boxes.field_line_width,
                    "palette": list(s.canvas.boxes.palette),
                },
                "labels": {
                    "font_family": s.canvas.labels.font_family,
                    "bold": s.canvas.labels.bold,
                    "height_fraction": s.canvas.labels.height_fraction,
                    "min_px": s.canvas.labels.min_px,
                    "padding": s.canvas.labels.padding,
                    "text_color": s.canvas.labels.text_color,
                },
                "pan": {
                    "drag_threshold": s.canvas.pan.drag_threshold,
                },
            },
            "debug": {
                "trace": s.debug.trace,
                "trace_paint": s.debug.trace_paint,
                "log_file": s.debug.log_file,
            },
        }

    def to_toml(self) -> str:
        """Convert current settings to a TOML-formatted string.

        Returns:
            TOML representation of the current settings.
        """
        data = self._to_toml_dict()
        return tomli_w.dumps(data)

    def get_data_dir(self) -> Path:
        """Get the resolved data folder path.

        Returns:
            Path to the data folder. Falls back to ~/Documents/FieldBox
            if data_dir setting is empty.
        """
        if self.settings.general.data_dir:
            return Path(self.settings.general.data_dir)
        return Path.home() / "Documents" / "FieldBox"

    def get_settings_path(self) -> Path:
        """Get the path to the settings file.

        Returns:
            Path object pointing to the settings file location.
        """
        return self.settings_file
