"""Tests for TOML settings persistence."""
from __future__ import annotations

from pathlib import Path

from models import FIELD_COLORS
from settings import SettingsManager, get_settings


def test_defaults(settings):
    s = settings.settings
    assert s.general.server_url == ""
    assert s.canvas.zoom.zoom_in_factor == 1.1
    assert s.canvas.zoom.min_zoom == 0.1
    assert s.canvas.boxes.palette == FIELD_COLORS
    assert s.canvas.pan.drag_threshold == 3
    assert not s.debug.trace


def test_singleton(settings):
    assert get_settings() is settings


def test_ensure_file_complete_writes_every_section(settings):
    assert not settings.get_settings_path().exists()
    settings.ensure_file_complete()
    text = settings.get_settings_path().read_text(encoding="utf-8")
    for section in ("[general]", "[canvas.zoom]", "[canvas.boxes]", "[canvas.labels]", "[canvas.pan]", "[debug]"):
        assert section in text


def test_round_trip(settings):
    settings.settings.general.data_dir = "/srv/invoices"
    settings.settings.general.server_url = "http://localhost:3000"
    settings.settings.canvas.zoom.max_zoom = 6.0
    settings.settings.canvas.boxes.palette = ["#000001", "#000002"]
    settings.settings.canvas.labels.bold = False
    settings.settings.debug.trace = True
    settings.save()

    reloaded = SettingsManager()
    assert reloaded.settings.general.data_dir == "/srv/invoices"
    assert reloaded.settings.general.server_url == "http://localhost:3000"
    assert reloaded.settings.canvas.zoom.max_zoom == 6.0
    assert reloaded.settings.canvas.boxes.palette == ["#000001", "#000002"]
    assert reloaded.settings.canvas.labels.bold is False
    assert reloaded.settings.debug.trace is True
    assert reloaded.get_data_dir() == Path("/srv/invoices")


def test_partial_file_keeps_other_defaults(settings):
    path = settings.get_settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text('[canvas.pan]\ndrag_threshold = 8\n', encoding="utf-8")
    reloaded = SettingsManager()
    assert reloaded.settings.canvas.pan.drag_threshold == 8
    assert reloaded.settings.canvas.zoom.max_zoom == 10.0


def test_corrupt_file_falls_back_to_defaults(settings):
    path = settings.get_settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("this is [not toml", encoding="utf-8")
    assert SettingsManager().settings.canvas.zoom.zoom_out_factor == 0.9


def test_default_data_dir(settings):
    assert settings.get_data_dir() == Path.home() / "Documents" / "FieldBox"
