"""Shared fixtures for the task archiver tests."""

from datetime import datetime

import pytest

import config
import state
from models import ArchiveSettings
from services import processing

FIXED_NOW = datetime(2024, 1, 1, 10, 0, 0)
STAMP = "✅ 2024-01-01 10:00:00"


@pytest.fixture
def settings():
    """Default settings."""
    return ArchiveSettings()


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture(autouse=True)
def reset_state(monkeypatch):
    """Fresh process state and no real waiting for every test."""
    state.EDITOR_SESSIONS.clear()
    state.ACTIVE_NOTE["name"] = None
    state.CONNECTED_CLIENTS.clear()
    state.PROCESSING_LATCH["active"] = False
    state.PROCESSED_TASK_KEYS.clear()
    state.PROCESSING_RESULTS.clear()
    state.PROCESSING_QUEUE.queue.clear()
    state.NOTE_LOCKS.clear()
    processing.reset_settings()

    monkeypatch.setattr(processing, "VIEW_SWITCH_SETTLE_SECONDS", 0)
    monkeypatch.setattr(processing, "VIEW_RESTORE_DELAY_SECONDS", 0)
    monkeypatch.setattr(processing, "PROCESSING_RELEASE_SECONDS", 60)
    yield
    state.PROCESSING_LATCH["active"] = False


@pytest.fixture
def notes_dir(tmp_path, monkeypatch):
    """Point notes and settings at a temporary directory."""
    directory = tmp_path / "notes"
    directory.mkdir()
    monkeypatch.setattr(config, "NOTES_DIR", directory)
    monkeypatch.setattr(config, "SETTINGS_FILE", tmp_path / "settings.json")
    return directory


@pytest.fixture
def write_note(notes_dir):
    """Helper to write a note file and return its name."""
    def _write(name, content):
        (notes_dir / f"{name}.md").write_text(content, encoding="utf-8")
        return name
    return _write
