"""
Configuration, constants, and settings persistence.
"""

import os
import re
import json
import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from models import ArchiveSettings

# --- LOAD ENV ---
load_dotenv()

# --- LOGGING ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger("task_archiver")


def log_event(level: int, message: str, **data):
    """Lightweight structured logging helper."""
    try:
        serialized = " | ".join(f"{k}={v}" for k, v in data.items())
        logger.log(level, f"{message}{' | ' + serialized if serialized else ''}")
    except Exception:
        logger.log(level, message)


# --- PATHS ---
NOTES_DIR = Path(os.getenv("NOTES_DIR", str(Path(__file__).parent / "notes")))
SETTINGS_FILE = Path(os.getenv("SETTINGS_FILE", str(Path(__file__).parent / "settings.json")))

# --- CONSTANTS ---
PORT = int(os.getenv("PORT", 5050))
SEPARATOR = "---"
REMINDER_ICON = "🔔"

# Latch release and de-duplication window after a cycle
PROCESSING_RELEASE_SECONDS = 1.0
DEDUP_CLEAR_SECONDS = 5.0

# Host view-mode switching waits
VIEW_SWITCH_SETTLE_SECONDS = 0.05
VIEW_RESTORE_DELAY_SECONDS = 0.1

# Fields that fall back to their default when set to an empty string
_NON_EMPTY_FIELDS = ("date_format", "icon", "section_title")


# --- SETTINGS ---

def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def default_settings() -> ArchiveSettings:
    """Build settings from built-in defaults overridden by environment variables."""
    base = ArchiveSettings()
    return ArchiveSettings(
        date_format=os.getenv("ARCHIVE_DATE_FORMAT") or base.date_format,
        icon=os.getenv("ARCHIVE_ICON") or base.icon,
        auto_move=_env_bool("ARCHIVE_AUTO_MOVE", base.auto_move),
        create_section=_env_bool("ARCHIVE_CREATE_SECTION", base.create_section),
        section_title=os.getenv("ARCHIVE_SECTION_TITLE") or base.section_title,
        add_separator=_env_bool("ARCHIVE_ADD_SEPARATOR", base.add_separator),
        delay=int(os.getenv("ARCHIVE_DELAY_MS", base.delay)),
        auto_switch_to_edit_mode=_env_bool("ARCHIVE_AUTO_SWITCH_TO_EDIT", base.auto_switch_to_edit_mode),
        return_to_view_mode=_env_bool("ARCHIVE_RETURN_TO_VIEW", base.return_to_view_mode),
    )


def merge_settings(settings: ArchiveSettings, overrides: dict) -> ArchiveSettings:
    """
    Apply a dict of overrides on top of settings.
    Unknown keys are ignored; empty strings on text fields keep the default.
    """
    known = {f.name for f in fields(ArchiveSettings)}
    values = asdict(settings)
    defaults = ArchiveSettings()

    for key, value in (overrides or {}).items():
        if key not in known:
            continue
        if key in _NON_EMPTY_FIELDS:
            value = str(value or "") or getattr(defaults, key)
        elif key == "delay":
            value = int(value)
        elif isinstance(getattr(defaults, key), bool):
            value = value if isinstance(value, bool) else str(value).strip().lower() == "true"
        values[key] = value

    return ArchiveSettings(**values)


def load_settings(path: Optional[Path] = None) -> ArchiveSettings:
    """Load persisted settings, falling back to env/defaults."""
    path = path or SETTINGS_FILE
    settings = default_settings()
    if not path.exists():
        return settings

    try:
        stored = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        log_event(logging.WARNING, "settings_read_failed", path=str(path), error=str(e))
        return settings

    log_event(logging.DEBUG, "settings_loaded", path=str(path), keys=len(stored))
    return merge_settings(settings, stored)


def save_settings(settings: ArchiveSettings, path: Optional[Path] = None) -> bool:
    """Persist settings as JSON. Returns True on success."""
    path = path or SETTINGS_FILE
    try:
        path.write_text(json.dumps(asdict(settings), indent=2, ensure_ascii=False), encoding='utf-8')
        log_event(logging.INFO, "settings_saved", path=str(path))
        return True
    except OSError as e:
        log_event(logging.ERROR, "settings_write_failed", path=str(path), error=str(e))
        return False


# --- NOTE HELPERS ---

def slugify_note(name: str) -> str:
    """Convert a note name to a file-safe slug."""
    cleaned = name.strip().lower() if name else ""
    cleaned = re.sub(r"\.md$", "", cleaned)
    cleaned = re.sub(r"[^a-z0-9]+", "-", cleaned).strip("-")
    return cleaned or "untitled"


def resolve_note_name(value: Optional[str]) -> Optional[str]:
    """Resolve a note name from input; None when nothing usable was given."""
    return slugify_note(value) if value and value.strip() else None


def get_notes_dir() -> Path:
    return NOTES_DIR


def get_note_path(note_name: str) -> Path:
    """Get the file path for a note."""
    return NOTES_DIR / f"{slugify_note(note_name)}.md"
