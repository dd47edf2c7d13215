"""
Markdown note file operations and front matter.
"""

import re
import logging
from typing import List

from config import (
    log_event,
    get_note_path,
    get_notes_dir,
)

FRONTMATTER_PATTERN = re.compile(r'^---\s*\n([\s\S]*?)\n---')
TRUE_VALUE_PATTERN = re.compile(r'^("|\')?true("|\')?$', re.IGNORECASE)


def initial_content(note_name: str) -> str:
    """Generate initial content for a new note."""
    return f"---\nautomove: true\n---\n# {note_name}\n\n"


def note_exists(note_name: str) -> bool:
    return get_note_path(note_name).exists()


def ensure_note_file(note_name: str):
    """Create the note file if it doesn't exist and return its path."""
    path = get_note_path(note_name)
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(initial_content(note_name), encoding='utf-8')
        log_event(logging.INFO, "note_file_created", note=note_name, path=str(path))
    return path


def read_note_file(note_name: str) -> str:
    """Read the current state of a note."""
    path = get_note_path(note_name)
    content = path.read_text(encoding='utf-8')
    log_event(logging.DEBUG, "note_file_read", note=note_name, bytes=len(content))
    return content


def write_note_file(note_name: str, content: str) -> bool:
    """Write content to a note. Returns True on success."""
    try:
        path = get_note_path(note_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding='utf-8')
        log_event(logging.INFO, "note_file_written", note=note_name, bytes=len(content))
        return True
    except OSError as e:
        log_event(logging.ERROR, "note_file_write_failed", note=note_name, error=str(e))
        return False


def list_notes() -> List[str]:
    """Names of every note in the notes directory."""
    notes_dir = get_notes_dir()
    if not notes_dir.exists():
        return []
    return sorted(p.stem for p in notes_dir.glob("*.md"))


def has_automove_enabled(content: str) -> bool:
    """
    True if the front matter carries `automove: true`.
    The value may be quoted and is case-insensitive.
    """
    match = FRONTMATTER_PATTERN.match(content)
    if not match or not match.group(1):
        return False

    for line in match.group(1).split('\n'):
        trimmed = line.strip()
        if not trimmed:
            continue
        if trimmed.lower().startswith('automove:'):
            value = trimmed.split(':', 1)[1].strip()
            return bool(TRUE_VALUE_PATTERN.match(value))

    return False

