"""
Entry points: the two user commands and the checkbox trigger.

Each entry point resolves the note, checks that it opted in through front
matter, switches the host editor into source mode when needed, runs the core
against an in-memory buffer and writes the buffer back to the note file.
"""

import re
import time
import logging
import threading
import uuid
from dataclasses import asdict
from typing import Dict, Optional

from config import (
    log_event,
    load_settings,
    slugify_note,
    DEDUP_CLEAR_SECONDS,
    PROCESSING_RELEASE_SECONDS,
    VIEW_RESTORE_DELAY_SECONDS,
    VIEW_SWITCH_SETTLE_SECONDS,
)
from models import ArchiveSettings, CycleResult, EditorSession
from state import (
    ACTIVE_NOTE,
    CONNECTED_CLIENTS,
    LATCH_LOCK,
    PROCESSED_TASK_KEYS,
    PROCESSING_LATCH,
    get_note_lock,
    get_session,
)
from services.archive import clear_completed_section, find_section_range
from services.buffer import DocumentBuffer
from services.classifier import is_checkbox, is_checked
from services.markdown import (
    has_automove_enabled,
    note_exists,
    read_note_file,
    write_note_file,
)
from services.relocation import process_note_editor

CHECKBOX_STATE_PATTERN = re.compile(r'^(\s*- \[)[ xX](\])')

NO_ACTIVE_NOTE = "📭 No active note"
NOT_ELIGIBLE = "📭 This note does not have automove: true in frontmatter"

_settings_cache: Dict[str, ArchiveSettings] = {}


# --- SETTINGS ---

def current_settings() -> ArchiveSettings:
    """Settings in effect, loaded once and replaced by update_settings()."""
    if "current" not in _settings_cache:
        _settings_cache["current"] = load_settings()
    return _settings_cache["current"]


def update_settings(settings: ArchiveSettings):
    _settings_cache["current"] = settings


def reset_settings():
    _settings_cache.clear()


# --- SSE BROADCASTING ---

def broadcast_event(note: str, data: Dict):
    """Broadcast an event to all connected SSE clients for a note."""
    for client_queue in CONNECTED_CLIENTS[note]:
        try:
            client_queue.put(data)
        except Exception as e:
            log_event(logging.DEBUG, "sse_client_send_failed", note=note, error=str(e))
    log_event(logging.DEBUG, "sse_broadcast", note=note, type=data.get("type"))


def notify(note: Optional[str], message: str):
    """Surface a user-facing notice."""
    log_event(logging.INFO, "notice", note=note, text=message)
    if note:
        broadcast_event(note, {"type": "notice", "message": message})


def _report(note: Optional[str], status: str, message: str, **extra) -> Dict:
    notify(note, message)
    return {"status": status, "message": message, "note": note, **extra}


# --- LATCH & DE-DUPLICATION ---

def acquire_latch() -> bool:
    """Take the processing latch; False if a cycle is already active."""
    with LATCH_LOCK:
        if PROCESSING_LATCH["active"]:
            return False
        PROCESSING_LATCH["active"] = True
        return True


def release_latch():
    with LATCH_LOCK:
        PROCESSING_LATCH["active"] = False
    log_event(logging.DEBUG, "processing_latch_released")


def is_processing() -> bool:
    with LATCH_LOCK:
        return PROCESSING_LATCH["active"]


def _schedule(delay: float, func):
    timer = threading.Timer(delay, func)
    timer.daemon = True
    timer.start()
    return timer


def reset_processed_keys():
    """Clear the de-duplication set now and again after a short window."""
    PROCESSED_TASK_KEYS.clear()
    _schedule(DEDUP_CLEAR_SECONDS, PROCESSED_TASK_KEYS.clear)


# --- HOST HELPERS ---

def resolve_active_note(note: Optional[str] = None) -> Optional[str]:
    """The named note, else the active one; None if it doesn't exist."""
    name = note or ACTIVE_NOTE["name"]
    if not name or not note_exists(name):
        return None
    return slugify_note(name)


def set_active_note(note: Optional[str]):
    ACTIVE_NOTE["name"] = note
    log_event(logging.INFO, "active_note_set", note=note)


def _enter_source_mode(session: EditorSession, switch: bool) -> Optional[str]:
    """Switch a previewed note to source mode. Returns the mode to restore."""
    if session.view_mode != "preview" or not switch:
        return None
    previous = session.view_mode
    session.view_mode = "source"
    log_event(logging.DEBUG, "view_mode_switched", note=session.note, mode="source")
    time.sleep(VIEW_SWITCH_SETTLE_SECONDS)
    return previous


def _restore_view_mode(session: EditorSession, previous: Optional[str], settings: ArchiveSettings):
    if previous and settings.return_to_view_mode:
        time.sleep(VIEW_RESTORE_DELAY_SECONDS)
        session.view_mode = previous
        log_event(logging.DEBUG, "view_mode_restored", note=session.note, mode=previous)


def _open_editor(content: str, session: EditorSession) -> DocumentBuffer:
    return DocumentBuffer(content, cursor=session.cursor, scroll=session.scroll)


def _commit(note: str, editor: DocumentBuffer, session: EditorSession, **change_info):
    """Persist the buffer and editor state after an operation."""
    session.cursor = editor.get_cursor()
    session.scroll = editor.get_scroll_info()
    if not editor.dirty:
        return
    content = editor.get_value()
    if write_note_file(note, content):
        broadcast_event(note, {
            "type": "file_updated",
            "content": content,
            "cursor": asdict(session.cursor),
            "change_info": change_info,
        })


def _result_payload(result: CycleResult) -> Dict:
    return {
        "moved": result.moved,
        "timestamped": result.timestamped,
        "insertion_line": result.insertion_line,
    }


def _run_move_cycle(note: str, session: EditorSession, settings: ArchiveSettings, switch: bool) -> Dict:
    previous = _enter_source_mode(session, switch)
    with get_note_lock(note):
        editor = _open_editor(read_note_file(note), session)
        try:
            result = process_note_editor(editor, settings, processed=PROCESSED_TASK_KEYS)
        finally:
            # Mutations already applied stay applied
            _commit(note, editor, session, action="move")
    _restore_view_mode(session, previous, settings)

    return _report(note, result.status, result.message, **_result_payload(result))


# --- ENTRY POINTS ---

def process_current_note(note: Optional[str] = None) -> Dict:
    """Command: move completed tasks to the end of the note."""
    name = None
    try:
        name = resolve_active_note(note)
        if not name:
            return _report(note, "no_active_note", NO_ACTIVE_NOTE)

        if not has_automove_enabled(read_note_file(name)):
            return _report(name, "not_eligible", NOT_ELIGIBLE)

        reset_processed_keys()
        settings = current_settings()
        return _run_move_cycle(name, get_session(name), settings, switch=True)

    except Exception as e:
        log_event(logging.ERROR, "process_note_error", note=name, error=str(e))
        return _report(name, "error", "❌ Error processing note")


def clear_current_note_section(note: Optional[str] = None) -> Dict:
    """Command: clear the completed tasks section."""
    name = None
    try:
        name = resolve_active_note(note)
        if not name:
            return _report(note, "no_active_note", NO_ACTIVE_NOTE)

        if not has_automove_enabled(read_note_file(name)):
            return _report(name, "not_eligible", NOT_ELIGIBLE)

        settings = current_settings()
        session = get_session(name)
        previous = _enter_source_mode(session, switch=True)
        with get_note_lock(name):
            editor = _open_editor(read_note_file(name), session)
            try:
                result = clear_completed_section(editor, settings)
            finally:
                _commit(name, editor, session, action="clear_section")
        _restore_view_mode(session, previous, settings)

        return _report(name, result.status, result.message, removed=result.moved)

    except Exception as e:
        log_event(logging.ERROR, "clear_section_error", note=name, error=str(e))
        return _report(name, "error", "❌ Error clearing section")


def handle_checkbox_click(note: Optional[str], line: int) -> Dict:
    """
    Trigger: a checkbox on `line` was clicked. Runs one cycle unless another
    is active; the latch is released on a timer once this one finishes.
    """
    execution_id = str(uuid.uuid4())[:8]
    settings = current_settings()

    name = resolve_active_note(note)
    if name:
        lines = read_note_file(name).split('\n')
        section = find_section_range(lines, settings)
        if section is not None and section.contains(line):
            log_event(logging.DEBUG, "checkbox_click_in_archive", execution_id=execution_id, line=line)
            return {"status": "ignored", "message": "Checkbox is in the completed section", "note": name}

    if not acquire_latch():
        log_event(logging.INFO, "checkbox_click_busy", execution_id=execution_id)
        return {"status": "busy", "message": "Already processing", "note": name}

    log_event(logging.INFO, "checkbox_click_start", execution_id=execution_id, note=name, line=line)
    try:
        reset_processed_keys()

        if not settings.auto_move:
            return {"status": "disabled", "message": "Automatic moving is disabled", "note": name}
        if not name:
            return {"status": "no_active_note", "message": NO_ACTIVE_NOTE, "note": note}

        content = read_note_file(name)
        if not has_automove_enabled(content):
            return {"status": "not_eligible", "message": NOT_ELIGIBLE, "note": name}

        session = get_session(name)
        lines = content.split('\n')
        now_checked = 0 <= line < len(lines) and is_checked(lines[line])
        if session.view_mode != "preview" and not now_checked:
            return {"status": "ignored", "message": "Checkbox was unchecked", "note": name}

        result = _run_move_cycle(name, session, settings, switch=settings.auto_switch_to_edit_mode)
        log_event(logging.INFO, "checkbox_click_complete", execution_id=execution_id, status=result["status"])
        return result

    except Exception as e:
        log_event(logging.ERROR, "checkbox_click_error", execution_id=execution_id, error=str(e))
        return _report(name, "error", "❌ Error processing note")

    finally:
        _schedule(PROCESSING_RELEASE_SECONDS, release_latch)


def toggle_checkbox(note: str, line: int, checked: Optional[bool] = None) -> str:
    """
    Flip (or set) the checkbox on a line, as a click in the host would.
    Returns the new line text. Raises ValueError for non-checkbox lines.
    """
    session = get_session(note)
    with get_note_lock(note):
        editor = _open_editor(read_note_file(note), session)
        if not 0 <= line < editor.line_count():
            raise ValueError(f"Line {line} is out of range")

        text = editor.get_line(line)
        if not is_checkbox(text):
            raise ValueError(f"Line {line} is not a checkbox")

        if checked is None:
            checked = not is_checked(text)
        new_text = CHECKBOX_STATE_PATTERN.sub(lambda m: f"{m.group(1)}{'x' if checked else ' '}{m.group(2)}", text, count=1)
        editor.set_line(line, new_text)

        _commit(note, editor, session, action="toggle", line=line)
    log_event(logging.INFO, "checkbox_toggled", note=note, line=line, checked=checked)
    return new_text
