"""Services package for the task archiver."""

from services.markdown import (
    initial_content,
    ensure_note_file,
    read_note_file,
    write_note_file,
    list_notes,
    has_automove_enabled,
)

from services.detector import detect_checkbox_changes

from services.archive import (
    find_section_range,
    find_or_create_section,
    clear_completed_section,
)

from services.relocation import process_note_editor

from services.processing import (
    process_current_note,
    clear_current_note_section,
    handle_checkbox_click,
    toggle_checkbox,
    broadcast_event,
)

from services.queue_processor import (
    enqueue_checkbox_trigger,
    get_result,
    start_queue_worker,
    stop_queue_worker,
)

__all__ = [
    # Markdown
    "initial_content",
    "ensure_note_file",
    "read_note_file",
    "write_note_file",
    "list_notes",
    "has_automove_enabled",
    # Engine
    "detect_checkbox_changes",
    "find_section_range",
    "find_or_create_section",
    "clear_completed_section",
    "process_note_editor",
    # Processing
    "process_current_note",
    "clear_current_note_section",
    "handle_checkbox_click",
    "toggle_checkbox",
    "broadcast_event",
    # Queue
    "enqueue_checkbox_trigger",
    "get_result",
    "start_queue_worker",
    "stop_queue_worker",
]
