"""
Relocation engine: move completed tasks to the archive section.

Removals run from the highest line down so earlier removals never shift lines
still to be removed; insertions then run in original order at the bottom of the
archive section. Cursor and scroll are restored afterwards.
"""

import logging
from datetime import datetime
from typing import List, Optional, Set

from config import log_event
from models import (
    ArchiveSettings,
    ChangeSet,
    Cursor,
    CycleResult,
    TaskToMove,
)
from services.archive import find_or_create_section
from services.buffer import DocumentBuffer
from services.classifier import is_blank, is_heading, is_marker_line, leading_whitespace
from services.detector import detect_checkbox_changes


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def timestamp_message(count: int) -> str:
    return _plural(count, "✅ Timestamp added to 1 subtask", f"✅ Timestamp added to {count} subtasks")


def moved_message(moved: int, timestamped: int) -> str:
    if timestamped:
        return f"✅ {moved} {_plural(moved, 'task', 'tasks')} moved and {timestamped} subtasks timestamped"
    return _plural(moved, "✅ 1 task moved to the end", f"✅ {moved} tasks moved to the end")


def individual_span_end(lines, index: int, settings: ArchiveSettings) -> int:
    """A task line plus its marker line directly below, when present."""
    if index + 1 < len(lines):
        if is_marker_line(lines[index + 1], leading_whitespace(lines[index]), settings):
            return index + 1
    return index


def collect_tasks(editor: DocumentBuffer, changes: ChangeSet, settings: ArchiveSettings) -> List[TaskToMove]:
    """Merge individual and parent-block changes into one move list."""
    lines = editor.snapshot()
    tasks = []

    for change in changes.individual:
        tasks.append(TaskToMove(
            kind="individual",
            line=change.line,
            span_end=individual_span_end(lines, change.line, settings),
            text=change.text,
            original_line=change.original_line,
            line_count=change.line_count,
        ))

    for change in changes.parent_blocks:
        tasks.append(TaskToMove(
            kind="with_subtasks",
            line=change.line,
            span_end=change.block_end,
            text=change.block_text,
            original_line=change.original_line,
            line_count=change.line_count,
        ))

    return tasks


def cursor_fate(tasks: List[TaskToMove], cursor: Cursor):
    """
    Return (containing_task, lines_removed_above) for the cursor's line.
    containing_task is None unless the cursor sits inside a moved span.
    """
    containing = None
    removed_above = 0
    for task in tasks:
        if task.line <= cursor.line <= task.span_end:
            containing = task
        elif task.span_end < cursor.line:
            removed_above += task.span_length
    return containing, removed_above


def snap_to_content(editor: DocumentBuffer, line: int) -> Cursor:
    """End of the last non-blank line at or before `line`."""
    line = max(0, min(line, editor.line_count() - 1))
    while line > 0 and is_blank(editor.get_line(line)):
        line -= 1
    if is_blank(editor.get_line(line)):
        line = 0
    return Cursor(line, len(editor.get_line(line)))


def relocate_tasks(editor: DocumentBuffer, tasks: List[TaskToMove], settings: ArchiveSettings) -> int:
    """Remove every task span and re-insert the prepared text. Returns the insertion line."""
    for task in sorted(tasks, key=lambda t: t.line, reverse=True):
        editor.delete_lines(task.line, task.span_end)
        log_event(logging.DEBUG, "task_removed", line=task.line, span=task.span_length, kind=task.kind)

    insertion_line = find_or_create_section(editor, settings)

    # Open a real line to insert on when the section ends the document
    if insertion_line >= editor.line_count():
        editor.replace_range('\n', Cursor(editor.line_count(), 0))
        insertion_line = editor.line_count() - 1

    # The section ends at a blank line or the next heading; a heading keeps
    # its blank line below the tasks so they stay in the section
    current = insertion_line
    before_heading = is_heading(editor.get_line(current))

    for task in sorted(tasks, key=lambda t: t.line):
        editor.insert_text(current, task.text + '\n')
        current += task.line_count

    if before_heading:
        editor.insert_text(current, '\n')

    return insertion_line


def process_note_editor(
    editor: DocumentBuffer,
    settings: ArchiveSettings,
    now: Optional[datetime] = None,
    processed: Optional[Set[str]] = None,
) -> CycleResult:
    """Run one detect-and-relocate cycle against the editor."""
    original_cursor = editor.get_cursor()
    scroll = editor.get_scroll_info()

    changes = detect_checkbox_changes(editor, settings, now=now, processed=processed)

    if not changes.has_changes:
        return CycleResult(status="no_changes", message="📭 No completed tasks to process")

    timestamped = len(changes.subtasks)
    if not changes.has_relocations:
        editor.set_cursor(original_cursor)
        editor.scroll_to(scroll.left, scroll.top)
        return CycleResult(status="timestamped", message=timestamp_message(timestamped), timestamped=timestamped)

    tasks = collect_tasks(editor, changes, settings)
    containing, removed_above = cursor_fate(tasks, original_cursor)

    insertion_line = relocate_tasks(editor, tasks, settings)

    if containing is not None:
        editor.set_cursor(snap_to_content(editor, containing.line - removed_above))
    else:
        editor.set_cursor(Cursor(original_cursor.line - removed_above, original_cursor.ch))

    editor.scroll_to(scroll.left, scroll.top)

    moved = len(tasks)
    log_event(
        logging.INFO,
        "tasks_relocated",
        moved=moved,
        timestamped=timestamped,
        insertion_line=insertion_line,
        cursor_inside=containing is not None,
    )
    return CycleResult(
        status="moved",
        message=moved_message(moved, timestamped),
        moved=moved,
        timestamped=timestamped,
        insertion_line=insertion_line,
    )
