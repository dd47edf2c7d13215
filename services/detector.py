"""
Two-pass change detection over the live buffer.

Pass 1 finds completed parent blocks and reserves their lines.
Pass 2 classifies the remaining checkbox lines: subtasks are annotated in
place right away, individual top-level tasks are recorded for relocation.
"""

import logging
from datetime import datetime
from typing import Optional, Set

from config import log_event
from models import (
    ArchiveSettings,
    ChangeSet,
    IndividualChange,
    ParentBlockChange,
    SubtaskChange,
)
from services.archive import find_section_range
from services.blocks import all_subtasks_complete, has_subtasks, resolve_block
from services.buffer import DocumentBuffer
from services.classifier import (
    classify_line,
    has_completion_marker,
    has_icon,
    is_blank,
    leading_whitespace,
)
from services.timefmt import format_now


def marker_line(indent: str, settings: ArchiveSettings, timestamp: str) -> str:
    return f"{indent}{settings.icon} {timestamp}"


def task_key(index: int, raw: str) -> str:
    return f"{index}:{raw}"


def build_block_text(lines, start: int, end: int, settings: ArchiveSettings, timestamp: str) -> str:
    """
    Block lines joined, plus a marker line when the parent has none.
    Blank lines inside the block are dropped: the archive section ends at its
    first blank line, so a moved block must stay contiguous.
    """
    block = [line for line in lines[start:end + 1] if not is_blank(line)]
    parent = lines[start]
    if not has_completion_marker(parent, settings):
        block.append(marker_line(leading_whitespace(parent), settings, timestamp))
    return '\n'.join(block)


def detect_checkbox_changes(
    editor: DocumentBuffer,
    settings: ArchiveSettings,
    now: Optional[datetime] = None,
    processed: Optional[Set[str]] = None,
) -> ChangeSet:
    """
    Classify every checkbox line outside the archive section.
    Subtask annotations are written to the editor during the scan.
    """
    changes = ChangeSet()
    processed = processed if processed is not None else set()
    timestamp = format_now(settings.date_format, now)
    lines = editor.snapshot()
    section = find_section_range(lines, settings)
    reserved: Set[int] = set()

    def outside_section(i: int) -> bool:
        return section is None or not section.contains(i)

    # --- PASS 1: completed parent blocks ---
    for i, raw in enumerate(lines):
        if not outside_section(i):
            continue
        item = classify_line(raw, i, settings)
        if item is None or item.indent != 0 or not item.checked:
            continue
        if not has_subtasks(lines, i):
            continue
        if not all_subtasks_complete(lines, i, settings):
            continue

        start, end = resolve_block(lines, i)
        reserved.update(range(start, end + 1))
        block_text = build_block_text(lines, start, end, settings, timestamp)
        changes.parent_blocks.append(ParentBlockChange(
            line=i,
            original_line=raw,
            block_text=block_text,
            line_count=len(block_text.split('\n')),
            block_end=end,
        ))

    # --- PASS 2: subtasks and individual tasks ---
    for i in range(len(lines)):
        if not outside_section(i) or i in reserved:
            continue
        raw = lines[i]
        item = classify_line(raw, i, settings)
        if item is None or not item.checked:
            continue

        key = task_key(i, raw)
        if key in processed:
            continue

        if item.indent > 0:
            if item.has_completion_marker or has_icon(raw, settings):
                continue
            new_text = f"{raw} {settings.icon} {timestamp}"
            editor.set_line(i, new_text)
            lines[i] = new_text
            processed.add(key)
            changes.subtasks.append(SubtaskChange(line=i, original_line=raw, new_text=new_text))
            log_event(logging.DEBUG, "subtask_timestamped", line=i)

        elif not item.has_completion_marker and not has_subtasks(lines, i):
            processed.add(key)
            changes.individual.append(IndividualChange(
                line=i,
                original_line=raw,
                text=f"{raw}\n{marker_line(leading_whitespace(raw), settings, timestamp)}",
            ))

    log_event(
        logging.INFO,
        "checkbox_changes_detected",
        individual=len(changes.individual),
        subtasks=len(changes.subtasks),
        parent_blocks=len(changes.parent_blocks),
        reserved=len(reserved),
    )
    return changes
