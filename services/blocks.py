"""
Indentation-defined task blocks over a flat list of lines.
"""

from typing import Sequence, Tuple

from models import ArchiveSettings
from services.classifier import (
    get_indent_level,
    is_blank,
    is_checkbox,
    is_checked,
    has_completion_marker,
)


def resolve_block(lines: Sequence[str], start: int) -> Tuple[int, int]:
    """
    Return the inclusive [start, end] range of a line and its subtree.

    Every following line deeper than the start line belongs to the block.
    Blank lines between deeper lines stay inside; trailing blanks do not.
    """
    base_indent = get_indent_level(lines[start])
    end = start
    index = start + 1

    while index < len(lines):
        line = lines[index]
        if is_blank(line):
            index += 1
            continue
        if get_indent_level(line) <= base_indent:
            break
        end = index
        index += 1

    return start, end


def has_subtasks(lines: Sequence[str], index: int) -> bool:
    """True if a deeper checkbox line appears before indentation returns."""
    current_indent = get_indent_level(lines[index])

    for line in lines[index + 1:]:
        if is_blank(line):
            continue
        next_indent = get_indent_level(line)
        if next_indent <= current_indent:
            break
        if is_checkbox(line):
            return True

    return False


def count_subtasks(lines: Sequence[str], parent: int, settings: ArchiveSettings) -> Tuple[int, int]:
    """Return (subtasks, completed) over the parent's checkbox descendants."""
    parent_indent = get_indent_level(lines[parent])
    subtask_count = 0
    completed_count = 0

    for line in lines[parent + 1:]:
        if is_blank(line):
            continue
        if get_indent_level(line) <= parent_indent:
            break
        if not is_checkbox(line):
            continue

        subtask_count += 1
        if is_checked(line) or has_completion_marker(line, settings):
            completed_count += 1

    return subtask_count, completed_count


def all_subtasks_complete(lines: Sequence[str], parent: int, settings: ArchiveSettings) -> bool:
    """True iff the parent has checkbox descendants and every one is complete."""
    subtask_count, completed_count = count_subtasks(lines, parent, settings)
    return subtask_count > 0 and completed_count == subtask_count
