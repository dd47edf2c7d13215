"""
Archive ("Completed Tasks") section: locate, create, and clear.
"""

import logging
from typing import Optional, Sequence

from config import log_event, SEPARATOR
from models import ArchiveSettings, Cursor, CycleResult, SectionRange
from services.buffer import DocumentBuffer
from services.classifier import is_blank, is_heading


def find_section_heading(lines: Sequence[str], settings: ArchiveSettings) -> Optional[int]:
    """Index of the first line whose trimmed text equals the section title."""
    title = settings.section_title.strip()
    for i, line in enumerate(lines):
        if line and line.strip() == title:
            return i
    return None


def _content_start(lines: Sequence[str], heading: int) -> int:
    start = heading + 1
    if start < len(lines) and lines[start].strip() == SEPARATOR:
        start += 1
    return start


def _content_end(lines: Sequence[str], start: int) -> int:
    # Exclusive end: first blank or heading line
    end = start
    while end < len(lines):
        line = lines[end]
        if is_blank(line) or is_heading(line):
            break
        end += 1
    return end


def find_section_range(lines: Sequence[str], settings: ArchiveSettings) -> Optional[SectionRange]:
    """
    Inclusive content range of the archive section, or None if there is no
    section. An empty section yields a range with end < start.
    """
    heading = find_section_heading(lines, settings)
    if heading is None:
        return None

    start = _content_start(lines, heading)
    return SectionRange(start=start, end=_content_end(lines, start) - 1)


def find_or_create_section(editor: DocumentBuffer, settings: ArchiveSettings) -> int:
    """
    Return the line where completed tasks should be inserted: the bottom of the
    existing section, a freshly created section at the end of the document, or
    the end of the document when creation is disabled.
    """
    lines = editor.snapshot()
    section = find_section_range(lines, settings)

    if section is not None:
        log_event(logging.DEBUG, "archive_section_found", start=section.start, end=section.end)
        return section.end + 1

    insertion_line = len(lines)
    if not settings.create_section:
        log_event(logging.DEBUG, "archive_section_missing", insertion_line=insertion_line)
        return insertion_line

    separator = f"\n{SEPARATOR}\n" if settings.add_separator else "\n\n"
    editor.replace_range(
        "\n\n" + settings.section_title + separator,
        Cursor(insertion_line, 0),
    )
    log_event(logging.INFO, "archive_section_created", title=settings.section_title, separator=settings.add_separator)

    return insertion_line + 3 if settings.add_separator else insertion_line + 2


def clear_completed_section(editor: DocumentBuffer, settings: ArchiveSettings) -> CycleResult:
    """Delete every content line of the archive section, keeping its heading and separator."""
    section = find_section_range(editor.snapshot(), settings)
    if section is None:
        return CycleResult(status="no_section", message="📭 No completed tasks section found")

    cursor = editor.get_cursor()
    scroll = editor.get_scroll_info()

    if section.end >= section.start:
        removed = section.end - section.start + 1
        editor.delete_lines(section.start, section.end)
        result = CycleResult(status="cleared", message="🧹 Completed tasks section cleared", moved=removed)
        log_event(logging.INFO, "archive_section_cleared", lines=removed)
    else:
        result = CycleResult(status="already_empty", message="📭 Section is already empty")

    editor.set_cursor(cursor)
    editor.scroll_to(scroll.left, scroll.top)
    return result
