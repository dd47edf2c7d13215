"""
Line classification: checkbox detection, indentation, completion markers.
"""

import re
from typing import Optional

from config import REMINDER_ICON
from models import ArchiveSettings, CheckboxLine
from services.timefmt import marker_pattern

CHECKBOX_PATTERN = re.compile(r'^- \[[ x]\]\s', re.IGNORECASE)
CHECKED_PATTERN = re.compile(r'^- \[x\]\s', re.IGNORECASE)
INDENT_PATTERN = re.compile(r'^\s*')

# Reminder tags (bell + date-time) belong to another feature
REMINDER_DATE_PATTERN = re.compile(r'\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}')


def get_indent_level(line: str) -> int:
    """Count leading whitespace characters; a tab counts as one."""
    return len(INDENT_PATTERN.match(line).group(0))


def leading_whitespace(line: str) -> str:
    return INDENT_PATTERN.match(line).group(0)


def is_blank(line: str) -> bool:
    return line.strip() == ''


def is_checkbox(line: str) -> bool:
    """True if the trimmed line starts with `- [ ]` or `- [x]`."""
    return bool(CHECKBOX_PATTERN.match(line.strip()))


def is_checked(line: str) -> bool:
    return bool(CHECKED_PATTERN.match(line.strip()))


def is_heading(line: str) -> bool:
    return line.strip().startswith('#')


def has_reminder(line: str) -> bool:
    """Line already tagged by the reminder feature."""
    return REMINDER_ICON in line and bool(REMINDER_DATE_PATTERN.search(line))


def has_completion_marker(line: str, settings: ArchiveSettings) -> bool:
    """Icon followed by a timestamp in the configured date format."""
    return bool(marker_pattern(settings.icon, settings.date_format).search(line))


def has_icon(line: str, settings: ArchiveSettings) -> bool:
    return settings.icon in line


def is_marker_line(line: str, indent: str, settings: ArchiveSettings) -> bool:
    """A standalone marker line placed under a task with the given indentation."""
    return bool(re.match(f'^{re.escape(indent)}{re.escape(settings.icon)}\\s', line))


def classify_line(raw: str, index: int, settings: ArchiveSettings) -> Optional[CheckboxLine]:
    """
    Classify a raw line.
    Returns None for non-checkbox lines and for lines carrying a reminder tag.
    """
    trimmed = raw.strip()
    if not CHECKBOX_PATTERN.match(trimmed):
        return None
    if has_reminder(trimmed):
        return None

    return CheckboxLine(
        index=index,
        indent=get_indent_level(raw),
        checked=bool(CHECKED_PATTERN.match(trimmed)),
        has_completion_marker=has_completion_marker(raw, settings),
        raw_text=raw,
    )
