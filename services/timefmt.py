"""
Timestamp formatting with moment-style date patterns.

The completion marker is `<icon> <timestamp>`, where the timestamp is rendered
from a pattern such as `YYYY-MM-DD HH:mm:ss`. The same pattern is compiled to a
regular expression so already-processed lines can be recognised.
"""

import re
from datetime import datetime
from functools import lru_cache
from typing import Optional, Pattern

# Longest tokens first so "MMMM" wins over "MM"
TOKEN_PATTERN = re.compile(
    r"\[[^\]]*\]|YYYY|YY|MMMM|MMM|MM|M|Do|DD|D|dddd|ddd|HH|H|hh|h|mm|m|ss|s|A|a"
)

_TOKEN_REGEX = {
    "YYYY": r"\d{4}",
    "YY": r"\d{2}",
    "MMMM": r"[^\W\d_]+",
    "MMM": r"[^\W\d_]+\.?",
    "MM": r"\d{2}",
    "M": r"\d{1,2}",
    "Do": r"\d{1,2}(?:st|nd|rd|th)",
    "DD": r"\d{2}",
    "D": r"\d{1,2}",
    "dddd": r"[^\W\d_]+",
    "ddd": r"[^\W\d_]+\.?",
    "HH": r"\d{2}",
    "H": r"\d{1,2}",
    "hh": r"\d{2}",
    "h": r"\d{1,2}",
    "mm": r"\d{2}",
    "m": r"\d{1,2}",
    "ss": r"\d{2}",
    "s": r"\d{1,2}",
    "A": r"(?:AM|PM)",
    "a": r"(?:am|pm)",
}


def _ordinal(day: int) -> str:
    if 10 <= day % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def _render_token(token: str, now: datetime) -> str:
    hour12 = now.hour % 12 or 12
    renderers = {
        "YYYY": lambda: f"{now.year:04d}",
        "YY": lambda: f"{now.year % 100:02d}",
        "MMMM": lambda: now.strftime("%B"),
        "MMM": lambda: now.strftime("%b"),
        "MM": lambda: f"{now.month:02d}",
        "M": lambda: str(now.month),
        "Do": lambda: _ordinal(now.day),
        "DD": lambda: f"{now.day:02d}",
        "D": lambda: str(now.day),
        "dddd": lambda: now.strftime("%A"),
        "ddd": lambda: now.strftime("%a"),
        "HH": lambda: f"{now.hour:02d}",
        "H": lambda: str(now.hour),
        "hh": lambda: f"{hour12:02d}",
        "h": lambda: str(hour12),
        "mm": lambda: f"{now.minute:02d}",
        "m": lambda: str(now.minute),
        "ss": lambda: f"{now.second:02d}",
        "s": lambda: str(now.second),
        "A": lambda: "AM" if now.hour < 12 else "PM",
        "a": lambda: "am" if now.hour < 12 else "pm",
    }
    return renderers[token]()


def format_now(pattern: str, now: Optional[datetime] = None) -> str:
    """Render `now` (default: current local time) with a moment-style pattern."""
    now = now or datetime.now()
    out = []
    pos = 0
    for match in TOKEN_PATTERN.finditer(pattern):
        out.append(pattern[pos:match.start()])
        token = match.group(0)
        if token.startswith("["):
            out.append(token[1:-1])
        else:
            out.append(_render_token(token, now))
        pos = match.end()
    out.append(pattern[pos:])
    return "".join(out)


def _literal_regex(text: str) -> str:
    # Whitespace inside the pattern matches any run of whitespace
    return r"\s+".join(re.escape(part) for part in re.split(r"\s+", text))


def pattern_regex(pattern: str) -> str:
    """Translate a moment-style pattern into a regex fragment (no anchors)."""
    parts = []
    pos = 0
    for match in TOKEN_PATTERN.finditer(pattern):
        parts.append(_literal_regex(pattern[pos:match.start()]))
        token = match.group(0)
        if token.startswith("["):
            parts.append(_literal_regex(token[1:-1]))
        else:
            parts.append(_TOKEN_REGEX[token])
        pos = match.end()
    parts.append(_literal_regex(pattern[pos:]))
    return "".join(parts)


@lru_cache(maxsize=32)
def marker_pattern(icon: str, date_format: str) -> Pattern:
    """Compiled regex for `<icon> <timestamp>` anywhere on a line."""
    return re.compile(re.escape(icon) + r"\s*" + pattern_regex(date_format))
