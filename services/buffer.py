"""
In-memory document buffer implementing the editor contract the engine needs.

Positions follow code-editor conventions: a line index past the end clips to
the end of the document, a column past the end of a line clips to its length.
CRLF line endings are read as LF."""

from typing import List, Optional

from models import Cursor, ScrollInfo


class DocumentBuffer:
    """A mutable, line-oriented text buffer with a cursor and scroll offset."""

    def __init__(self, text: str = "", cursor: Optional[Cursor] = None, scroll: Optional[ScrollInfo] = None):
        self._lines: List[str] = text.replace('\r\n', '\n').split('\n')
        self._cursor = Cursor(0, 0)
        self._scroll = ScrollInfo()
        self.dirty = False
        if cursor is not None:
            self.set_cursor(cursor)
        if scroll is not None:
            self.scroll_to(scroll.left, scroll.top)

    # --- READ ---

    def line_count(self) -> int:
        return len(self._lines)

    def get_line(self, index: int) -> str:
        return self._lines[index]

    def get_value(self) -> str:
        return '\n'.join(self._lines)

    def snapshot(self) -> List[str]:
        """Copy of the current lines for analysis."""
        return list(self._lines)

    # --- WRITE ---

    def clip(self, pos: Cursor) -> Cursor:
        if pos.line < 0:
            return Cursor(0, 0)
        if pos.line >= len(self._lines):
            last = len(self._lines) - 1
            return Cursor(last, len(self._lines[last]))
        return Cursor(pos.line, max(0, min(pos.ch, len(self._lines[pos.line]))))

    def _offset(self, pos: Cursor) -> int:
        # Character offset of a clipped position in the joined text
        return sum(len(line) + 1 for line in self._lines[:pos.line]) + pos.ch

    def replace_range(self, text: str, start: Cursor, end: Optional[Cursor] = None):
        """Replace the half-open range [start, end) with text."""
        start = self.clip(start)
        end = self.clip(end) if end is not None else start
        if (end.line, end.ch) < (start.line, start.ch):
            start, end = end, start

        value = self.get_value()
        begin, finish = self._offset(start), self._offset(end)
        self._lines = (value[:begin] + text + value[finish:]).split('\n')
        self.dirty = True

    def delete_lines(self, start: int, end: int):
        """
        Delete lines start..end inclusive. The line count drops by exactly
        end - start + 1 unless the range covers the whole document.
        """
        if end + 1 < len(self._lines):
            self.replace_range('', Cursor(start, 0), Cursor(end + 1, 0))
        elif start > 0:
            self.replace_range('', Cursor(start - 1, len(self._lines[start - 1])), Cursor(end, len(self._lines[end])))
        else:
            self.replace_range('', Cursor(0, 0), Cursor(end, len(self._lines[end])))

    def insert_text(self, line: int, text: str):
        """Insert text at the start of a line."""
        self.replace_range(text, Cursor(line, 0), Cursor(line, 0))

    def set_line(self, index: int, text: str):
        """Replace the content of a single line."""
        self.replace_range(text, Cursor(index, 0), Cursor(index, len(self._lines[index])))

    # --- CURSOR & SCROLL ---

    def get_cursor(self) -> Cursor:
        return Cursor(self._cursor.line, self._cursor.ch)

    def set_cursor(self, pos: Cursor):
        self._cursor = self.clip(pos)

    def get_scroll_info(self) -> ScrollInfo:
        return ScrollInfo(self._scroll.left, self._scroll.top)

    def scroll_to(self, left: float, top: float):
        self._scroll = ScrollInfo(left, top)
