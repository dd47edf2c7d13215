"""
Data structures (dataclasses) for the task archiver.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ArchiveSettings:
    """User-facing configuration values. No behavior of their own."""
    date_format: str = "YYYY-MM-DD HH:mm:ss"
    icon: str = "✅"
    auto_move: bool = True
    create_section: bool = True
    section_title: str = "## Completed Tasks"
    add_separator: bool = True
    delay: int = 300  # ms between a checkbox click and the cycle
    auto_switch_to_edit_mode: bool = True
    return_to_view_mode: bool = False


@dataclass
class Cursor:
    """Editor cursor position (0-based line, column)."""
    line: int
    ch: int


@dataclass
class ScrollInfo:
    """Editor scroll offset."""
    left: float = 0
    top: float = 0


@dataclass
class CheckboxLine:
    """A classified checkbox line. Derived per scan, never stored."""
    index: int
    indent: int
    checked: bool
    has_completion_marker: bool
    raw_text: str


@dataclass
class SectionRange:
    """Inclusive content range of the archive section."""
    start: int
    end: int

    def contains(self, index: int) -> bool:
        return self.start <= index <= self.end


@dataclass
class IndividualChange:
    """A completed top-level task without subtasks, moved later."""
    line: int
    original_line: str
    text: str  # task line + marker line
    line_count: int = 2


@dataclass
class SubtaskChange:
    """A completed subtask, annotated in place during detection."""
    line: int
    original_line: str
    new_text: str


@dataclass
class ParentBlockChange:
    """A completed parent whose checkbox descendants are all complete."""
    line: int
    original_line: str
    block_text: str
    line_count: int
    block_end: int


@dataclass
class ChangeSet:
    """Output of the change detector."""
    individual: List[IndividualChange] = field(default_factory=list)
    subtasks: List[SubtaskChange] = field(default_factory=list)
    parent_blocks: List[ParentBlockChange] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.individual or self.subtasks or self.parent_blocks)

    @property
    def has_relocations(self) -> bool:
        return bool(self.individual or self.parent_blocks)


@dataclass
class TaskToMove:
    """A task scheduled for removal and re-insertion."""
    kind: str  # "individual" or "with_subtasks"
    line: int
    span_end: int  # last line removed from the original position
    text: str
    original_line: str
    line_count: int

    @property
    def span_length(self) -> int:
        return self.span_end - self.line + 1


@dataclass
class CycleResult:
    """Outcome of one relocation cycle or section clear."""
    status: str  # "moved", "timestamped", "no_changes", "cleared", "already_empty", "no_section"
    message: str
    moved: int = 0
    timestamped: int = 0
    insertion_line: Optional[int] = None


@dataclass
class EditorSession:
    """Host-side editor state kept per note between requests."""
    note: str
    cursor: Cursor = field(default_factory=lambda: Cursor(0, 0))
    scroll: ScrollInfo = field(default_factory=ScrollInfo)
    view_mode: str = "source"  # "source" or "preview"


@dataclass
class QueueItem:
    """A debounced checkbox trigger waiting for its cycle."""
    request_id: str
    note: str
    line: int
    due_at: float  # time.monotonic() deadline
    queued_at: str
