"""Tests for the two-pass change detector."""

from services.buffer import DocumentBuffer
from services.detector import detect_checkbox_changes

from tests.conftest import STAMP

MIXED_NOTE = "\n".join([
    "# Tasks",                  # 0
    "- [x] Buy milk",           # 1
    "- [ ] Walk dog",           # 2
    "- [x] Ship feature",       # 3
    "    - [x] Design",         # 4
    "    - [x] Implement",      # 5
    "- [x] Plan trip",          # 6
    "    - [x] Book hotel",     # 7
    "    - [ ] Book flight",    # 8
])


class TestDetectCheckboxChanges:
    """Classification of every checkbox line outside the archive section."""

    def test_mixed_note(self, settings, now):
        buf = DocumentBuffer(MIXED_NOTE)
        changes = detect_checkbox_changes(buf, settings, now=now)

        assert [c.line for c in changes.individual] == [1]
        assert [c.line for c in changes.parent_blocks] == [3]
        assert [c.line for c in changes.subtasks] == [7]

    def test_individual_text_has_marker_line(self, settings, now):
        changes = detect_checkbox_changes(DocumentBuffer("- [x] Buy milk"), settings, now=now)
        assert changes.individual[0].text == f"- [x] Buy milk\n{STAMP}"
        assert changes.individual[0].line_count == 2

    def test_parent_block_text(self, settings, now):
        changes = detect_checkbox_changes(DocumentBuffer(MIXED_NOTE), settings, now=now)
        block = changes.parent_blocks[0]
        assert block.block_text == "\n".join([
            "- [x] Ship feature",
            "    - [x] Design",
            "    - [x] Implement",
            STAMP,
        ])
        assert block.line_count == 4
        assert block.block_end == 5

    def test_parent_with_marker_gets_no_extra_line(self, settings, now):
        note = f"- [x] Ship {STAMP}\n    - [x] Design"
        block = detect_checkbox_changes(DocumentBuffer(note), settings, now=now).parent_blocks[0]
        assert block.line_count == 2

    def test_subtask_annotated_in_place(self, settings, now):
        buf = DocumentBuffer(MIXED_NOTE)
        detect_checkbox_changes(buf, settings, now=now)
        assert buf.get_line(7) == f"    - [x] Book hotel {STAMP}"
        assert buf.line_count() == 9

    def test_reserved_block_lines_not_annotated(self, settings, now):
        buf = DocumentBuffer(MIXED_NOTE)
        detect_checkbox_changes(buf, settings, now=now)
        assert buf.get_line(4) == "    - [x] Design"

    def test_incomplete_parent_left_untouched(self, settings, now):
        note = "- [x] Plan trip\n    - [ ] Book flight"
        buf = DocumentBuffer(note)
        changes = detect_checkbox_changes(buf, settings, now=now)
        assert not changes.has_changes
        assert buf.get_value() == note

    def test_unchecked_parent_only_annotates_child(self, settings, now):
        note = "\n".join([
            "- [ ] Ship feature",
            f"    - [x] Design {STAMP}",
            "    - [x] Implement",
        ])
        buf = DocumentBuffer(note)
        changes = detect_checkbox_changes(buf, settings, now=now)
        assert not changes.has_relocations
        assert [c.line for c in changes.subtasks] == [2]
        assert buf.get_line(0) == "- [ ] Ship feature"

    def test_subtask_with_icon_is_skipped(self, settings, now):
        changes = detect_checkbox_changes(DocumentBuffer("- [ ] P\n    - [x] a ✅"), settings, now=now)
        assert not changes.subtasks

    def test_tagged_individual_is_skipped(self, settings, now):
        changes = detect_checkbox_changes(DocumentBuffer(f"- [x] a {STAMP}"), settings, now=now)
        assert not changes.has_changes

    def test_reminder_line_is_skipped(self, settings, now):
        changes = detect_checkbox_changes(DocumentBuffer("- [x] Call 🔔 2024-01-01 09:30"), settings, now=now)
        assert not changes.has_changes

    def test_archive_section_is_excluded(self, settings, now):
        note = "\n".join([
            "- [ ] open",
            "",
            "## Completed Tasks",
            "---",
            "- [x] done",
            "    - [x] child",
        ])
        changes = detect_checkbox_changes(DocumentBuffer(note), settings, now=now)
        assert not changes.has_changes

    def test_nested_notes_make_an_individual_task(self, settings, now):
        # Plain nested content is not a subtask; the task moves alone
        changes = detect_checkbox_changes(DocumentBuffer("- [x] P\n    a note"), settings, now=now)
        assert [c.line for c in changes.individual] == [0]
        assert not changes.parent_blocks

    def test_processed_keys_prevent_double_recording(self, settings, now):
        processed = set()
        buf = DocumentBuffer("- [x] a")
        detect_checkbox_changes(buf, settings, now=now, processed=processed)
        again = detect_checkbox_changes(buf, settings, now=now, processed=processed)
        assert not again.individual

    def test_blank_lines_dropped_from_block_text(self, settings, now):
        note = "- [x] P\n    - [x] a\n\n    - [x] b\nnext"
        block = detect_checkbox_changes(DocumentBuffer(note), settings, now=now).parent_blocks[0]
        assert block.block_text == f"- [x] P\n    - [x] a\n    - [x] b\n{STAMP}"
        assert block.line_count == 4
        assert block.block_end == 3

    def test_crlf_note_annotated_cleanly(self, settings, now):
        buf = DocumentBuffer("- [ ] P\r\n    - [x] a\r\n")
        detect_checkbox_changes(buf, settings, now=now)
        assert buf.get_value() == f"- [ ] P\n    - [x] a {STAMP}\n"
