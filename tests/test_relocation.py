"""Tests for moving completed tasks into the archive section."""

from models import ArchiveSettings, Cursor, ScrollInfo
from services.buffer import DocumentBuffer
from services.relocation import moved_message, process_note_editor, timestamp_message

from tests.conftest import STAMP
from tests.test_detector import MIXED_NOTE

OLD_STAMP = "✅ 2023-12-31 09:00:00"


class TestMessages:
    """Notice wording for each outcome."""

    def test_timestamp_messages(self):
        assert timestamp_message(1) == "✅ Timestamp added to 1 subtask"
        assert timestamp_message(3) == "✅ Timestamp added to 3 subtasks"

    def test_moved_messages(self):
        assert moved_message(1, 0) == "✅ 1 task moved to the end"
        assert moved_message(4, 0) == "✅ 4 tasks moved to the end"
        assert moved_message(2, 1) == "✅ 2 tasks moved and 1 subtasks timestamped"


class TestProcessNoteEditor:
    """One full detect-and-relocate cycle."""

    def test_mixed_note(self, settings, now):
        buf = DocumentBuffer(MIXED_NOTE, cursor=Cursor(2, 3))
        result = process_note_editor(buf, settings, now=now)

        assert result.status == "moved"
        assert result.moved == 2
        assert result.timestamped == 1
        assert result.message == "✅ 2 tasks moved and 1 subtasks timestamped"
        assert buf.snapshot() == [
            "# Tasks",
            "- [ ] Walk dog",
            "- [x] Plan trip",
            f"    - [x] Book hotel {STAMP}",
            "    - [ ] Book flight",
            "",
            "## Completed Tasks",
            "---",
            "- [x] Buy milk",
            STAMP,
            "- [x] Ship feature",
            "    - [x] Design",
            "    - [x] Implement",
            STAMP,
            "",
        ]
        # One line above the cursor was removed
        assert buf.get_cursor() == Cursor(1, 3)

    def test_second_run_is_a_no_op(self, settings, now):
        buf = DocumentBuffer(MIXED_NOTE)
        process_note_editor(buf, settings, now=now)
        before = buf.get_value()

        result = process_note_editor(buf, settings, now=now)
        assert result.status == "no_changes"
        assert buf.get_value() == before

    def test_cursor_shifts_by_removed_spans(self, settings, now):
        buf = DocumentBuffer("\n".join([
            "# T",
            "intro",
            "- [x] a",
            OLD_STAMP,
            "- [x] b",
            OLD_STAMP,
            "text",
            "- [x] c",
            OLD_STAMP,
            "more",
            "cursor line here",
            "tail",
        ]), cursor=Cursor(10, 5))

        process_note_editor(buf, settings, now=now)

        assert buf.get_cursor() == Cursor(4, 5)
        assert buf.get_line(4) == "cursor line here"

    def test_cursor_on_moved_task_snaps_to_content(self, settings, now):
        buf = DocumentBuffer("---\nautomove: true\n---\n- [x] Buy milk", cursor=Cursor(3, 2))
        process_note_editor(buf, settings, now=now)

        assert buf.snapshot() == [
            "---",
            "automove: true",
            "---",
            "",
            "## Completed Tasks",
            "---",
            "- [x] Buy milk",
            STAMP,
            "",
        ]
        assert buf.get_cursor() == Cursor(2, 3)

    def test_scroll_restored(self, settings, now):
        buf = DocumentBuffer(MIXED_NOTE, scroll=ScrollInfo(0, 240))
        process_note_editor(buf, settings, now=now)
        assert buf.get_scroll_info() == ScrollInfo(0, 240)

    def test_timestamp_only(self, settings, now):
        note = "\n".join([
            "- [ ] Ship feature",
            "    - [x] Design ✅ 2024-01-01 09:00:00",
            "    - [x] Implement",
        ])
        buf = DocumentBuffer(note, cursor=Cursor(2, 4))
        result = process_note_editor(buf, settings, now=now)

        assert result.status == "timestamped"
        assert result.message == "✅ Timestamp added to 1 subtask"
        assert buf.get_line(2) == f"    - [x] Implement {STAMP}"
        assert buf.get_cursor() == Cursor(2, 4)
        assert "## Completed Tasks" not in buf.get_value()

    def test_reminder_task_stays(self, settings, now):
        note = "- [x] Call mom 🔔 2024-01-01 09:30"
        buf = DocumentBuffer(note)
        assert process_note_editor(buf, settings, now=now).status == "no_changes"
        assert buf.get_value() == note

    def test_tagged_task_stays(self, settings, now):
        note = f"- [x] Already done {STAMP}"
        buf = DocumentBuffer(note)
        assert process_note_editor(buf, settings, now=now).status == "no_changes"
        assert buf.get_value() == note

    def test_archived_items_stay(self, settings, now):
        note = "# T\n\n## Completed Tasks\n---\n- [x] done\n    - [x] child\n"
        buf = DocumentBuffer(note)
        assert process_note_editor(buf, settings, now=now).status == "no_changes"
        assert buf.get_value() == note

    def test_tasks_stay_inside_section_before_next_heading(self, settings, now):
        buf = DocumentBuffer("\n".join([
            "- [x] a",
            "",
            "## Completed Tasks",
            "---",
            "- [x] old",
            OLD_STAMP,
            "## Notes",
        ]))
        process_note_editor(buf, settings, now=now)

        assert buf.snapshot() == [
            "",
            "## Completed Tasks",
            "---",
            "- [x] old",
            OLD_STAMP,
            "- [x] a",
            STAMP,
            "",
            "## Notes",
        ]
        again = process_note_editor(buf, settings, now=now)
        assert again.status == "no_changes"

    def test_section_not_created_when_disabled(self, now):
        settings = ArchiveSettings(create_section=False)
        buf = DocumentBuffer("- [x] a\n- [ ] b")
        process_note_editor(buf, settings, now=now)
        assert buf.snapshot() == ["- [ ] b", "- [x] a", STAMP, ""]

    def test_custom_icon_and_format(self, now):
        settings = ArchiveSettings(icon="✔", date_format="DD.MM.YYYY", section_title="## Done", add_separator=False)
        buf = DocumentBuffer("- [x] a\n- [ ] b")
        process_note_editor(buf, settings, now=now)
        assert buf.snapshot() == ["- [ ] b", "", "## Done", "- [x] a", "✔ 01.01.2024", "", ""]

    def test_block_with_blank_line_stays_contiguous(self, settings, now):
        buf = DocumentBuffer("\n".join([
            "- [x] Parent",
            "    - [x] A",
            "",
            "    - [x] B",
            "- [x] Solo",
        ]))
        process_note_editor(buf, settings, now=now)

        assert buf.snapshot() == [
            "",
            "",
            "## Completed Tasks",
            "---",
            "- [x] Parent",
            "    - [x] A",
            "    - [x] B",
            STAMP,
            "- [x] Solo",
            STAMP,
            "",
        ]
        before = buf.get_value()
        assert process_note_editor(buf, settings, now=now).status == "no_changes"
        assert buf.get_value() == before

    def test_section_ending_the_document(self, settings, now):
        buf = DocumentBuffer("\n".join([
            "- [x] a",
            "",
            "## Completed Tasks",
            "---",
            "- [x] old",
            OLD_STAMP,
        ]))
        process_note_editor(buf, settings, now=now)

        assert buf.snapshot() == [
            "",
            "## Completed Tasks",
            "---",
            "- [x] old",
            OLD_STAMP,
            "- [x] a",
            STAMP,
            "",
        ]
