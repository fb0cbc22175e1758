"""Unit tests for revise_scheduler.taskline."""

from datetime import date

import pytest

from revise_scheduler.stages import CLASSIC_LADDER, SPACED_LADDER
from revise_scheduler.taskline import parse_task_line


def _parse(line, ladder=SPACED_LADDER):
    task = parse_task_line(line, ladder)
    assert task is not None
    return task


# ---------------------------------------------------------------------------
# Checkbox prefix
# ---------------------------------------------------------------------------


class TestPrefix:
    @pytest.mark.parametrize(
        "line",
        [
            "Plain prose #revise",
            "* [x] star bullets are not task lines here #revise",
            "- [x]",
            "",
        ],
    )
    def test_non_task_lines(self, line):
        assert parse_task_line(line, SPACED_LADDER) is None

    def test_dash_item(self):
        task = _parse("- [x] Read")
        assert task.checked
        assert task.open_prefix == "- [ ] "
        assert task.body == "Read"

    def test_numbered_item_keeps_style(self):
        task = _parse("  12. [X] Read")
        assert task.checked
        assert task.open_prefix == "  12. [ ] "

    def test_open_item_not_checked(self):
        assert not _parse("- [ ] Read").checked

    def test_other_state_not_checked(self):
        assert not _parse("- [/] In progress").checked


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


class TestTokens:
    def test_token_kinds_in_order(self):
        task = _parse("- [x] Read #revise_7 📅 2024-03-01 ➕ 2024-01-01 ✅ 2024-03-02 #nextscheduled")
        assert [t.kind for t in task.tokens] == ["stage", "due", "created", "done", "sentinel"]

    def test_values(self):
        task = _parse("- [x] Read #repeat_12 ⏳ 2024-03-01 ✅ 2024-03-02")
        assert task.values("repeat") == ["12"]
        assert task.values("due") == ["2024-03-01"]
        assert task.values("done") == ["2024-03-02"]

    def test_every_stage_occurrence_found(self):
        task = _parse("- [x] #revise then #revise_90 and #REVISE_7")
        assert task.values("stage") == ["#revise", "#revise_90", "#REVISE_7"]

    @pytest.mark.parametrize("tag", ["#revise_70", "#revise-notes", "#revised", "#revise/sub", "x#revise"])
    def test_lookalike_tags_ignored(self, tag):
        assert _parse(f"- [x] Read {tag}").values("stage") == []

    def test_stage_set_follows_ladder(self):
        assert _parse("- [x] #revise_365", CLASSIC_LADDER).values("stage") == []
        assert _parse("- [x] #revise_365", SPACED_LADDER).values("stage") == ["#revise_365"]

    def test_repeat_requires_digits(self):
        assert _parse("- [x] #repeat_abc #repeat_").values("repeat") == []

    def test_repeat_count_limited_to_nine_digits(self):
        assert _parse("- [x] #repeat_123456789").values("repeat") == ["123456789"]
        assert _parse("- [x] #repeat_1234567890").values("repeat") == []

    def test_glyph_without_space(self):
        task = _parse("- [x] Read ✅2024-03-02📅2024-03-09")
        assert task.values("done") == ["2024-03-02"]
        assert task.values("due") == ["2024-03-09"]

    def test_glyph_with_variation_selector(self):
        task = _parse("- [x] Read ⏳\ufe0f 2024-03-09")
        assert task.values("due") == ["2024-03-09"]
        assert task.text == "Read"

    def test_sentinel_case_insensitive(self):
        assert _parse("- [x] Read #NextScheduled").has_sentinel

    def test_sentinel_lookalike(self):
        assert not _parse("- [x] Read #nextscheduled_later").has_sentinel


# ---------------------------------------------------------------------------
# Completion date, block reference, remaining text
# ---------------------------------------------------------------------------


class TestDerivedFields:
    def test_completion_date(self):
        assert _parse("- [x] Read ✅ 2023-01-01").completion_date == date(2023, 1, 1)

    def test_invalid_completion_date_ignored(self):
        assert _parse("- [x] Read ✅ 2023-02-30").completion_date is None

    def test_no_completion_date(self):
        assert _parse("- [x] Read").completion_date is None

    def test_block_reference(self):
        line = "- [x] Read #revise ^abc123"
        task = _parse(line)
        assert task.block_id == "abc123"
        assert line[task.block_start :] == " ^abc123"
        assert "^abc123" not in task.body

    def test_caret_mid_line_is_not_block_reference(self):
        task = _parse("- [x] Compute 2^10 today")
        assert task.block_id is None

    def test_text_keeps_unrelated_tags_and_prose(self):
        task = _parse("- [x] Read #book #revise #topic/math ✅ 2023-01-01 ^id-1")
        assert task.text == "Read #book #topic/math"

    def test_text_when_only_tokens(self):
        assert _parse("- [x] #revise ✅ 2023-01-01").text == ""
