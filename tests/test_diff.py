"""Tests for rewrite.diff — line diffs, reconstruction and unified rendering."""

import pytest

from rewrite.diff import TextDiff, apply, diff, render

OLD = "a\nb\nc\n"
NEW = "a\nB\nc\n"


def _lines(n, changed=()):
    return "".join(
        (f"line {i} changed\n" if i in changed else f"line {i}\n") for i in range(1, n + 1)
    )


def _lcs_length(a, b):
    table = [[0] * (len(b) + 1) for _ in range(len(a) + 1)]
    for i, left in enumerate(a):
        for j, right in enumerate(b):
            if left == right:
                table[i + 1][j + 1] = table[i][j] + 1
            else:
                table[i + 1][j + 1] = max(table[i][j + 1], table[i + 1][j])
    return table[-1][-1]


# ---------------------------------------------------------------------------
# diff / apply
# ---------------------------------------------------------------------------


class TestDiff:
    """Tests for diff()."""

    def test_identical_texts_have_no_hunks(self):
        result = diff(OLD, OLD)
        assert result.hunks == ()
        assert result.old_count == result.new_count == 3
        assert not result.changed

    def test_counts_lines(self):
        result = diff("a\n", "a\nb\nc")
        assert (result.old_count, result.new_count) == (1, 3)

    def test_replace_hunk(self):
        result = diff(OLD, NEW)
        tags = [h.tag for h in result.hunks]
        assert tags == ["equal", "replace", "equal"]
        replace = result.hunks[1]
        assert replace.old_lines == ("b\n",)
        assert replace.new_lines == ("B\n",)
        assert (replace.old_start, replace.new_start) == (1, 1)

    def test_missing_trailing_newline_is_a_change(self):
        assert diff("a\n", "a").changed

    def test_deterministic(self):
        assert diff(OLD, NEW) == diff(OLD, NEW)

    @pytest.mark.parametrize(
        "old, new",
        [
            ("c\na\nb\na\nb\nb\nc\n", "a\nc\nb\nb\nb\n"),
            ("a\nb\nc\na\nb\nb\na\n", "c\nb\na\nb\na\nc\n"),
            ("x\n" * 5 + "y\n", "y\n" + "x\n" * 5),
            (_lines(12), _lines(12, changed={1, 5, 6, 11})),
        ],
    )
    def test_equal_lines_form_longest_common_subsequence(self, old, new):
        result = diff(old, new)
        kept = sum(len(h.old_lines) for h in result.hunks if h.tag == "equal")
        assert kept == _lcs_length(old.splitlines(), new.splitlines())
        assert apply(old, result) == new

    def test_equal_hunks_match_both_sides(self):
        for hunk in diff("c\na\nb\na\nb\nb\nc\n", "a\nc\nb\nb\nb\n").hunks:
            if hunk.tag == "equal":
                assert hunk.old_lines == hunk.new_lines

    def test_pure_insert_and_delete(self):
        assert [h.tag for h in diff("", "x\ny\n").hunks] == ["insert"]
        assert [h.tag for h in diff("x\ny\n", "").hunks] == ["delete"]


class TestApply:
    """Tests for apply()."""

    @pytest.mark.parametrize(
        "old, new",
        [
            (OLD, NEW),
            ("", "x\ny\n"),
            ("x\ny\n", ""),
            ("a\nb\nc\nd\n", "b\nd\ne"),
            (_lines(30), _lines(30, changed={2, 17, 29})),
        ],
    )
    def test_reconstructs_new_text(self, old, new):
        assert apply(old, diff(old, new)) == new

    def test_no_hunks_returns_old(self):
        assert apply(OLD, diff(OLD, OLD)) == OLD

    def test_wrong_line_count_raises(self):
        with pytest.raises(ValueError, match="expects 3 old lines"):
            apply("a\n", diff(OLD, NEW))

    def test_mismatched_text_raises(self):
        with pytest.raises(ValueError, match="does not match"):
            apply("x\ny\nz\n", diff(OLD, NEW))


# ---------------------------------------------------------------------------
# render
# ---------------------------------------------------------------------------


class TestRender:
    """Tests for render()."""

    def test_unified_output(self):
        assert render(diff(OLD, NEW)) == "@@ -1,3 +1,3 @@\n a\n-b\n+B\n c\n"

    def test_no_hunks_renders_empty(self):
        assert render(diff(OLD, OLD)) == ""
        assert render(TextDiff()) == ""

    def test_labels(self):
        rendered = render(diff(OLD, NEW), labels=("a.ex", "b.ex"))
        assert rendered.startswith("--- a.ex\n+++ b.ex\n@@ ")

    def test_colorizer_sees_every_line(self):
        calls = []

        def colorize(kind, text):
            calls.append(kind)
            return f"<{kind}>{text}"

        rendered = render(diff(OLD, NEW), colorizer=colorize)
        assert calls == ["header", "equal", "delete", "insert", "equal"]
        assert "<delete>-b" in rendered

    def test_distant_changes_get_separate_headers(self):
        text_diff = diff(_lines(20), _lines(20, changed={2, 18}))
        assert render(text_diff, context_lines=1).count("@@ -") == 2
        assert render(text_diff, context_lines=10).count("@@ -") == 1

    def test_context_is_bounded(self):
        rendered = render(diff(_lines(20), _lines(20, changed={10})), context_lines=2)
        body = [line for line in rendered.splitlines() if line.startswith(" ")]
        assert body == [" line 8", " line 9", " line 11", " line 12"]

    def test_zero_context(self):
        rendered = render(diff(OLD, NEW), context_lines=0)
        assert rendered == "@@ -2 +2 @@\n-b\n+B\n"

    def test_negative_context_raises(self):
        with pytest.raises(ValueError):
            render(diff(OLD, NEW), context_lines=-1)
