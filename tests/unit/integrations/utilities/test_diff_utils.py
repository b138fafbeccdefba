"""Tests for diff utilities."""

from __future__ import annotations

from taskpilot.integrations.utilities.diff_utils import create_patch


class TestCreatePatch:
    def test_no_file_headers(self) -> None:
        patch = create_patch("a\n", "b\n")
        assert patch.startswith("@@")
        assert "+++" not in patch
        assert "-a\n" in patch
        assert "+b\n" in patch

    def test_new_file(self) -> None:
        patch = create_patch("", "line1\nline2\n")
        assert patch.startswith("@@ -0,0 +1,2 @@")
        assert "+line1\n+line2\n" in patch

    def test_no_changes(self) -> None:
        assert create_patch("same\n", "same\n") == ""

    def test_removed_line_that_looks_like_header(self) -> None:
        patch = create_patch("-- comment\nkeep\n", "keep\n")
        assert patch == "@@ -1,2 +1 @@\n--- comment\n keep\n"

    def test_missing_trailing_newline(self) -> None:
        assert create_patch("hello", "world") == "@@ -1 +1 @@\n-hello\n+world\n"

    def test_separate_hunks(self) -> None:
        old = "".join(f"{i}\n" for i in range(20))
        new = old.replace("2\n", "two\n", 1).replace("17\n", "seventeen\n")
        patch = create_patch(old, new)
        assert patch.count("@@ -") == 2
        assert "-2\n+two\n" in patch
        assert "-17\n+seventeen\n" in patch

    def test_context_lines(self) -> None:
        patch = create_patch("a\nb\nc\n", "a\nB\nc\n", context_lines=0)
        assert patch == "@@ -2 +2 @@\n-b\n+B\n"
