import pytest

from pr_review_agent.errors import DiffParseError
from pr_review_agent.models import AddedLine, ContextLine, FileChange, RemovedLine
from pr_review_agent.stage_1_parse_diff import (
    filter_excluded_files,
    parse_exclude_patterns,
    parse_unified_diff,
)
from tests.fakes import APP_DIFF, DELETED_DIFF, NEW_FILE_DIFF


def test_parses_files_and_hunks_in_order():
    files = parse_unified_diff(APP_DIFF + NEW_FILE_DIFF)
    assert [f.path for f in files] == ["src/app.py", "docs/new.md"]
    assert len(files[0].hunks) == 2
    assert len(files[1].hunks) == 1


def test_line_changes_are_typed_with_their_line_numbers():
    hunk = parse_unified_diff(APP_DIFF)[0].hunks[0]
    assert hunk.changes == (
        ContextLine(old_line=1, new_line=1, content=" import os"),
        RemovedLine(old_line=2, content="-import sys"),
        AddedLine(new_line=2, content="+import json"),
        AddedLine(new_line=3, content="+import logging"),
        ContextLine(old_line=3, new_line=4, content=" CONSTANT = 1"),
        ContextLine(old_line=4, new_line=5, content=" def main():"),
    )
    assert [c.kind for c in hunk.changes] == [
        "context", "removed", "added", "added", "context", "context",
    ]


def test_hunk_keeps_raw_text_and_ranges():
    hunk = parse_unified_diff(APP_DIFF)[0].hunks[1]
    assert hunk.raw_content.splitlines() == [
        "@@ -10,3 +11,4 @@ def main():",
        "     value = compute()",
        "     print(value)",
        "+    return value",
        " # end",
    ]
    assert (hunk.source_start, hunk.source_length) == (10, 3)
    assert (hunk.target_start, hunk.target_length) == (11, 4)
    assert hunk.new_side_lines() == frozenset({11, 12, 13, 14})


def test_hunk_header_without_counts_is_kept_verbatim():
    diff = APP_DIFF + (
        "--- a/n.txt\n"
        "+++ b/n.txt\n"
        "@@ -1 +1 @@ intro\n"
        "-old\n"
        "+new\n"
    )
    hunk = parse_unified_diff(diff)[1].hunks[0]
    assert hunk.raw_content == "@@ -1 +1 @@ intro\n-old\n+new"
    assert (hunk.source_start, hunk.source_length) == (1, 1)
    assert (hunk.target_start, hunk.target_length) == (1, 1)


def test_deleted_file_has_no_destination_path():
    files = parse_unified_diff(DELETED_DIFF)
    assert len(files) == 1
    assert files[0].path is None
    assert files[0].is_deleted
    assert files[0].source_path == "old.txt"
    assert all(isinstance(c, RemovedLine) for c in files[0].hunks[0].changes)


def test_new_file_keeps_destination_path():
    new_file = parse_unified_diff(NEW_FILE_DIFF)[0]
    assert new_file.path == "docs/new.md"
    assert new_file.source_path is None
    assert [c.new_line for c in new_file.hunks[0].changes] == [1, 2]


def test_parsing_is_deterministic():
    text = APP_DIFF + DELETED_DIFF + NEW_FILE_DIFF
    assert parse_unified_diff(text) == parse_unified_diff(text)


def test_no_newline_marker_is_not_a_line_change():
    diff = (
        "--- a/n.txt\n"
        "+++ b/n.txt\n"
        "@@ -1 +1 @@\n"
        "-old\n"
        "\\ No newline at end of file\n"
        "+new\n"
        "\\ No newline at end of file\n"
    )
    hunk = parse_unified_diff(diff)[0].hunks[0]
    assert hunk.changes == (
        RemovedLine(old_line=1, content="-old"),
        AddedLine(new_line=1, content="+new"),
    )
    assert "No newline at end of file" in hunk.raw_content


@pytest.mark.parametrize("text", ["", "   \n"])
def test_blank_diff_is_rejected(text):
    with pytest.raises(DiffParseError):
        parse_unified_diff(text)


def test_text_without_file_sections_is_rejected():
    with pytest.raises(DiffParseError):
        parse_unified_diff("this is not a diff\n")


def test_malformed_hunk_is_rejected():
    diff = (
        "--- a/x.py\n"
        "+++ b/x.py\n"
        "@@ -1,2 +1,2 @@\n"
        "-a\n"
        "*garbage\n"
    )
    with pytest.raises(DiffParseError):
        parse_unified_diff(diff)


def test_parse_exclude_patterns_trims_and_drops_blanks():
    assert parse_exclude_patterns(" *.md, dist/** ,, ") == ["*.md", "dist/**"]
    assert parse_exclude_patterns("") == []
    assert parse_exclude_patterns(None) == []


def test_filter_excluded_files_matches_destination_path():
    files = [
        FileChange(path="README.md"),
        FileChange(path="src/app.py"),
        FileChange(path="dist/bundle/app.js"),
        FileChange(path=None, source_path="gone.py"),
    ]
    kept = filter_excluded_files(files, ["*.md", "dist/*"])
    assert [f.path for f in kept] == ["src/app.py", None]


def test_filter_without_patterns_keeps_everything():
    files = [FileChange(path="a.py"), FileChange(path="b.py")]
    assert filter_excluded_files(files, []) == files
    assert filter_excluded_files(files, [""]) == files
