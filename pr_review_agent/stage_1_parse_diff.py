"""
Stage 1: Parse Diff - PR Review Agent

PURPOSE:
    Turn the raw unified diff of a pull request into an ordered list of
    FileChange records, each holding its hunks in diff order. Every hunk keeps
    two views of itself:
      - raw_content: the hunk header and body lines as written in the diff,
        which Stage 2 embeds in the prompt for the model to read
      - changes: a typed, line-numbered view (AddedLine / RemovedLine /
        ContextLine) used for coordinate work in Stages 2 and 5

    This module also owns the glob-based path exclusion that runs between
    parsing and analysis.

CALLED BY:
    review_pipeline_main.py - passes the diff text fetched by Stage 6.

DEPENDS ON:
    - unidiff (PatchSet) for the actual unified-diff grammar

DESIGN DECISIONS:
    - A file whose destination is /dev/null is a deletion. We keep it in the
      output with path=None rather than dropping it here, so callers can still
      count it, but no later stage will ever build a prompt for it.
    - A structurally invalid diff raises DiffParseError. We never hand back a
      partial parse as if it were the whole pull request.
    - LineChange.content is the diff line as written, including its leading
      "+", "-" or " " marker, so the restated lines in the prompt read exactly
      like the diff the model just saw.
    - Exclusion uses fnmatch. Unlike minimatch, "*" also matches "/", so
      "dist/*" excludes nested files under dist/ too.
"""

import fnmatch
import logging
from typing import Optional

from unidiff import PatchSet
from unidiff.errors import UnidiffParseError

from .errors import DiffParseError
from .models import AddedLine, ContextLine, FileChange, Hunk, RemovedLine

logger = logging.getLogger(__name__)

DEV_NULL = "/dev/null"


def parse_unified_diff(diff_text: str) -> list:
    """
    Parse unified-diff text into FileChange records.

    This is the ONLY public parsing function in this file. The result preserves
    the diff's file order and each file's hunk order, and re-parsing the same
    text always yields equal records.

    Args:
        diff_text: The complete diff of the pull request, as returned by the
                   GitHub API with the "diff" media type.

    Returns:
        list[FileChange]

    Raises:
        DiffParseError: the text is blank, contains no file sections, or is
                        rejected by the unified-diff grammar.
    """
    if not diff_text or not diff_text.strip():
        raise DiffParseError("Diff text is empty")

    try:
        patch_set = PatchSet(diff_text)
    except UnidiffParseError as e:
        raise DiffParseError(f"Invalid unified diff: {e}") from e

    if len(patch_set) == 0:
        raise DiffParseError("Diff text contains no file sections")

    # unidiff numbers lines by splitting on "\n" only
    diff_lines = diff_text.split("\n")

    file_changes = []
    for patched_file in patch_set:
        destination = _destination_path(patched_file)
        hunks = tuple(_convert_hunk(hunk, diff_lines) for hunk in patched_file)
        file_changes.append(
            FileChange(
                path=destination,
                hunks=hunks,
                source_path=_strip_prefix(patched_file.source_file, "a/"),
            )
        )

    logger.debug(
        "Parsed diff into %d files (%d hunks)",
        len(file_changes),
        sum(len(f.hunks) for f in file_changes),
    )
    return file_changes


def parse_exclude_patterns(raw: Optional[str]) -> list:
    """Split the comma-separated `exclude` input into trimmed glob patterns."""
    if not raw:
        return []
    return [p.strip() for p in raw.split(",") if p.strip()]


def filter_excluded_files(file_changes: list, exclude_patterns: list) -> list:
    """
    Drop every FileChange whose destination path matches an exclusion glob.

    A deleted file is matched against the empty string, so it survives the
    filter (unless a pattern matches "") and is skipped later by the
    orchestrator instead.
    """
    patterns = [p for p in exclude_patterns if p]
    if not patterns:
        return list(file_changes)

    kept = []
    for file_change in file_changes:
        path = file_change.path or ""
        if any(fnmatch.fnmatch(path, pattern) for pattern in patterns):
            logger.debug("Excluding %s", path)
            continue
        kept.append(file_change)
    return kept


# ---------------------------------------------------------------------------
# PRIVATE HELPER FUNCTIONS
# ---------------------------------------------------------------------------


def _destination_path(patched_file) -> Optional[str]:
    target = patched_file.target_file or ""
    if patched_file.is_removed_file or target == DEV_NULL:
        return None
    return _strip_prefix(target, "b/")


def _strip_prefix(path: Optional[str], prefix: str) -> Optional[str]:
    if not path or path == DEV_NULL:
        return None
    if path.startswith(prefix):
        return path[len(prefix):]
    return path


def _hunk_header(hunk, diff_lines: list) -> str:
    """
    Return the "@@ ... @@" line exactly as the diff wrote it.

    unidiff only keeps the parsed numbers, which turns "@@ -1 +1 @@" into
    "@@ -1,1 +1,1 @@". The header is the diff line right before the hunk's
    first body line (diff_line_no is 1-based).
    """
    first_line_no = hunk[0].diff_line_no if len(hunk) else None
    if first_line_no is not None and 2 <= first_line_no <= len(diff_lines) + 1:
        candidate = diff_lines[first_line_no - 2]
        if candidate.startswith("@@"):
            return candidate

    # empty hunk: nothing to anchor on, rebuild from the parsed numbers
    header = (
        f"@@ -{hunk.source_start},{hunk.source_length} "
        f"+{hunk.target_start},{hunk.target_length} @@"
    )
    if hunk.section_header:
        header = f"{header} {hunk.section_header}"
    return header


def _convert_hunk(hunk, diff_lines: list) -> Hunk:
    """
    Convert a unidiff hunk into our Hunk record.

    "\\ No newline at end of file" markers are kept in raw_content (they are
    part of the diff text) but are not line changes.
    """
    changes = []
    for line in hunk:
        content = line.line_type + line.value.rstrip("\r\n")
        if line.is_added:
            changes.append(AddedLine(new_line=line.target_line_no, content=content))
        elif line.is_removed:
            changes.append(RemovedLine(old_line=line.source_line_no, content=content))
        elif line.is_context:
            changes.append(
                ContextLine(
                    old_line=line.source_line_no,
                    new_line=line.target_line_no,
                    content=content,
                )
            )

    header = _hunk_header(hunk, diff_lines)
    body = "".join(str(line) for line in hunk)

    return Hunk(
        raw_content=f"{header}\n{body}".rstrip("\n"),
        changes=tuple(changes),
        source_start=hunk.source_start,
        source_length=hunk.source_length,
        target_start=hunk.target_start,
        target_length=hunk.target_length,
    )
