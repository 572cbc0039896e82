"""
Stage 5: Map Review Comments - PR Review Agent

PURPOSE:
    Turn the RawModelComment list from Stage 4 into ReviewComment records that
    are anchored to a real file path and a validated line number, ready for
    the GitHub review call in Stage 6.

CALLED BY:
    review_pipeline_main.py - once per hunk, after Stage 4.

POLICY:
    - A file without a destination path (deleted) yields nothing.
    - A failed interpretation (None) yields nothing.
    - The model's lineNumber must be a base-10 positive integer. Anything else
      ("abc", "", "0", "-3", "12.5") drops that entry. It is never coerced to 0.
    - Blank comment bodies are dropped; GitHub rejects them anyway.
    - Every RawModelComment produces at most one ReviewComment. Nothing is
      merged, reordered, or deduplicated.

DESIGN DECISIONS:
    - By default we trust the line number the model declares and do not check
      it against the hunk. The prompt restates every line with its number, so
      the number is usually right, but a hallucinated or off-by-one value will
      be posted as-is (and GitHub may reject the whole review for it).
    - restrict_to_hunk=True closes that gap: only lines the hunk actually shows
      on the new side (added or context lines) are accepted.
"""

import logging
import re
from typing import Optional

from .models import FileChange, Hunk, ReviewComment

logger = logging.getLogger(__name__)

_LINE_NUMBER_RE = re.compile(r"[0-9]+")


def map_review_comments(
    file_change: FileChange,
    hunk: Hunk,
    raw_comments: Optional[list],
    restrict_to_hunk: bool = False,
) -> list:
    """
    Anchor the model's comments for one hunk to file/line coordinates.

    Args:
        file_change: The file the hunk belongs to
        hunk: The hunk the model reviewed
        raw_comments: Output of Stage 4 (None when interpretation failed)
        restrict_to_hunk: Drop comments whose line is not a new-side line of
                          the hunk

    Returns:
        list[ReviewComment], in the model's order.
    """
    if not file_change.path or not raw_comments:
        return []

    allowed_lines = hunk.new_side_lines() if restrict_to_hunk else None

    comments = []
    for raw in raw_comments:
        line = _parse_line_number(raw.line_number)
        if line is None:
            logger.debug(
                "Dropping comment for %s with unusable line number %r",
                file_change.path,
                raw.line_number,
            )
            continue

        if allowed_lines is not None and line not in allowed_lines:
            logger.debug(
                "Dropping comment for %s:%d, line is outside the hunk",
                file_change.path,
                line,
            )
            continue

        if not raw.review_comment.strip():
            continue

        comments.append(
            ReviewComment(path=file_change.path, line=line, body=raw.review_comment)
        )

    return comments


def _parse_line_number(value: Optional[str]) -> Optional[int]:
    text = (value or "").strip()
    if not _LINE_NUMBER_RE.fullmatch(text):
        return None
    line = int(text)
    return line if line > 0 else None
