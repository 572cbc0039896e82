"""
Data Model - PR Review Agent

PURPOSE:
    The records that flow between the pipeline stages. Everything derived from
    the diff (FileChange, Hunk, the LineChange variants) is built once by
    Stage 1 and never mutated afterwards, so all of them are frozen dataclasses.

DESIGN DECISIONS:
    - A diff line is a tagged variant (AddedLine / RemovedLine / ContextLine)
      instead of one record with two optional line numbers. Each variant only
      carries the line numbers that are always valid for it, so there is no
      "is new_line None here?" question when Stage 5 anchors a comment.
    - RawModelComment keeps the model's line number as text. It is untrusted
      until Stage 5 turns it into a ReviewComment with a validated int line.
    - ReviewComment is the only record that crosses into the GitHub review
      call; to_api_dict() produces exactly the shape the REST API expects.
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class AddedLine:
    new_line: int
    content: str

    @property
    def kind(self) -> str:
        return "added"

    @property
    def display_line(self) -> int:
        return self.new_line


@dataclass(frozen=True)
class RemovedLine:
    old_line: int
    content: str

    @property
    def kind(self) -> str:
        return "removed"

    @property
    def display_line(self) -> int:
        return self.old_line


@dataclass(frozen=True)
class ContextLine:
    old_line: int
    new_line: int
    content: str

    @property
    def kind(self) -> str:
        return "context"

    @property
    def display_line(self) -> int:
        return self.new_line


LineChange = Union[AddedLine, RemovedLine, ContextLine]


@dataclass(frozen=True)
class Hunk:
    """One contiguous region of a file's diff; the unit a prompt is built for."""

    raw_content: str
    changes: tuple
    source_start: int = 0
    source_length: int = 0
    target_start: int = 0
    target_length: int = 0

    def new_side_lines(self) -> frozenset:
        """Line numbers in the new file that this hunk shows (added or context)."""
        return frozenset(
            change.new_line
            for change in self.changes
            if isinstance(change, (AddedLine, ContextLine))
        )


@dataclass(frozen=True)
class FileChange:
    """
    One file in the diff.

    path is the destination path. It is None when the destination is
    /dev/null, i.e. the file was deleted by the pull request.
    """

    path: Optional[str]
    hunks: tuple = ()
    source_path: Optional[str] = None

    @property
    def is_deleted(self) -> bool:
        return not self.path


@dataclass(frozen=True)
class PullRequestContext:
    owner: str
    repo: str
    number: int
    title: str
    description: str


@dataclass(frozen=True)
class RawModelComment:
    line_number: str
    review_comment: str


@dataclass(frozen=True)
class ReviewComment:
    path: str
    line: int
    body: str

    def to_api_dict(self) -> dict:
        return {"path": self.path, "line": self.line, "body": self.body}
