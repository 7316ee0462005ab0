"""Unified diff parser: recover deleted line numbers per file.

Walks the output of ``git diff`` (as served by the GitHub diff media type)
and records, for every file block, which lines of the *original* file were
removed. Those line numbers are what the owner lookup works from: the people
who wrote the deleted lines have the most context on the change.
"""

from __future__ import annotations

import logging
import re

from mentionbot.schemas import FileChange

logger = logging.getLogger(__name__)

HEADER_RE = re.compile(r"^diff --git a/(.+) b/.+")
HUNK_RE = re.compile(r"^@@ -(\d+),?(\d+)? \+(\d+),?(\d+)? @@")


class MalformedDiffError(ValueError):
    """The input looked like a diff but broke its expected structure."""

    def __init__(self, message: str, line: str | None = None) -> None:
        super().__init__(f"{message}, instead got {line!r}" if line is not None else message)
        self.line = line


def parse_diff(diff_text: str) -> list[FileChange]:
    """Parse diff text into one ``FileChange`` per file block.

    Best effort on the outside: an empty response, or one that does not
    start with ``diff``, yields ``[]``. Once the text is recognized as a
    diff its structure must hold, otherwise ``MalformedDiffError`` is raised.
    """
    if not diff_text or not diff_text.startswith("diff"):
        return []

    lines = diff_text.strip().split("\n")
    files: list[FileChange] = []
    pos = 0
    while pos < len(lines):
        change, pos = _parse_file_block(lines, pos)
        files.append(change)

    logger.debug("Parsed %d file block(s) from diff", len(files))
    return files


def _parse_file_block(lines: list[str], pos: int) -> tuple[FileChange, int]:
    """Parse the block starting at ``lines[pos]``; return it and the next position."""
    # diff --git a/path b/path
    line = lines[pos]
    match = HEADER_RE.match(line)
    if not match:
        raise MalformedDiffError("Invalid line, should start with `diff --git a/`", line)
    path = match.group(1)
    pos += 1

    while pos < len(lines):
        line = lines[pos]
        if line.startswith("diff --git"):
            return FileChange(path=path), pos
        if line.startswith("Binary files"):
            # Binary files (mostly images) carry no line history.
            return FileChange(path=path), _skip_to_next_block(lines, pos + 1)
        if line.startswith("--- "):
            pos += 1
            # +++ path
            if pos >= len(lines) or not lines[pos].startswith("+++ "):
                raise MalformedDiffError(
                    "Invalid line, should start with `+++`",
                    lines[pos] if pos < len(lines) else None,
                )
            deleted, pos = _parse_hunks(lines, pos + 1)
            return FileChange(path=path, deleted_lines=deleted), pos
        # index, new file mode, similarity index, rename from ...
        pos += 1

    # Ran out of input: a rename or mode-only change has no body.
    return FileChange(path=path), pos


def _parse_hunks(lines: list[str], pos: int) -> tuple[list[int], int]:
    deleted: list[int] = []
    current_line = 0
    while pos < len(lines):
        line = lines[pos]
        if line.startswith("diff --git"):
            break
        pos += 1

        # @@ -from_line,from_count +to_line,to_count @@ first line
        if line.startswith("@@"):
            match = HUNK_RE.match(line)
            if match:
                current_line = int(match.group(1))
            continue

        if line.startswith("-"):
            deleted.append(current_line)
        if not line.startswith("+"):
            current_line += 1
    return deleted, pos


def _skip_to_next_block(lines: list[str], pos: int) -> int:
    while pos < len(lines) and not lines[pos].startswith("diff --git"):
        pos += 1
    return pos
