"""Rank and trim the changed files before any owner lookups happen."""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field
from wcmatch import glob as wcglob

from mentionbot.schemas import FileChange

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Glob matching
# ---------------------------------------------------------------------------

GLOB_FLAGS = wcglob.GLOBSTAR | wcglob.CASE


def path_matches(path: str, pattern: str) -> bool:
    """Match a repo-relative path against a minimatch-style glob."""
    return wcglob.globmatch(path, pattern, flags=GLOB_FLAGS)


# ---------------------------------------------------------------------------
# Selection policy
# ---------------------------------------------------------------------------

class SelectionPolicy(BaseModel):
    """Which changed files are worth looking up owners for.

    Degenerate changes can touch hundreds of files. Looking at the few files
    with the most deleted lines is enough to find people with context, and it
    keeps the number of downstream lookups bounded.
    """

    file_blacklist: list[str] = Field(
        default_factory=list,
        description="Globs matched against the full relative path; `*` stays within one segment, `**` spans directories.",
    )
    max_files_to_consider: int = Field(
        default=5,
        gt=0,
        description="Upper bound on the number of files handed to owner lookup.",
    )

    def is_blacklisted(self, path: str) -> bool:
        return any(path_matches(path, glob) for glob in self.file_blacklist)


# ---------------------------------------------------------------------------
# Selector
# ---------------------------------------------------------------------------

def select_files(files: list[FileChange], policy: SelectionPolicy) -> list[FileChange]:
    """Return the top files by deleted line count, minus blacklisted paths.

    The sort is stable, so files with the same number of deleted lines keep
    the order they had in the diff.
    """
    ranked = sorted(files, key=lambda f: len(f.deleted_lines), reverse=True)
    kept = [f for f in ranked if not policy.is_blacklisted(f.path)]
    selected = kept[: policy.max_files_to_consider]
    logger.debug(
        "Selected %d of %d file(s) (%d blacklisted)",
        len(selected), len(files), len(ranked) - len(kept),
    )
    return selected
