"""Path ownership table: CODEOWNERS/OWNERS parsing and path lookup."""

from __future__ import annotations

import fnmatch
import logging

from mentionbot.schemas import FileChange, OwnershipEntry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# CODEOWNERS Parser
# ---------------------------------------------------------------------------

def parse_codeowners(content: str) -> list[OwnershipEntry]:
    """Parse a GitHub CODEOWNERS file into ownership entries."""
    entries: list[OwnershipEntry] = []
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        if len(parts) < 2:
            continue
        pattern = parts[0]
        owners: list[str] = []
        for token in parts[1:]:
            if token.startswith("#"):  # trailing comment
                break
            owners.append(token.lstrip("@"))
        if owners:
            entries.append(OwnershipEntry(path_pattern=pattern, owners=owners, source="CODEOWNERS"))
    return entries


# ---------------------------------------------------------------------------
# Kubernetes-style OWNERS parser (simplified)
# ---------------------------------------------------------------------------

def parse_owners_file(content: str, directory: str = "") -> list[OwnershipEntry]:
    """Parse a Kubernetes-style OWNERS file scoped to ``directory``.

    Approvers and reviewers are merged into a single entry since both are
    valid people to mention:

      approvers:
        - user1
      reviewers:
        - user2
    """
    owners: list[str] = []
    in_section = False

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith(("approvers:", "reviewers:")):
            in_section = True
            continue
        if line.endswith(":"):
            in_section = False
            continue
        if line.startswith("- ") and in_section:
            user = line[2:].strip().strip('"').strip("'")
            if user and user not in owners:
                owners.append(user)

    if not owners:
        return []
    pattern = f"{directory.strip('/')}/" if directory.strip("/") else "*"
    return [OwnershipEntry(path_pattern=pattern, owners=owners, source="OWNERS")]


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------

def pattern_matches(pattern: str, path: str) -> bool:
    """CODEOWNERS-style pattern matching.

    Supports:
    - ``*`` or ``/`` on its own (everything)
    - Directory prefix (pattern ends with /)
    - Wildcards ``*``, ``?`` and globstar ``**``
    - Leading / means repo root
    """
    if pattern in ("*", "/", "**"):
        return True

    pattern = pattern.lstrip("/")
    path = path.lstrip("/")

    if pattern.endswith("/"):
        return path.startswith(pattern)

    if fnmatch.fnmatchcase(path, pattern):
        return True

    # Extension-style patterns (no slash) match at any depth.
    if "/" not in pattern and fnmatch.fnmatchcase(path.rsplit("/", 1)[-1], pattern):
        return True

    if "**" in pattern and fnmatch.fnmatchcase(path, pattern.replace("**", "*")):
        return True

    if "/" in pattern and not any(c in pattern for c in "*?["):
        return path.startswith(pattern + "/") or path == pattern

    return False


class PathOwnerLookup:
    """Maps changed paths to the people listed as their owners."""

    def __init__(self, entries: list[OwnershipEntry]) -> None:
        self.entries = list(entries)

    def owners_for_path(self, path: str) -> list[str]:
        """Owners of the last matching entry, like GitHub's CODEOWNERS."""
        owners: list[str] = []
        for entry in self.entries:
            if pattern_matches(entry.path_pattern, path):
                owners = entry.owners
        return list(owners)

    def owners_for_files(self, files: list[FileChange]) -> list[str]:
        """Union of owners across ``files``, in file order, without duplicates."""
        seen: set[str] = set()
        result: list[str] = []
        for f in files:
            for owner in self.owners_for_path(f.path):
                if owner not in seen:
                    seen.add(owner)
                    result.append(owner)
        logger.debug("Found %d owner(s) across %d file(s)", len(result), len(files))
        return result
