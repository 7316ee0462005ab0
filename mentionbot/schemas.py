"""Data models for mentionbot."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Diff
# ---------------------------------------------------------------------------

class FileChange(BaseModel):
    """One file block of a parsed diff."""

    model_config = ConfigDict(frozen=True)

    path: str
    deleted_lines: list[int] = Field(default_factory=list)  # 1-based, original file


# ---------------------------------------------------------------------------
# Teams / org
# ---------------------------------------------------------------------------

class WhitelistEntry(BaseModel):
    name: str
    files: list[str] = Field(default_factory=list)
    skip_team_prs: bool = False


class TeamRecord(BaseModel):
    name: str
    id: int
    slug: str = ""


class MembershipRecord(BaseModel):
    name: str  # user login
    state: str  # "active", "pending" or "none"

    @property
    def is_active(self) -> bool:
        return self.state == "active"


# ---------------------------------------------------------------------------
# Ownership
# ---------------------------------------------------------------------------

class OwnershipEntry(BaseModel):
    path_pattern: str
    owners: list[str]
    source: str = "CODEOWNERS"  # or "OWNERS", "config"


# ---------------------------------------------------------------------------
# Pull requests
# ---------------------------------------------------------------------------

class PullRequestRef(BaseModel):
    repo: str  # "owner/name"
    number: int | None = None
    author: str = ""
    private: bool = False

    @property
    def org(self) -> str:
        return self.repo.split("/", 1)[0]


class ReviewerSuggestion(BaseModel):
    pr: PullRequestRef
    selected_files: list[FileChange] = Field(default_factory=list)
    candidates: list[str] = Field(default_factory=list)
    reviewers: list[str] = Field(default_factory=list)
