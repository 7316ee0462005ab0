"""Configuration loading from YAML, env vars, and CLI defaults."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, SecretStr

from mentionbot.file_selector import SelectionPolicy
from mentionbot.owners import parse_codeowners
from mentionbot.schemas import OwnershipEntry, WhitelistEntry

DEFAULT_CONFIG_PATHS = [
    Path("mentionbot.yaml"),
    Path.home() / ".mentionbot" / "config.yaml",
]

DEFAULT_CACHE_PATH = Path.home() / ".mentionbot" / "cache.sqlite"


class Config(BaseModel):
    github_token: SecretStr = SecretStr("")
    max_reviewers: int = Field(default=3, ge=0)
    num_files_to_check: int = Field(default=5, gt=0)
    file_blacklist: list[str] = Field(default_factory=list)
    user_blacklist: list[str] = Field(default_factory=list)
    user_whitelist: list[WhitelistEntry] = Field(default_factory=list)
    path_owners: list[OwnershipEntry] = Field(default_factory=list)
    codeowners_path: str | None = None
    enable_cache: bool = False
    cache_path: str = str(DEFAULT_CACHE_PATH)

    @property
    def selection_policy(self) -> SelectionPolicy:
        return SelectionPolicy(
            file_blacklist=self.file_blacklist,
            max_files_to_consider=self.num_files_to_check,
        )

    def ownership_entries(self) -> list[OwnershipEntry]:
        """Configured ``path_owners`` followed by the CODEOWNERS file, if any."""
        entries = list(self.path_owners)
        if self.codeowners_path:
            entries.extend(parse_codeowners(Path(self.codeowners_path).read_text(encoding="utf-8")))
        return entries


def load_config(
    config_path: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> Config:
    """Load config from YAML file, env vars, and caller overrides (in that priority)."""
    raw: dict[str, Any] = {}

    # 1. Load from YAML file
    paths_to_try = [Path(config_path)] if config_path else DEFAULT_CONFIG_PATHS
    for p in paths_to_try:
        if p.exists():
            with open(p) as f:
                raw = yaml.safe_load(f) or {}
            break

    # 2. Env var overrides
    if tok := os.environ.get("GITHUB_TOKEN"):
        raw.setdefault("github_token", tok)
    if cache := os.environ.get("MENTIONBOT_CACHE"):
        raw["cache_path"] = cache

    # 3. Caller overrides (CLI flags)
    if overrides:
        raw.update({k: v for k, v in overrides.items() if v is not None})

    return Config(**raw)
