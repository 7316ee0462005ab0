"""End-to-end reviewer suggestion for a single pull request."""

from __future__ import annotations

import logging

from mentionbot.cache import NullCache, ResponseCache
from mentionbot.config import Config
from mentionbot.diff_parser import parse_diff
from mentionbot.file_selector import path_matches, select_files
from mentionbot.github_client import GitHubClient, GitHubClientError
from mentionbot.owners import PathOwnerLookup
from mentionbot.reviewer_filter import filter_own_team, filter_private_repo
from mentionbot.schemas import (
    FileChange,
    MembershipRecord,
    PullRequestRef,
    ReviewerSuggestion,
    TeamRecord,
)

logger = logging.getLogger(__name__)


class CachedGitHub:
    """Routes the GitHub calls the filters make through a response cache."""

    def __init__(self, gh: GitHubClient, cache: ResponseCache | NullCache) -> None:
        self.gh = gh
        self.cache = cache

    async def get_pr_diff(self, repo: str, number: int) -> str:
        return await self.cache.get_or_compute(
            f"{repo}-pull-{number}.diff", lambda: self.gh.get_pr_diff(repo, number)
        )

    async def list_teams(self, org: str) -> list[TeamRecord]:
        async def fetch() -> list[dict]:
            return [t.model_dump() for t in await self.gh.list_teams(org)]

        data = await self.cache.get_or_compute(f"{org}-teams", fetch)
        return [TeamRecord.model_validate(t) for t in data]

    async def get_team_membership(self, user: str, team: TeamRecord, org: str) -> MembershipRecord:
        async def fetch() -> dict:
            return (await self.gh.get_team_membership(user, team, org)).model_dump()

        data = await self.cache.get_or_compute(f"{org}-team-{team.slug or team.id}-{user}", fetch)
        return MembershipRecord.model_validate(data)

    async def list_org_members(self, org: str) -> list[str]:
        return await self.cache.get_or_compute(
            f"{org}-members", lambda: self.gh.list_org_members(org)
        )


class ReviewerSuggester:
    """Turns a PR diff into the list of people to mention."""

    def __init__(
        self,
        config: Config,
        lookup: PathOwnerLookup,
        gh: GitHubClient | None = None,
        cache: ResponseCache | NullCache | None = None,
    ) -> None:
        self.config = config
        self.lookup = lookup
        self.gh = CachedGitHub(gh, cache or NullCache()) if gh else None

    async def suggest(self, pr: PullRequestRef) -> ReviewerSuggestion:
        """Fetch the PR diff and run the full suggestion pipeline on it."""
        if self.gh is None or pr.number is None:
            raise GitHubClientError("A GitHub client and PR number are required to fetch the diff")
        diff_text = await self.gh.get_pr_diff(pr.repo, pr.number)
        return await self.suggest_from_diff(diff_text, pr)

    async def suggest_from_diff(self, diff_text: str, pr: PullRequestRef) -> ReviewerSuggestion:
        files = parse_diff(diff_text)
        selected = select_files(files, self.config.selection_policy)

        candidates = self.lookup.owners_for_files(selected)
        for login in self._whitelisted_for(files):
            if login not in candidates:
                candidates.append(login)

        reviewers = await self._filter(list(candidates), pr)
        blacklist = set(self.config.user_blacklist)
        reviewers = [r for r in reviewers if r not in blacklist][: self.config.max_reviewers]

        logger.info(
            "Suggesting %s for %s#%s",
            ", ".join(reviewers) or "nobody", pr.repo, pr.number if pr.number is not None else "-",
        )
        return ReviewerSuggestion(
            pr=pr,
            selected_files=selected,
            candidates=candidates,
            reviewers=reviewers,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _filter(self, owners: list[str], pr: PullRequestRef) -> list[str]:
        needs_team = any(e.skip_team_prs for e in self.config.user_whitelist)
        if self.gh is None:
            if needs_team or pr.private:
                logger.warning("No GitHub client; skipping team and org membership filters")
            return owners

        owners = await filter_own_team(owners, self.config.user_whitelist, pr.author, pr.org, self.gh)
        if pr.private:
            owners = await filter_private_repo(owners, pr.org, self.gh)
        return owners

    def _whitelisted_for(self, files: list[FileChange]) -> list[str]:
        """Whitelisted users whose file globs match any changed path."""
        return [
            entry.name
            for entry in self.config.user_whitelist
            if any(path_matches(f.path, glob) for glob in entry.files for f in files)
        ]
