"""Async GitHub REST API client with rate-limit handling."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx

from mentionbot.schemas import MembershipRecord, TeamRecord

logger = logging.getLogger(__name__)

API_BASE = "https://api.github.com"
PER_PAGE = 100
MAX_RETRIES = 3
BACKOFF_FACTOR = 2.0
TIMEOUT = 30.0


class GitHubClientError(Exception):
    pass


class RateLimitError(GitHubClientError):
    pass


class GitHubClient:
    """Minimal async GitHub client covering what reviewer suggestion needs.

    Every call is a single request/response (or a sequential chain of them
    for paginated endpoints). Errors other than rate limiting and transient
    gateway failures are raised as ``httpx.HTTPStatusError``.
    """

    def __init__(self, token: str, transport: httpx.AsyncBaseTransport | None = None) -> None:
        if not token:
            raise GitHubClientError(
                "GitHub token is required. Set GITHUB_TOKEN env var or config github_token."
            )
        self.client = httpx.AsyncClient(
            base_url=API_BASE,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    # ------------------------------------------------------------------
    # Core request
    # ------------------------------------------------------------------

    async def _request(
        self, method: str, path: str, params: dict[str, Any] | None = None, **kwargs: Any
    ) -> httpx.Response:
        for attempt in range(1, MAX_RETRIES + 1):
            resp = await self.client.request(method, path, params=params, **kwargs)
            if resp.status_code == 403 and "rate limit" in resp.text.lower():
                reset_at = int(resp.headers.get("X-RateLimit-Reset", 0))
                wait = max(reset_at - int(time.time()), 0) + 1
                logger.warning("Rate limited. Sleeping %ds (attempt %d/%d)", wait, attempt, MAX_RETRIES)
                await asyncio.sleep(min(wait, 120))  # cap wait at 2 min
                continue
            if resp.status_code in (502, 503) and attempt < MAX_RETRIES:
                await asyncio.sleep(BACKOFF_FACTOR ** attempt)
                continue
            return resp
        raise RateLimitError(f"Request failed after {MAX_RETRIES} retries: {path}")

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        resp = await self._request("GET", path, params=params)
        resp.raise_for_status()
        return resp.json()

    async def _paginate(self, path: str, params: dict[str, Any] | None = None) -> list[Any]:
        """Walk a GitHub list endpoint page by page."""
        params = dict(params or {})
        params.setdefault("per_page", PER_PAGE)
        items: list[Any] = []
        page = 1
        while True:
            params["page"] = page
            data = await self._get(path, params=params)
            if not data:
                break
            items.extend(data)
            if len(data) < PER_PAGE:
                break
            page += 1
        return items

    # ------------------------------------------------------------------
    # PRs
    # ------------------------------------------------------------------

    async def get_pr(self, repo: str, number: int) -> dict[str, Any]:
        return await self._get(f"/repos/{repo}/pulls/{number}")

    async def get_pr_diff(self, repo: str, number: int) -> str:
        """Get the raw diff for a PR."""
        resp = await self._request(
            "GET",
            f"/repos/{repo}/pulls/{number}",
            headers={"Accept": "application/vnd.github.diff"},
        )
        resp.raise_for_status()
        return resp.text

    # ------------------------------------------------------------------
    # Teams and org members
    # ------------------------------------------------------------------

    async def list_teams(self, org: str) -> list[TeamRecord]:
        data = await self._paginate(f"/orgs/{org}/teams")
        return [TeamRecord(name=t["name"], id=t["id"], slug=t.get("slug", "")) for t in data]

    async def get_team_membership(self, user: str, team: TeamRecord, org: str) -> MembershipRecord:
        """Membership of ``user`` in ``team``; state ``none`` when not a member."""
        if team.slug:
            path = f"/orgs/{org}/teams/{team.slug}/memberships/{user}"
        else:
            path = f"/teams/{team.id}/memberships/{user}"
        resp = await self._request("GET", path)
        if resp.status_code == 404:
            return MembershipRecord(name=user, state="none")
        resp.raise_for_status()
        return MembershipRecord(name=user, state=resp.json().get("state", "none"))

    async def list_org_members(self, org: str) -> list[str]:
        data = await self._paginate(f"/orgs/{org}/members")
        return [m["login"] for m in data]
