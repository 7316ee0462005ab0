"""Shared fixtures: an in-memory stand-in for the GitHub client."""

from __future__ import annotations

import asyncio
from collections import Counter

import pytest

from mentionbot.schemas import MembershipRecord, TeamRecord


class FakeGitHub:
    """Records every call and serves canned team/org/diff data."""

    def __init__(
        self,
        teams: list[TeamRecord] | None = None,
        active: dict[str, set[str]] | None = None,
        members: list[str] | None = None,
        diffs: dict[int, str] | None = None,
        fail_on: str | None = None,
    ) -> None:
        self.teams = teams or []
        self.active = active or {}  # team name -> active logins
        self.members = members or []
        self.diffs = diffs or {}
        self.fail_on = fail_on
        self.calls: Counter[str] = Counter()
        self.in_flight = 0
        self.max_in_flight = 0

    def _record(self, name: str) -> None:
        self.calls[name] += 1
        if self.fail_on == name:
            raise RuntimeError(f"{name} failed")

    async def get_pr_diff(self, repo: str, number: int) -> str:
        self._record("get_pr_diff")
        return self.diffs[number]

    async def list_teams(self, org: str) -> list[TeamRecord]:
        self._record("list_teams")
        return list(self.teams)

    async def get_team_membership(self, user: str, team: TeamRecord, org: str) -> MembershipRecord:
        self._record("get_team_membership")
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0)
        self.in_flight -= 1
        state = "active" if user in self.active.get(team.name, set()) else "none"
        return MembershipRecord(name=user, state=state)

    async def list_org_members(self, org: str) -> list[str]:
        self._record("list_org_members")
        return list(self.members)

    async def aclose(self) -> None:
        pass


@pytest.fixture
def fake_gh() -> FakeGitHub:
    return FakeGitHub(
        teams=[
            TeamRecord(name="core", id=1, slug="core"),
            TeamRecord(name="docs", id=2, slug="docs"),
            TeamRecord(name="infra", id=3, slug="infra"),
        ],
        active={"core": {"alice"}, "docs": {"carol"}},
        members=["alice", "bob", "carol"],
    )


@pytest.fixture
def gh_factory() -> type[FakeGitHub]:
    return FakeGitHub
