"""Drop candidate reviewers who should not be mentioned on a PR."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from mentionbot.schemas import MembershipRecord, TeamRecord, WhitelistEntry

logger = logging.getLogger(__name__)


class TeamGateway(Protocol):
    """The part of the GitHub client the filters depend on."""

    async def list_teams(self, org: str) -> list[TeamRecord]: ...

    async def get_team_membership(self, user: str, team: TeamRecord, org: str) -> MembershipRecord: ...

    async def list_org_members(self, org: str) -> list[str]: ...


async def filter_own_team(
    owners: list[str],
    whitelist: list[WhitelistEntry],
    creator: str,
    org: str,
    gh: TeamGateway,
) -> list[str]:
    """Remove the PR author when they are active on a team that opted out.

    Teams listed in the whitelist with ``skip_team_prs`` don't want to be
    asked to review their own PRs. Without any such entry nothing is
    fetched and ``owners`` is returned as is.
    """
    skip_names = {entry.name for entry in whitelist if entry.skip_team_prs}
    if not skip_names:
        return owners

    # GitHub has no lookup of a team by name, so list them all and match.
    teams = [team for team in await gh.list_teams(org) if team.name in skip_names]
    memberships = await asyncio.gather(
        *(gh.get_team_membership(creator, team, org) for team in teams)
    )
    excluded = {m.name for m in memberships if m.is_active}
    if excluded:
        logger.debug("Excluding %s: active on a team that skips its own PRs", ", ".join(sorted(excluded)))
    return [owner for owner in owners if owner not in excluded]


async def filter_private_repo(owners: list[str], org: str, gh: TeamGateway) -> list[str]:
    """Keep only owners who are still members of ``org``.

    Only meaningful for private repositories: past contributors may have
    left the org, and mentioning them leaks activity to outsiders.
    """
    members = set(await gh.list_org_members(org))
    kept = [owner for owner in owners if owner in members]
    if len(kept) < len(owners):
        logger.debug("Dropped %d owner(s) no longer in %s", len(owners) - len(kept), org)
    return kept
