"""CLI entrypoint for mentionbot."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import httpx
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from mentionbot.config import Config, load_config

app = typer.Typer(
    name="mentionbot",
    help="Suggest reviewers for GitHub PRs from the lines they change.",
    add_completion=False,
)
console = Console()


def _setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
    )


# ---------------------------------------------------------------------------
# suggest
# ---------------------------------------------------------------------------

@app.command()
def suggest(
    repo: str = typer.Option(..., "--repo", help="GitHub repo (owner/name)"),
    pr: Optional[int] = typer.Option(None, "--pr", help="PR number"),
    diff: Optional[str] = typer.Option(None, "--diff", help="Path to local diff/patch file"),
    author: Optional[str] = typer.Option(None, "--author", help="PR author (defaults to the PR's user)"),
    private: Optional[bool] = typer.Option(
        None, "--private/--public", help="Treat the repo as private (defaults to the PR's repo)"
    ),
    cache: Optional[bool] = typer.Option(None, "--cache/--no-cache", help="Cache GitHub responses on disk"),
    config_file: str = typer.Option(None, "--config", help="Path to config YAML"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Suggest reviewers for a PR or a local diff."""
    _setup_logging(verbose)

    if not pr and not diff:
        console.print("[red]Error: Provide either --pr or --diff[/red]")
        raise typer.Exit(1)

    try:
        cfg = load_config(config_path=config_file, overrides={"enable_cache": cache})
    except ValidationError as e:
        console.print(f"[red]Invalid config: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    diff_text: str | None = None
    if diff:
        diff_path = Path(diff)
        if not diff_path.exists():
            console.print(f"[red]Diff file not found: {diff}[/red]")
            raise typer.Exit(1)
        diff_text = diff_path.read_text(encoding="utf-8")

    from mentionbot.cache import CacheError
    from mentionbot.diff_parser import MalformedDiffError
    from mentionbot.github_client import GitHubClientError

    try:
        suggestion = asyncio.run(
            _run_suggest(cfg, repo, pr, diff_text, author or "", private)
        )
    except (GitHubClientError, MalformedDiffError, CacheError, httpx.HTTPError, OSError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if suggestion.selected_files:
        files_table = Table(title="Selected Files")
        files_table.add_column("Path", style="cyan")
        files_table.add_column("Deleted Lines", justify="right")
        for f in suggestion.selected_files:
            files_table.add_row(f.path, str(len(f.deleted_lines)))
        console.print(files_table)

    if not suggestion.reviewers:
        console.print("[yellow]No reviewers to suggest.[/yellow]")
        return

    table = Table(title=f"Suggested Reviewers ({len(suggestion.reviewers)})")
    table.add_column("#", justify="right")
    table.add_column("Reviewer", style="green")
    for i, login in enumerate(suggestion.reviewers, start=1):
        table.add_row(str(i), login)
    console.print(table)


async def _run_suggest(
    cfg: Config,
    repo: str,
    number: int | None,
    diff_text: str | None,
    author: str,
    private: bool | None,
):
    from mentionbot.cache import NullCache, ResponseCache
    from mentionbot.github_client import GitHubClient, GitHubClientError
    from mentionbot.owners import PathOwnerLookup
    from mentionbot.pipeline import ReviewerSuggester
    from mentionbot.schemas import PullRequestRef

    token = cfg.github_token.get_secret_value()
    if diff_text is None and not token:
        raise GitHubClientError(
            "GitHub token is required. Set GITHUB_TOKEN env var or config github_token."
        )
    gh = GitHubClient(token) if token else None

    if cfg.enable_cache:
        cache: ResponseCache | NullCache = ResponseCache(cfg.cache_path)
        cache.init_schema()
    else:
        cache = NullCache()

    try:
        if gh is not None and number is not None and (not author or private is None):
            pr_data = await gh.get_pr(repo, number)
            author = author or (pr_data.get("user") or {}).get("login", "")
            if private is None:
                private = bool(((pr_data.get("base") or {}).get("repo") or {}).get("private", False))

        ref = PullRequestRef(repo=repo, number=number, author=author, private=bool(private))
        suggester = ReviewerSuggester(cfg, PathOwnerLookup(cfg.ownership_entries()), gh, cache)
        if diff_text is not None:
            return await suggester.suggest_from_diff(diff_text, ref)
        return await suggester.suggest(ref)
    finally:
        cache.close()
        if gh is not None:
            await gh.aclose()


# ---------------------------------------------------------------------------
# parse
# ---------------------------------------------------------------------------

@app.command()
def parse(
    diff: str = typer.Argument(..., help="Path to a diff/patch file"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Show the files in a diff and the original lines they delete."""
    _setup_logging(verbose)

    from mentionbot.diff_parser import MalformedDiffError, parse_diff

    diff_path = Path(diff)
    if not diff_path.exists():
        console.print(f"[red]Diff file not found: {diff}[/red]")
        raise typer.Exit(1)

    try:
        files = parse_diff(diff_path.read_text(encoding="utf-8"))
    except MalformedDiffError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if not files:
        console.print("[yellow]No changed files found in the diff.[/yellow]")
        return

    table = Table(title=f"Changed Files ({len(files)})")
    table.add_column("Path", style="cyan")
    table.add_column("Deleted", justify="right")
    table.add_column("Lines")
    for f in files:
        table.add_row(f.path, str(len(f.deleted_lines)), _format_lines(f.deleted_lines))
    console.print(table)


# ---------------------------------------------------------------------------
# clear-cache
# ---------------------------------------------------------------------------

@app.command("clear-cache")
def clear_cache(
    config_file: str = typer.Option(None, "--config", help="Path to config YAML"),
) -> None:
    """Delete cached GitHub responses."""
    cfg = load_config(config_path=config_file)

    from mentionbot.cache import ResponseCache

    cache = ResponseCache(cfg.cache_path)
    cache.init_schema()
    removed = cache.clear()
    cache.close()
    console.print(f"[green]Removed {removed} cached response(s) from {cfg.cache_path}[/green]")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _format_lines(lines: list[int], limit: int = 10) -> str:
    """Render line numbers compactly, collapsing consecutive runs."""
    if not lines:
        return "-"
    ranges: list[str] = []
    start = prev = lines[0]
    for n in lines[1:]:
        if n == prev + 1:
            prev = n
            continue
        ranges.append(f"{start}-{prev}" if start != prev else str(start))
        start = prev = n
    ranges.append(f"{start}-{prev}" if start != prev else str(start))
    if len(ranges) > limit:
        return ", ".join(ranges[:limit]) + ", ..."
    return ", ".join(ranges)


if __name__ == "__main__":
    app()
