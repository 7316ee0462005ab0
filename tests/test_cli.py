"""Tests for the CLI commands and helpers."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from mentionbot.cli import _format_lines, app

runner = CliRunner()

SAMPLE_DIFF = """\
diff --git a/src/handler.py b/src/handler.py
index 1111111..2222222 100644
--- a/src/handler.py
+++ b/src/handler.py
@@ -1,4 +1,3 @@
 existing line
-removed one
-removed two
+new line
 tail
diff --git a/logo.png b/logo.png
index 3333333..4444444 100644
Binary files a/logo.png and b/logo.png differ
"""


@pytest.fixture(autouse=True)
def isolated(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.setenv("MENTIONBOT_CACHE", str(tmp_path / "cache.sqlite"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def diff_file(tmp_path: Path) -> Path:
    path = tmp_path / "change.diff"
    path.write_text(SAMPLE_DIFF)
    return path


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "mentionbot.yaml"
    path.write_text(
        "max_reviewers: 5\n"
        "path_owners:\n"
        "  - path_pattern: src/\n"
        "    owners: [alice, bob]\n"
        "    source: config\n"
    )
    return path


class TestFormatLines:
    def test_empty(self) -> None:
        assert _format_lines([]) == "-"

    def test_collapses_runs(self) -> None:
        assert _format_lines([1, 2, 3, 7, 9, 10]) == "1-3, 7, 9-10"

    def test_truncates(self) -> None:
        assert _format_lines([1, 3, 5, 7], limit=2) == "1, 3, ..."


class TestParseCommand:
    def test_lists_files(self, diff_file: Path) -> None:
        result = runner.invoke(app, ["parse", str(diff_file)])
        assert result.exit_code == 0
        assert "src/handler.py" in result.output
        assert "logo.png" in result.output
        assert "2-3" in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["parse", str(tmp_path / "nope.diff")])
        assert result.exit_code == 1

    def test_malformed(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.diff"
        bad.write_text("diff -u a b\n")
        result = runner.invoke(app, ["parse", str(bad)])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_not_a_diff(self, tmp_path: Path) -> None:
        text = tmp_path / "notes.txt"
        text.write_text("hello\n")
        result = runner.invoke(app, ["parse", str(text)])
        assert result.exit_code == 0
        assert "No changed files" in result.output


class TestSuggestCommand:
    def test_requires_pr_or_diff(self) -> None:
        result = runner.invoke(app, ["suggest", "--repo", "acme/app"])
        assert result.exit_code == 1

    def test_pr_without_token_fails(self) -> None:
        result = runner.invoke(app, ["suggest", "--repo", "acme/app", "--pr", "3"])
        assert result.exit_code == 1
        assert "token" in result.output

    def test_offline_diff(self, diff_file: Path, config_file: Path) -> None:
        result = runner.invoke(
            app,
            [
                "suggest", "--repo", "acme/app", "--diff", str(diff_file),
                "--author", "carol", "--config", str(config_file),
            ],
        )
        assert result.exit_code == 0, result.output
        assert "alice" in result.output
        assert "bob" in result.output

    def test_invalid_config(self, diff_file: Path, tmp_path: Path) -> None:
        bad = tmp_path / "bad.yaml"
        bad.write_text("num_files_to_check: 0\n")
        result = runner.invoke(
            app, ["suggest", "--repo", "acme/app", "--diff", str(diff_file), "--config", str(bad)]
        )
        assert result.exit_code == 1
        assert "Invalid config" in result.output


class TestClearCacheCommand:
    def test_clears(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["clear-cache", "--config", str(tmp_path / "none.yaml")])
        assert result.exit_code == 0
        assert "Removed 0" in result.output
        assert (tmp_path / "cache.sqlite").exists()
