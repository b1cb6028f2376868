"""Tests for the autocommit CLI."""

import json
from datetime import datetime
from pathlib import Path

import pytest
from conftest import git
from typer.testing import CliRunner

from autocommit.cli.commands import app

runner = CliRunner()


def write_config(tmp_path: Path, repo: Path) -> Path:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "repositoryPath": str(repo),
        "logLevel": "error",
        "schedule": {"stateFile": str(tmp_path / "scheduler-state.json")},
        "commit": {"retryDelayMs": 0},
    }))
    return path


class TestCli:
    """Test CLI commands."""

    def test_version(self):
        """Test --version prints the package version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "autocommit v" in result.stdout

    def test_onboard_writes_config(self, tmp_path: Path):
        """Test onboard writes a default config for the given repository."""
        path = tmp_path / "cfg" / "config.json"

        result = runner.invoke(app, ["onboard", "--config", str(path), "--repo", str(tmp_path)])

        assert result.exit_code == 0
        data = json.loads(path.read_text())
        assert data["schedule"]["commitTime"] == "0 18 * * *"
        assert data["repositoryPath"] == str(tmp_path.resolve())

    def test_onboard_keeps_existing_config(self, tmp_path: Path):
        """Test declining the overwrite prompt leaves the file alone."""
        path = tmp_path / "config.json"
        path.write_text("{}")

        result = runner.invoke(app, ["onboard", "--config", str(path)], input="n\n")

        assert result.exit_code == 0
        assert path.read_text() == "{}"

    def test_invalid_config(self, tmp_path: Path):
        """Test an invalid config exits with an error."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"schedule": {"commitTime": "0 99 * * *"}}))

        result = runner.invoke(app, ["commit", "--config", str(path)])

        assert result.exit_code == 1
        assert "Error" in result.stdout

    def test_commit_outside_repository(self, tmp_path: Path):
        """Test committing outside a repository fails."""
        plain = tmp_path / "plain"
        plain.mkdir()

        result = runner.invoke(app, ["commit", "--config", str(write_config(tmp_path, plain))])

        assert result.exit_code == 1

    def test_missed_list_and_clear(self, tmp_path: Path):
        """Test listing and then clearing missed runs."""
        path = write_config(tmp_path, tmp_path)
        moment = datetime(2025, 1, 3, 9, 30).astimezone()
        (tmp_path / "scheduler-state.json").write_text(
            json.dumps({"missedExecutions": [moment.isoformat()]})
        )

        listed = runner.invoke(app, ["missed", "--config", str(path)])
        assert listed.exit_code == 0
        assert "2025-01-03 09:30:00" in listed.stdout

        cleared = runner.invoke(app, ["missed", "--clear", "--config", str(path)])
        assert cleared.exit_code == 0
        assert json.loads((tmp_path / "scheduler-state.json").read_text())["missedExecutions"] == []

        empty = runner.invoke(app, ["missed", "--config", str(path)])
        assert "No missed runs" in empty.stdout


class TestCliWithGit:
    """Test CLI commands against a real repository."""

    def test_commit(self, git_repo: Path, tmp_path: Path):
        """Test a manual commit leaves the tree clean."""
        (git_repo / "app.py").write_text("print('hi')\n")

        result = runner.invoke(app, ["commit", "--config", str(write_config(tmp_path, git_repo))])

        assert result.exit_code == 0
        assert "Committed" in result.stdout
        assert git(git_repo, "status", "--porcelain") == ""

    def test_commit_nothing(self, git_repo: Path, tmp_path: Path):
        """Test a manual commit on a clean tree reports no changes."""
        result = runner.invoke(app, ["commit", "--config", str(write_config(tmp_path, git_repo))])

        assert result.exit_code == 0
        assert "No changes" in result.stdout

    @pytest.mark.parametrize("command", [["status"], ["history", "-n", "5"]])
    def test_read_only_commands(self, git_repo: Path, tmp_path: Path, command: list[str]):
        """Test status and history render."""
        result = runner.invoke(app, [*command, "--config", str(write_config(tmp_path, git_repo))])

        assert result.exit_code == 0
        if command[0] == "history":
            assert "Recent Commits" in result.stdout
        else:
            assert "clean" in result.stdout
