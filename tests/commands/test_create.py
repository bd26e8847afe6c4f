"""Tests for the create command group."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from obsvault.cli import cli
from obsvault.domain.markdown import parse_markdown


class TestCreateTask:
    def test_json_output(self, cli_runner: CliRunner, vault_root: Path) -> None:
        result = cli_runner.invoke(
            cli,
            [
                "--vault", str(vault_root), "--json",
                "create", "task", "Test Task",
                "--area", "Work", "--due", "2025-09-01", "--priority", "High",
                "--project", "Launch", "--tags", "a", "--tags", "b",
            ],
        )  # fmt: skip
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["ok"] is True
        item = data["data"]["item"]
        assert item["id"].startswith("task-test-task-")
        assert item["status"] == "To Do"
        assert item["dueDate"] == "2025-09-01"
        assert item["parentProjects"] == ["Launch"]
        assert item["tags"] == ["a", "b"]
        assert data["data"]["path"] == str(vault_root / "_projects" / "Test Task.md")

    def test_file_written(self, cli_runner: CliRunner, vault_root: Path) -> None:
        result = cli_runner.invoke(
            cli, ["--vault", str(vault_root), "create", "task", "Plain", "--content", "Do it."]
        )
        assert result.exit_code == 0, result.output
        assert "OK  create_item" in result.stdout
        fm, body = parse_markdown((vault_root / "_projects" / "Plain.md").read_text())
        assert fm["Type"] == "Task"
        assert fm["Priority"] == "Medium"
        assert "Do it." in body

    def test_invalid_status_fails(self, cli_runner: CliRunner, vault_root: Path) -> None:
        result = cli_runner.invoke(
            cli, ["--vault", str(vault_root), "--json", "create", "task", "T", "--status", "Nope"]
        )
        assert result.exit_code == 1
        data = json.loads(result.stderr)
        assert data["error"]["code"] == "VALIDATION_FAILED"

    def test_bad_priority_rejected_by_click(self, cli_runner: CliRunner, vault_root: Path) -> None:
        result = cli_runner.invoke(
            cli, ["--vault", str(vault_root), "create", "task", "T", "--priority", "Meh"]
        )
        assert result.exit_code == 2

    def test_duplicate_title(self, cli_runner: CliRunner, vault_root: Path) -> None:
        args = ["--vault", str(vault_root), "create", "task", "Twice"]
        assert cli_runner.invoke(cli, args).exit_code == 0
        result = cli_runner.invoke(cli, args)
        assert result.exit_code == 1
        assert "already exists" in result.stderr


class TestCreateOtherTypes:
    def test_epic_requires_area_option(self, cli_runner: CliRunner, vault_root: Path) -> None:
        result = cli_runner.invoke(cli, ["--vault", str(vault_root), "create", "epic", "E"])
        assert result.exit_code == 2
        assert "--area" in result.output

    def test_epic(self, cli_runner: CliRunner, vault_root: Path) -> None:
        result = cli_runner.invoke(
            cli, ["--vault", str(vault_root), "create", "epic", "Relaunch", "--area", "Marketing"]
        )
        assert result.exit_code == 0, result.output
        assert (vault_root / "_projects" / "Relaunch.md").is_file()

    def test_area(self, cli_runner: CliRunner, vault_root: Path) -> None:
        result = cli_runner.invoke(
            cli,
            [
                "--vault", str(vault_root), "--json",
                "create", "area", "Health",
                "--purpose", "Keep fit and rested", "--maintenance", "Daily", "--pinned",
            ],
        )  # fmt: skip
        assert result.exit_code == 0, result.output
        item = json.loads(result.stdout)["data"]["item"]
        assert item["pinned"] is True
        assert item["maintenance"] == "Daily"
        assert (vault_root / "_areas" / "Health.md").is_file()

    def test_area_short_purpose(self, cli_runner: CliRunner, vault_root: Path) -> None:
        result = cli_runner.invoke(
            cli, ["--vault", str(vault_root), "create", "area", "Health", "--purpose", "short"]
        )
        assert result.exit_code == 1
        assert "purpose" in result.stderr

    def test_resource(self, cli_runner: CliRunner, vault_root: Path) -> None:
        result = cli_runner.invoke(
            cli,
            [
                "--vault", str(vault_root), "--json",
                "create", "resource", "Python Docs",
                "--areas", "Work",
                "--purpose", "Reference for the standard library",
                "--overview", "Official documentation for Python 3",
                "--key-topic", "typing", "--key-topic", "asyncio",
                "--usage", "Look things up first",
                "--maintenance", "Monthly",
            ],
        )  # fmt: skip
        assert result.exit_code == 0, result.output
        item = json.loads(result.stdout)["data"]["item"]
        assert item["keyTopics"] == ["typing", "asyncio"]
        assert item["contentOverview"] == "Official documentation for Python 3"
        assert (vault_root / "_resources" / "Python Docs.md").is_file()

    def test_resource_lists_every_missing_field(
        self, cli_runner: CliRunner, vault_root: Path
    ) -> None:
        result = cli_runner.invoke(
            cli, ["--vault", str(vault_root), "create", "resource", "Bare"]
        )
        assert result.exit_code == 1
        for field in ("areas", "purpose", "contentOverview", "keyTopics", "usageNotes"):
            assert field in result.stderr
