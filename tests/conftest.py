"""Shared pytest fixtures and test helpers for obsvault tests."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from obsvault.config.settings import ObsSettings
from obsvault.domain.items import BaseItem
from obsvault.domain.markdown import render_markdown
from obsvault.services.store import VaultStore


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's OBSVAULT_* environment out of the tests."""
    for key in list(os.environ):
        if key.startswith("OBSVAULT_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def vault_root(tmp_path: Path) -> Path:
    """Temporary vault directory with the three item directories."""
    for name in ("_projects", "_areas", "_resources"):
        (tmp_path / name).mkdir()
    return tmp_path


@pytest.fixture
def settings(vault_root: Path) -> ObsSettings:
    return ObsSettings(vault_root=vault_root)


@pytest.fixture
def store(settings: ObsSettings) -> VaultStore:
    """A VaultStore over the temporary vault."""
    return VaultStore(settings)


@pytest.fixture
def _isolated_vault(vault_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to the temp vault so the CLI finds it without --vault."""
    monkeypatch.chdir(vault_root)


# ---------------------------------------------------------------------------
# Shared test helpers (used across test modules)
# ---------------------------------------------------------------------------


def write_item_file(
    vault_root: Path,
    relative: str,
    frontmatter: dict[str, Any],
    body: str = "",
) -> Path:
    """Write a hand-authored item file and return its path."""
    path = vault_root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_markdown(frontmatter, body), encoding="utf-8")
    return path


def create_item(store: VaultStore, item_type: str, title: str, **fields: Any) -> BaseItem:
    """Create an item through the store, asserting success."""
    result = store.create_item({"type": item_type, "title": title, **fields})
    assert result.ok, result.error
    item: BaseItem = result.data["item"]
    return item


def area_fields(**overrides: Any) -> dict[str, Any]:
    """Create-request fields that satisfy the Area rules."""
    return {"purpose": "Stay healthy and rested", **overrides}


def resource_fields(**overrides: Any) -> dict[str, Any]:
    """Create-request fields that satisfy the Resource rules."""
    return {
        "areas": ["Work"],
        "purpose": "Reference for daily work",
        "contentOverview": "Official documentation and guides",
        "keyTopics": ["typing", "asyncio"],
        "usageNotes": "Check before asking around",
        "maintenance": "Monthly",
        **overrides,
    }
