"""Tests for the vault scanner."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from obsvault.domain.errors import ScanCancelledError, VaultIOError
from obsvault.domain.items import Area, Epic, Resource, Task
from obsvault.infrastructure.scanner import VaultScanner
from obsvault.infrastructure.templates import TemplateRegistry
from tests.conftest import write_item_file


def _scanner(vault_root: Path, **kwargs: float) -> VaultScanner:
    return VaultScanner(vault_root, TemplateRegistry(vault_root), **kwargs)


class TestScanAll:
    def test_reads_every_type(self, vault_root: Path) -> None:
        write_item_file(vault_root, "_projects/Alpha.md", {"Type": "Task", "Status": "To Do"}, "# Alpha\n")
        write_item_file(vault_root, "_projects/Launch.md", {"Type": "Epic", "Area": "Work"}, "# Launch\n")
        write_item_file(vault_root, "_areas/Health.md", {"Type": "Area"}, "# Health\n")
        write_item_file(vault_root, "_resources/Docs.md", {"Type": "Resource"}, "# Docs\n")

        items = _scanner(vault_root).scan_all()

        by_id = {item.id: item for item in items}
        assert isinstance(by_id["_projects-alpha"], Task)
        assert isinstance(by_id["_projects-launch"], Epic)
        assert isinstance(by_id["_areas-health"], Area)
        assert isinstance(by_id["_resources-docs"], Resource)

    def test_title_from_heading_then_filename(self, vault_root: Path) -> None:
        write_item_file(vault_root, "_projects/file-name.md", {"Type": "Task"}, "# Pretty Title\n")
        write_item_file(vault_root, "_projects/No Heading.md", {"Type": "Task"}, "plain text\n")
        titles = sorted(item.title for item in _scanner(vault_root).scan_all())
        assert titles == ["No Heading", "Pretty Title"]

    def test_type_must_match_directory(self, vault_root: Path) -> None:
        write_item_file(vault_root, "_areas/Wrong.md", {"Type": "Task"}, "# Wrong\n")
        write_item_file(vault_root, "_projects/Untyped.md", {"Status": "To Do"}, "# Untyped\n")
        assert _scanner(vault_root).scan_all() == []

    def test_bad_files_are_skipped(self, vault_root: Path) -> None:
        (vault_root / "_projects" / "Broken.md").write_text("---\nType: [oops\n---\n")
        (vault_root / "_projects" / "Binary.md").write_bytes(b"\xff\xfe\x00")
        write_item_file(vault_root, "_projects/Good.md", {"Type": "Task"}, "# Good\n")
        items = _scanner(vault_root).scan_all()
        assert [item.title for item in items] == ["Good"]

    def test_missing_type_directories_are_fine(self, tmp_path: Path) -> None:
        assert _scanner(tmp_path).scan_all() == []

    def test_missing_root_is_io_error(self, tmp_path: Path) -> None:
        with pytest.raises(VaultIOError):
            _scanner(tmp_path / "absent").scan_all()

    def test_mtime_used_when_timestamps_missing(self, vault_root: Path) -> None:
        write_item_file(vault_root, "_projects/T.md", {"Type": "Task"}, "# T\n")
        (item,) = _scanner(vault_root).scan_all()
        assert item.created_at.endswith("Z")
        assert item.created_at == item.updated_at

    def test_template_scaffold_stripped_from_content(self, vault_root: Path) -> None:
        registry = TemplateRegistry(vault_root)
        task = Task(
            id="task-t-1",
            title="T",
            status="To Do",
            content="The real description.",
            created_at="2025-08-20T10:00:00.000Z",
            updated_at="2025-08-20T10:00:00.000Z",
        )
        path = vault_root / "_projects" / "T.md"
        path.write_text(registry.apply_template(task), encoding="utf-8")

        (item,) = VaultScanner(vault_root, registry).scan_all()
        assert item.content == "The real description."

    def test_hand_written_content_keeps_body(self, vault_root: Path) -> None:
        write_item_file(vault_root, "_projects/T.md", {"Type": "Task"}, "# T\n\nFree notes.\n")
        (item,) = _scanner(vault_root).scan_all()
        assert item.content == "Free notes."


class TestCancellation:
    def test_cancel_event(self, vault_root: Path) -> None:
        write_item_file(vault_root, "_projects/T.md", {"Type": "Task"}, "# T\n")
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(ScanCancelledError):
            _scanner(vault_root).scan_all(cancel=cancel)

    def test_deadline(self, vault_root: Path) -> None:
        write_item_file(vault_root, "_projects/T.md", {"Type": "Task"}, "# T\n")
        with pytest.raises(ScanCancelledError):
            _scanner(vault_root).scan_all(timeout_seconds=-1)

    def test_failed_scan_keeps_previous_map(self, vault_root: Path) -> None:
        write_item_file(vault_root, "_projects/T.md", {"Type": "Task"}, "# T\n")
        scanner = _scanner(vault_root)
        scanner.scan_all()
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(ScanCancelledError):
            scanner.scan_all(cancel=cancel)
        assert scanner.cache_stats()["size"] == 1

    def test_iter_items_streams(self, vault_root: Path) -> None:
        for name in ("A", "B", "C"):
            write_item_file(vault_root, f"_projects/{name}.md", {"Type": "Task"}, f"# {name}\n")
        stream = _scanner(vault_root).iter_items()
        first = next(stream)
        assert first.item.title == "A"
        assert first.path == vault_root / "_projects" / "A.md"


class TestLookups:
    def test_find_by_id_rescans_on_miss(self, vault_root: Path) -> None:
        scanner = _scanner(vault_root)
        scanner.scan_all()
        write_item_file(vault_root, "_projects/Late.md", {"Type": "Task"}, "# Late\n")
        item = scanner.find_item_by_id("_projects-late")
        assert item is not None
        assert item.title == "Late"
        assert scanner.find_file_path_by_id("_projects-late") == vault_root / "_projects" / "Late.md"

    def test_unknown_id(self, vault_root: Path) -> None:
        assert _scanner(vault_root).find_item_by_id("nope") is None

    def test_remember_and_forget(self, vault_root: Path) -> None:
        scanner = _scanner(vault_root)
        task = Task(id="task-x-1", title="X", status="To Do", created_at="t", updated_at="t")
        path = vault_root / "_projects" / "X.md"
        scanner.remember(task, path)
        assert scanner.find_file_path_by_id("task-x-1") == path
        scanner.forget("task-x-1")
        assert scanner.cache_stats()["size"] == 0


class TestStaleness:
    def test_fresh_scanner_is_stale(self, vault_root: Path) -> None:
        scanner = _scanner(vault_root)
        assert scanner.is_stale()
        assert scanner.last_scan_time is None
        assert scanner.refresh_if_stale()
        assert not scanner.is_stale()
        assert not scanner.refresh_if_stale()

    def test_zero_stale_window(self, vault_root: Path) -> None:
        scanner = _scanner(vault_root, stale_after_seconds=-1)
        scanner.scan_all()
        assert scanner.is_stale()

    def test_clear_cache(self, vault_root: Path) -> None:
        write_item_file(vault_root, "_projects/T.md", {"Type": "Task"}, "# T\n")
        scanner = _scanner(vault_root)
        scanner.scan_all()
        scanner.clear_cache()
        assert scanner.cache_stats() == {"size": 0, "last_scan_time": None}
        assert scanner.is_stale()
