"""Vault scanner: the only read path from disk into typed items.

Walks ``_projects/``, ``_areas/`` and ``_resources/`` (each optional),
parses every ``*.md`` file, and keeps an ``id -> (item, path)`` map built
fresh by each full scan. IDs are derived from the vault-relative path
(see :func:`obsvault.domain.ids.id_from_path`).

Per-file problems (unreadable, bad YAML, wrong or missing ``Type``) skip
that file; they never abort a scan. A directory that cannot be listed,
the scan deadline, or a cancel request do abort it, and leave the
previous map in place.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from ruamel.yaml import YAMLError

from obsvault.domain.errors import ScanCancelledError, VaultIOError
from obsvault.domain.ids import id_from_path
from obsvault.domain.items import BaseItem, item_class
from obsvault.domain.markdown import extract_title, parse_markdown, strip_leading_heading
from obsvault.domain.types import DIRECTORY_ALLOWED_TYPES, ItemType
from obsvault.infrastructure.filesystem import iter_markdown_files, read_text
from obsvault.infrastructure.templates import TemplateRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanEntry:
    item: BaseItem
    path: Path


def _mtime_iso(path: Path) -> str:
    stamp = datetime.fromtimestamp(path.stat().st_mtime, UTC)
    return stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class VaultScanner:
    """Turns the vault's markdown files into items.

    Args:
        vault_root: The vault directory.
        templates: Registry used to strip the template scaffold from bodies.
        timeout_seconds: Upper bound on one full scan.
        stale_after_seconds: Age after which :meth:`is_stale` reports true.
    """

    def __init__(
        self,
        vault_root: Path,
        templates: TemplateRegistry,
        *,
        timeout_seconds: float = 30.0,
        stale_after_seconds: float = 300.0,
    ) -> None:
        self._root = vault_root
        self._templates = templates
        self._timeout = timeout_seconds
        self._stale_after = stale_after_seconds
        self._entries: dict[str, ScanEntry] = {}
        self._lock = threading.RLock()
        self._last_scan: datetime | None = None
        self._last_scan_mono: float | None = None

    @property
    def vault_root(self) -> Path:
        return self._root

    @property
    def last_scan_time(self) -> datetime | None:
        return self._last_scan

    # --- Parsing ---

    def parse_file(self, path: Path, allowed: frozenset[ItemType]) -> BaseItem | None:
        """Parse one file into an item, or ``None`` if it should be skipped."""
        try:
            fm, body = parse_markdown(read_text(path))
            fallback = _mtime_iso(path)
        except (OSError, UnicodeDecodeError, YAMLError) as exc:
            logger.warning("Skipping unreadable file %s: %s", path, exc)
            return None

        raw_type = fm.get("Type") or fm.get("type")
        item_type = next((t for t in allowed if str(t) == raw_type), None)
        if item_type is None:
            logger.debug("Skipping %s: type %r not allowed here", path, raw_type)
            return None

        content = self._templates.extract_content(item_type, body)
        if content is None:
            content = strip_leading_heading(body).strip("\n")
        try:
            return item_class(item_type).from_frontmatter(
                id_from_path(self._root, path),
                fm,
                title=extract_title(body, path.name),
                content=content,
                fallback_timestamp=fallback,
            )
        except ValidationError as exc:
            logger.warning("Skipping malformed item %s: %s", path, exc)
            return None

    def iter_items(
        self,
        *,
        deadline: float | None = None,
        cancel: threading.Event | None = None,
    ) -> Iterator[ScanEntry]:
        """Stream ``ScanEntry`` values for every item file in the vault.

        Raises:
            ScanCancelledError: When *deadline* (a ``time.monotonic()``
                value) passes or *cancel* is set, checked between files.
            VaultIOError: When a directory cannot be listed.
        """
        for directory, allowed in DIRECTORY_ALLOWED_TYPES.items():
            files = iter_markdown_files(self._root / directory)
            while True:
                try:
                    path = next(files)
                except StopIteration:
                    break
                except OSError as exc:
                    msg = f"Cannot scan {directory}: {exc}"
                    raise VaultIOError(msg) from exc
                if cancel is not None and cancel.is_set():
                    msg = "Scan cancelled"
                    raise ScanCancelledError(msg)
                if deadline is not None and time.monotonic() > deadline:
                    msg = f"Scan exceeded {self._timeout:g}s"
                    raise ScanCancelledError(msg)
                item = self.parse_file(path, allowed)
                if item is not None:
                    yield ScanEntry(item, path)

    # --- Full scans ---

    def scan_all(
        self,
        *,
        cancel: threading.Event | None = None,
        timeout_seconds: float | None = None,
    ) -> list[BaseItem]:
        """Scan the whole vault and replace the id map.

        Raises:
            VaultIOError: If the vault root is missing or unreadable.
            ScanCancelledError: On timeout or cancellation.
        """
        if not self._root.is_dir():
            msg = f"Vault root is not a directory: {self._root}"
            raise VaultIOError(msg)

        started = time.monotonic()
        deadline = started + (self._timeout if timeout_seconds is None else timeout_seconds)
        entries: dict[str, ScanEntry] = {}
        for entry in self.iter_items(deadline=deadline, cancel=cancel):
            if entry.item.id in entries:
                logger.debug("Duplicate scan id %s at %s", entry.item.id, entry.path)
            entries[entry.item.id] = entry

        with self._lock:
            self._entries = entries
            self._last_scan = datetime.now(UTC)
            self._last_scan_mono = time.monotonic()
        logger.debug(
            "Scanned %d items in %.1fms", len(entries), (time.monotonic() - started) * 1000
        )
        return [entry.item for entry in entries.values()]

    # --- Lookups ---

    def _lookup(self, item_id: str) -> ScanEntry | None:
        with self._lock:
            entry = self._entries.get(item_id)
        if entry is not None:
            return entry
        # One rescan on a miss; a second miss is final.
        self.scan_all()
        with self._lock:
            return self._entries.get(item_id)

    def find_item_by_id(self, item_id: str) -> BaseItem | None:
        entry = self._lookup(item_id)
        return entry.item if entry is not None else None

    def find_file_path_by_id(self, item_id: str) -> Path | None:
        entry = self._lookup(item_id)
        return entry.path if entry is not None else None

    def remember(self, item: BaseItem, path: Path) -> None:
        """Record an item written since the last scan."""
        with self._lock:
            self._entries[item.id] = ScanEntry(item, path)

    def forget(self, item_id: str) -> None:
        with self._lock:
            self._entries.pop(item_id, None)

    # --- Cache management ---

    def cache_stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "size": len(self._entries),
                "last_scan_time": self._last_scan.isoformat() if self._last_scan else None,
            }

    def clear_cache(self) -> None:
        with self._lock:
            self._entries.clear()
            self._last_scan = None
            self._last_scan_mono = None

    def is_stale(self) -> bool:
        """True when no scan has run or the last one is too old."""
        with self._lock:
            if self._last_scan_mono is None:
                return True
            return time.monotonic() - self._last_scan_mono > self._stale_after

    def refresh_if_stale(self) -> bool:
        """Rescan when stale. Returns whether a scan ran."""
        if not self.is_stale():
            return False
        self.scan_all()
        return True
