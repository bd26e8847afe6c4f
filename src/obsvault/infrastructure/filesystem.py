"""Filesystem operations for the vault.

INVARIANT: Files are truth. The in-memory cache and search index are
derived and can always be rebuilt from a scan.

Pure parsing/rendering lives in :mod:`obsvault.domain.markdown`. This
module handles actual file I/O, path resolution, file discovery, and
pre-write backups.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

from obsvault.domain.ids import sanitize_filename
from obsvault.domain.types import MARKDOWN_SUFFIX, Directory, ItemType, directory_for

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def write_text(path: Path, content: str) -> None:
    """Write *content* to *path*, creating parent directories.

    The text goes to a sibling temp file first and is renamed into place,
    so readers never observe a half-written note.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        tmp.write_text(content, encoding="utf-8")
        os.replace(tmp, path)
    finally:
        tmp.unlink(missing_ok=True)


def delete_file(path: Path) -> None:
    path.unlink()


# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------


def resolve_item_path(vault_root: Path, item_type: ItemType | str, title: str) -> Path:
    """Resolve ``<vault>/<type dir>/<sanitized title>.md``.

    Raises:
        ValueError: If the title sanitizes to nothing or the path would
            escape the vault root.
    """
    return _titled_path(vault_root, vault_root / directory_for(item_type), title)


def resolve_renamed_path(vault_root: Path, current: Path, title: str) -> Path:
    """Resolve the path *current* moves to when its item is retitled.

    The file stays in its folder, subfolders included; only the stem
    follows the new title.

    Raises:
        ValueError: Same conditions as :func:`resolve_item_path`.
    """
    return _titled_path(vault_root, current.parent, title)


def _titled_path(vault_root: Path, folder: Path, title: str) -> Path:
    stem = sanitize_filename(title)
    if not stem:
        msg = f"Title {title!r} does not yield a usable filename"
        raise ValueError(msg)

    result = folder / f"{stem}{MARKDOWN_SUFFIX}"

    # Guard against path traversal via crafted titles
    if not result.resolve().is_relative_to(vault_root.resolve()):
        msg = f"Path escapes vault root: {result}"
        raise ValueError(msg)
    return result


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def iter_markdown_files(root: Path) -> Iterator[Path]:
    """Yield ``*.md`` files under *root*, depth-first, in name order.

    Dotfiles and dot-directories are skipped. A missing *root* yields
    nothing. Directories are listed lazily, one at a time, so callers can
    stop early without walking the rest of the tree.

    Raises:
        OSError: If a directory exists but cannot be listed.
    """
    if not root.is_dir():
        return
    with os.scandir(root) as it:
        entries = sorted(it, key=lambda e: e.name)
    for entry in entries:
        if entry.name.startswith("."):
            continue
        path = Path(entry.path)
        if entry.is_dir(follow_symlinks=False):
            yield from iter_markdown_files(path)
        elif entry.is_file() and entry.name.endswith(MARKDOWN_SUFFIX):
            yield path


# ---------------------------------------------------------------------------
# Backups
# ---------------------------------------------------------------------------


def backup_file(vault_root: Path, path: Path, *, now: datetime | None = None) -> Path | None:
    """Copy *path* to ``_backups/<stem>_<timestamp>.md`` before a write.

    Best-effort: failures are logged and ``None`` is returned.
    """
    stamp = (now or datetime.now(UTC)).strftime("%Y%m%dT%H%M%S%f")
    target = vault_root / Directory.BACKUPS / f"{path.stem}_{stamp}{path.suffix}"
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(path, target)
    except OSError as exc:
        logger.warning("Backup of %s failed: %s", path, exc)
        return None
    return target
