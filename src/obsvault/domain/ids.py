"""ID generation, scan-time ID derivation, and filename sanitization.

Two ID strategies coexist:

- Factory IDs: ``{type}-{slug(title)}-{base36(epoch millis)}``, assigned when
  an item is created. Uniqueness rests on the millisecond component only;
  two creations of the same title within one millisecond collide.
- Scan IDs: the file's vault-relative path without ``.md``, lower-cased, with
  path separators replaced by hyphens (``_projects/Alpha.md`` ->
  ``_projects-alpha``).

INVARIANT: an item created in this process keeps its factory ID until the
next full rescan, after which it is known by its scan ID.
"""

from __future__ import annotations

import re
import time
from pathlib import Path, PurePath

from obsvault.domain.types import MARKDOWN_SUFFIX

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"

_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')
_MAX_FILENAME_LENGTH = 200


def to_base36(value: int) -> str:
    """Encode a non-negative integer in lower-case base 36.

    Examples:
        >>> to_base36(0)
        '0'
        >>> to_base36(35)
        'z'
        >>> to_base36(36)
        '10'
    """
    if value < 0:
        msg = f"Cannot encode negative value: {value}"
        raise ValueError(msg)
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def slugify_title(title: str) -> str:
    """Lower-case *title*, keep ``[a-z0-9 -]``, and collapse spaces/hyphens."""
    text = title.lower()
    text = re.sub(r"[^a-z0-9\s-]", "", text)
    text = re.sub(r"[\s-]+", "-", text)
    return text.strip("-")


def generate_item_id(title: str, item_type: str, *, now_ms: int | None = None) -> str:
    """Generate a factory ID for a new item.

    Returns ``{type}-{slug}-{base36 millis}``, e.g. ``task-test-task-m1x2y3z4``.
    """
    millis = int(time.time() * 1000) if now_ms is None else now_ms
    slug = slugify_title(title)
    prefix = str(item_type).lower()
    if slug:
        return f"{prefix}-{slug}-{to_base36(millis)}"
    return f"{prefix}-{to_base36(millis)}"


def id_from_path(vault_root: Path, path: Path) -> str:
    """Derive a scan-time ID from *path* relative to *vault_root*."""
    relative = PurePath(path).relative_to(vault_root)
    text = relative.as_posix()
    if text.endswith(MARKDOWN_SUFFIX):
        text = text[: -len(MARKDOWN_SUFFIX)]
    return text.lower().replace("/", "-").replace("\\", "-")


def sanitize_filename(title: str) -> str:
    """Make *title* safe as a file stem.

    Removes ``<>:"/\\|?*``, collapses internal whitespace, trims, and
    truncates to 200 characters. Used both at creation time and whenever a
    path is reconstructed from a title, so the two always agree.
    """
    text = _INVALID_FILENAME_CHARS.sub("", title)
    text = re.sub(r"\s+", " ", text).strip()
    return text[:_MAX_FILENAME_LENGTH]
