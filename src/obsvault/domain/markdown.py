"""Markdown codec: YAML frontmatter + body parsing and rendering.

File format::

    ---
    Type: "Task"
    Tags: ["a", "b"]
    Pinned: false
    ---

    <body>

Rendering quotes every string (internal quotes escaped), writes lists in
flow style with quoted elements, and leaves booleans and numbers bare, so
that ``parse_markdown(render_markdown(fm, body))`` reproduces ``fm`` and
``body`` for any frontmatter made of strings, booleans, numbers, and string
lists. Parsing accepts any YAML mapping, including block lists and nested
mappings written by hand in Obsidian.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from io import StringIO
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.scalarstring import DoubleQuotedScalarString

_FRONTMATTER_DELIMITER = "---"
_HEADING_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)


# ---------------------------------------------------------------------------
# YAML instances
# ---------------------------------------------------------------------------


def _new_loader() -> YAML:
    """Create a fresh safe loader (plain dict/list/str results)."""
    return YAML(typ="safe", pure=True)


def _new_dumper() -> YAML:
    """Create a fresh round-trip dumper.

    A new instance per call keeps a failed dump from leaving a shared
    emitter in a broken state. Round-trip mode is needed for per-node
    quoting and flow-style control.
    """
    y = YAML()
    y.default_flow_style = False
    y.allow_unicode = True
    y.width = 4096
    return y


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _plain(value: Any) -> Any:
    """Convert loaded YAML values to plain JSON-like Python values.

    Unquoted YAML dates and timestamps come back as ISO strings.
    """
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def parse_markdown(content: str) -> tuple[dict[str, Any], str]:
    """Split markdown *content* into ``(frontmatter, body)``.

    The frontmatter is the YAML block between a leading ``---`` line and
    the next ``---`` line. One blank separator line after the closing
    delimiter is dropped. Without a valid block the whole content is the
    body and the frontmatter is empty.

    Raises:
        ruamel.yaml.YAMLError: If the frontmatter block is not valid YAML.
    """
    normalized = content.replace("\r\n", "\n")
    lines = normalized.split("\n")
    if not lines or lines[0].strip() != _FRONTMATTER_DELIMITER:
        return {}, content

    end_idx: int | None = None
    for i, line in enumerate(lines[1:], start=1):
        if line.strip() == _FRONTMATTER_DELIMITER:
            end_idx = i
            break

    if end_idx is None:
        return {}, content

    yaml_block = "\n".join(lines[1:end_idx])
    body = "\n".join(lines[end_idx + 1 :])
    if body.startswith("\n"):
        body = body[1:]

    loaded = _new_loader().load(yaml_block) if yaml_block.strip() else None
    if not isinstance(loaded, dict):
        return {}, body
    return _plain(loaded), body


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _to_node(value: Any) -> Any:
    """Wrap a plain value so the dumper emits it in frontmatter style."""
    if isinstance(value, str):
        return DoubleQuotedScalarString(value)
    if isinstance(value, (list, tuple)):
        seq = CommentedSeq(_to_node(v) for v in value)
        seq.fa.set_flow_style()
        return seq
    if isinstance(value, dict):
        mapping = CommentedMap()
        for key, inner in value.items():
            if inner is not None:
                mapping[str(key)] = _to_node(inner)
        return mapping
    return value


def render_markdown(frontmatter: dict[str, Any], body: str) -> str:
    """Render *frontmatter* and *body* as ``---\\n<yaml>---\\n\\n<body>``.

    Keys keep their insertion order; ``None`` values are omitted.
    """
    mapping = _to_node({k: v for k, v in frontmatter.items() if v is not None})
    yaml_text = ""
    if mapping:
        buf = StringIO()
        _new_dumper().dump(mapping, buf)
        yaml_text = buf.getvalue()
    return f"{_FRONTMATTER_DELIMITER}\n{yaml_text}{_FRONTMATTER_DELIMITER}\n\n{body}"


# ---------------------------------------------------------------------------
# Titles
# ---------------------------------------------------------------------------


def extract_title(body: str, fallback_filename: str | None = None) -> str:
    """Return the first ``# Heading`` in *body*, else the filename stem."""
    match = _HEADING_RE.search(body)
    if match:
        return match.group(1).strip()
    if fallback_filename:
        return re.sub(r"\.md$", "", fallback_filename)
    return "Untitled"


def strip_leading_heading(body: str) -> str:
    """Drop a ``# Heading`` line when it is the first non-blank line."""
    stripped = body.lstrip("\n")
    first, _sep, rest = stripped.partition("\n")
    if _HEADING_RE.fullmatch(first):
        return rest.strip("\n")
    return body
