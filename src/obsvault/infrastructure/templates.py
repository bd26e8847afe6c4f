"""Template registry: per-type body templates with vault overrides.

Templates are markdown bodies with ``{{key}}`` placeholders, including
dotted paths such as ``{{currentFocus.primary}}``. Lookup order per item
type:

1. ``<vault>/_templates/<type>.md`` (user override)
2. the packaged ``obsvault/templates/<type>.md``
3. a minimal built-in body

Both file sources go through Jinja2 loaders, but substitution is plain
placeholder replacement: a malformed placeholder such as ``{{title`` is
left in the output verbatim instead of failing the render.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from jinja2 import BaseLoader, Environment, FileSystemLoader, PackageLoader, TemplateNotFound

from obsvault.domain.items import BaseItem
from obsvault.domain.markdown import render_markdown
from obsvault.domain.types import Directory, ItemType

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z_][\w.]*)\s*\}\}")
_META_COMMENT_RE = re.compile(r"^<!--\s*(Variables|Description):(.*?)-->\s*$")
_LINE_BREAK_RE = re.compile(r"\s*[\r\n]\s*")

# The only placeholder whose value keeps its line breaks in the body.
_MULTILINE_KEY = "content"

_BASIC_TEMPLATE = """# {{title}}

{{content}}

---
Created: {{createdAt}}
Last Updated: {{updatedAt}}
"""


@dataclass(frozen=True)
class Template:
    """A loaded body template."""

    item_type: ItemType
    content: str
    source: str
    variables: tuple[str, ...] = ()
    description: str = ""

    @property
    def name(self) -> str:
        return f"{self.item_type} Template"


# ---------------------------------------------------------------------------
# Variable resolution
# ---------------------------------------------------------------------------


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ", ".join(_stringify(v) for v in value)
    return str(value)


def template_variables(item: BaseItem) -> dict[str, str]:
    """Flatten *item* into the placeholder map.

    Keys are camelCase field names; nested mappings also contribute dotted
    keys, and the bare key of a mapping resolves to its ``primary`` entry.
    Every value except ``content`` is folded onto one line, so the rendered
    body keeps the template's line layout and :meth:`extract_content` can
    invert it. The frontmatter still carries the unfolded values.
    """
    variables: dict[str, str] = {}
    for key, value in item.model_dump(mode="json", by_alias=True).items():
        if isinstance(value, dict):
            for sub_key, sub_value in value.items():
                variables[f"{key}.{sub_key}"] = _stringify(sub_value)
            variables[key] = _stringify(value.get("primary"))
        else:
            variables[key] = _stringify(value)
    return {
        key: text if key == _MULTILINE_KEY else _LINE_BREAK_RE.sub(" ", text)
        for key, text in variables.items()
    }


def substitute(template: str, variables: Mapping[str, str]) -> str:
    """Replace every known ``{{key}}``; unknown or malformed ones stay as written."""

    def _replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key in variables:
            return variables[key]
        return match.group(0)

    return _PLACEHOLDER_RE.sub(_replace, template)


# ---------------------------------------------------------------------------
# Template source parsing
# ---------------------------------------------------------------------------


def _strip_template_frontmatter(text: str) -> str:
    """Drop a leading ``---`` block; frontmatter is generated from the item."""
    lines = text.replace("\r\n", "\n").split("\n")
    if not lines or lines[0].strip() != "---":
        return text
    for i, line in enumerate(lines[1:], start=1):
        if line.strip() == "---":
            return "\n".join(lines[i + 1 :]).lstrip("\n")
    return text


def _build_template(item_type: ItemType, text: str, source: str) -> Template:
    variables: tuple[str, ...] = ()
    description = ""
    body_lines: list[str] = []
    for line in _strip_template_frontmatter(text).split("\n"):
        meta = _META_COMMENT_RE.match(line.strip())
        if meta is None:
            body_lines.append(line)
        elif meta.group(1) == "Variables":
            variables = tuple(v.strip() for v in meta.group(2).split(",") if v.strip())
        else:
            description = meta.group(2).strip()
    if not variables:
        variables = tuple(dict.fromkeys(_PLACEHOLDER_RE.findall(text)))
    return Template(
        item_type=item_type,
        content="\n".join(body_lines),
        source=source,
        variables=variables,
        description=description,
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TemplateRegistry:
    """Resolves, caches, applies, and inverts per-type templates.

    Built once per vault and handed to the components that render items.
    Loaded templates are cached for the registry's lifetime; call
    :meth:`clear_cache` to pick up edited override files.
    """

    def __init__(self, vault_root: Path | None = None) -> None:
        self._vault_root = vault_root
        self._env = Environment(keep_trailing_newline=True)
        loaders: list[tuple[str, BaseLoader]] = []
        if vault_root is not None:
            loaders.append(("override", FileSystemLoader(str(vault_root / Directory.TEMPLATES))))
        loaders.append(("default", PackageLoader("obsvault", "templates")))
        self._loaders: tuple[tuple[str, BaseLoader], ...] = tuple(loaders)
        self._cache: dict[ItemType, Template] = {}
        self._lock = threading.Lock()

    @property
    def vault_root(self) -> Path | None:
        return self._vault_root

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def loaded(self) -> Mapping[ItemType, Template]:
        """Read-only view of the templates loaded so far."""
        return MappingProxyType(dict(self._cache))

    def get_template(self, item_type: ItemType | str) -> Template:
        """Return the template for *item_type*; never raises on load failure."""
        kind = ItemType(item_type)
        with self._lock:
            cached = self._cache.get(kind)
            if cached is not None:
                return cached
            template = self._load(kind)
            self._cache[kind] = template
            return template

    def _load(self, item_type: ItemType) -> Template:
        name = f"{str(item_type).lower()}.md"
        for source, loader in self._loaders:
            try:
                text, _filename, _uptodate = loader.get_source(self._env, name)
            except TemplateNotFound:
                continue
            except (OSError, UnicodeDecodeError) as exc:
                logger.debug("Template %s from %s unreadable (%s); falling back", name, source, exc)
                continue
            return _build_template(item_type, text, source)
        logger.debug("No template file for %s; using built-in body", item_type)
        return _build_template(item_type, _BASIC_TEMPLATE, "builtin")

    # --- Rendering ---

    def render_body(self, item: BaseItem, template: Template | None = None) -> str:
        """Substitute *item*'s fields into its type's template body."""
        tpl = template or self.get_template(item.type)
        return substitute(tpl.content, template_variables(item))

    def apply_template(self, item: BaseItem, template: Template | None = None) -> str:
        """Render the complete markdown file for *item*."""
        return render_markdown(item.to_frontmatter(), self.render_body(item, template))

    # --- Inversion ---

    def extract_content(self, item_type: ItemType | str, body: str) -> str | None:
        """Recover the free-text ``content`` from a body rendered by a template.

        Returns ``None`` when *body* does not follow the template's layout
        (hand-written notes, other templates) or the template has no
        ``{{content}}`` slot.
        """
        pattern = _inversion_pattern(self.get_template(item_type).content)
        if pattern is None:
            return None
        match = pattern.fullmatch(body.rstrip())
        if match is None:
            return None
        return match.group("content").strip("\n")


def _inversion_pattern(template: str) -> re.Pattern[str] | None:
    parts: list[str] = []
    pos = 0
    has_content = False
    for match in _PLACEHOLDER_RE.finditer(template):
        parts.append(re.escape(template[pos : match.start()]))
        if match.group(1) == "content" and not has_content:
            parts.append(r"(?P<content>[\s\S]*?)")
            has_content = True
        else:
            parts.append(r"[^\n]*?")
        pos = match.end()
    parts.append(re.escape(template[pos:].rstrip()))
    if not has_content:
        return None
    return re.compile("".join(parts))
