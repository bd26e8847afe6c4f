"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from obsvault.domain.items import BaseItem, Task, item_areas, item_due_date
from obsvault.output.console import create_console, get_output, style_for_type

if TYPE_CHECKING:
    from rich.console import Console

    from obsvault.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="obs.ok")
    op = Text(f"  {result.op}", style="obs.op")
    console.print(label, op, sep="")


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="obs.key")
    if key == "id":
        v = Text(str(value), style="obs.id")
    elif key == "path":
        v = Text(str(value), style="obs.path")
    elif key == "title":
        v = Text(str(value), style="obs.title")
    else:
        v = Text(str(value))
    console.print(k, v, sep="")


def _area_of(item: BaseItem) -> str:
    return ", ".join(item_areas(item))


def _item_table(
    items: list[BaseItem],
    *,
    scores: dict[str, float] | None = None,
    verbose: bool = False,
) -> Table:
    """Build a Rich Table for a list of vault items."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="obs.id", no_wrap=True)
    table.add_column("Title", style="obs.title")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Area")
    table.add_column("Due")

    if scores is not None:
        table.add_column("Score", style="obs.score", justify="right")
    if verbose:
        table.add_column("Updated", style="dim")

    for item in items:
        row: list[Any] = [
            Text(item.id),
            Text(item.title),
            Text(str(item.type), style=style_for_type(str(item.type))),
            item.status,
            _area_of(item),
            item_due_date(item) or "",
        ]
        if scores is not None:
            row.append(f"{scores.get(item.id, 0.0):.1f}")
        if verbose:
            row.append(item.updated_at)
        table.add_row(*row)

    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="obs.error")
    op = Text(f"  {result.op}", style="obs.op")
    console.print(label, op, Text(": "), Text(msg), sep="")

    if err is None:
        return
    for field_error in err.detail.get("errors", []):
        name = Text(f"  {field_error['field']}: ", style="obs.key")
        console.print(name, Text(field_error["message"]), sep="")
    if verbose:
        for key, value in err.detail.items():
            if key != "errors":
                console.print(Text(f"    {key}: {value}"))
    failed = result.data.get("failed", [])
    for entry in failed:
        label = Text("  failed ", style="obs.error")
        console.print(label, Text(f"{entry['id']}: {entry['message']}"), sep="")


# ── Mutation renderers ────────────────────────────────────────────────


def _render_mutation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render create/update/delete results."""
    _status_line(console, result)
    d = result.data
    item = d.get("item")
    if isinstance(item, BaseItem):
        _field(console, "id", item.id)
        _field(console, "title", item.title)
        _field(console, "type", item.type)
        _field(console, "status", item.status)
    elif "id" in d:
        _field(console, "id", d["id"])
    if "path" in d:
        _field(console, "path", d["path"])
    if d.get("updated_fields"):
        _field(console, "updated_fields", ", ".join(d["updated_fields"]))
    if verbose and "was_cached" in d:
        _field(console, "was_cached", d["was_cached"])


def _render_batch(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render bulk_update / bulk_delete results."""
    _status_line(console, result)
    succeeded = result.data.get("succeeded", [])
    _field(console, "succeeded", len(succeeded))
    _field(console, "failed", 0)
    if verbose:
        for item_id in succeeded:
            console.print(Text(f"  {item_id}", style="obs.id"))


# ── Query renderers ───────────────────────────────────────────────────


def _render_single_item(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render get_item as a panel with metadata then content."""
    item: BaseItem = result.data["item"]
    fm = item.to_frontmatter()
    lines = [f"{key}: {_display(value)}" for key, value in fm.items() if value not in ("", [])]
    content = "\n".join(lines)
    if item.content:
        content += f"\n\n{item.content.strip()}"

    title = Text(f"{item.id} - {item.title}")
    style = style_for_type(str(item.type))
    console.print(Panel(Text(content), title=title, border_style=style or "dim", expand=False))


def _display(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    if isinstance(value, dict):
        return _json.dumps(value, separators=(",", ":"))
    return str(value)


def _render_item_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render search_items or list_items results as a table."""
    items = result.data.get("items", [])
    scores = result.data.get("scores") if result.op == "search_items" else None
    console.print(_item_table(items, scores=scores, verbose=verbose))

    total = result.data.get("total", result.data.get("count", len(items)))
    footer = f"\n{len(items)} of {total} items"
    if result.data.get("has_more"):
        footer += f" (more after offset {result.data['offset'] + len(items)})"
    console.print(footer)


def _render_scan(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render scan_vault with per-type counts and outstanding tasks."""
    d = result.data
    if "vault" in d:
        console.print(Text(f"Vault: {d['vault']}", style="obs.path"))
    console.print(f"Scanned [obs.title]{d.get('count', 0)}[/obs.title] items")
    by_type = d.get("by_type", {})
    console.print("  " + ", ".join(f"{kind}: {n}" for kind, n in by_type.items()))

    outstanding: list[Task] | None = d.get("outstanding")
    if outstanding is None:
        return
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title", style="obs.title")
    table.add_column("Status")
    table.add_column("Due")
    table.add_column("Area")
    table.add_column("Project")
    status_styles = {"In Progress": "bold yellow", "Blocked": "red", "To Do": ""}
    for n, task in enumerate(outstanding, start=1):
        table.add_row(
            str(n),
            Text(task.title),
            Text(task.status, style=status_styles.get(task.status, "dim")),
            item_due_date(task) or "No Due Date",
            _area_of(task) or "Unassigned",
            task.parent_projects[0] if task.parent_projects else "",
        )
    console.print()
    console.print(table)
    console.print(f"\nTotal outstanding tasks: {d.get('outstanding_total', len(outstanding))}")


def _render_items_by(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    console.print(_item_table(items, verbose=verbose))
    console.print(f"\n{result.data.get('count', len(items))} items")


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, _json.dumps(value, separators=(",", ":"), default=str))
        else:
            _field(console, key, value)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Mutations
    "create_item": _render_mutation,
    "update_item": _render_mutation,
    "delete_item": _render_mutation,
    "bulk_update": _render_batch,
    "bulk_delete": _render_batch,
    # Query
    "scan_vault": _render_scan,
    "get_item": _render_single_item,
    "search_items": _render_item_table,
    "list_items": _render_item_table,
    "get_items_by_type": _render_items_by,
    "get_items_by_area": _render_items_by,
    "get_items_by_status": _render_items_by,
    "get_items_by_tags": _render_items_by,
}

