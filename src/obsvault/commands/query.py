"""Commands: search, list, and get items."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from obsvault.commands._base import VaultCommand
from obsvault.domain.types import ItemType

if TYPE_CHECKING:
    from obsvault.commands._context import AppContext

_TYPE_CHOICE = click.Choice([str(t) for t in ItemType])
_SORT_CHOICE = click.Choice(["title", "status", "dueDate", "createdAt", "updatedAt"])


def _drop_unset(values: dict[str, Any]) -> dict[str, Any]:
    return {
        k: list(v) if isinstance(v, tuple) else v
        for k, v in values.items()
        if v not in (None, ())
    }


@click.command(
    cls=VaultCommand,
    examples="""\
  obsvault search projct
  obsvault search "login" --type Task --status "In Progress"
  obsvault search "" --area Work --tags urgent --limit 5""",
)
@click.argument("query")
@click.option("--type", "item_type", type=_TYPE_CHOICE, default=None, help="Only this type.")
@click.option("--area", default=None, help="Only items in this area.")
@click.option("--status", default=None, help="Only items with this status.")
@click.option("--tags", multiple=True, help="Only items with any of these tags (repeatable).")
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Maximum results.")
@click.pass_obj
def search(
    app: AppContext,
    query: str,
    item_type: str | None,
    area: str | None,
    status: str | None,
    tags: tuple[str, ...],
    limit: int | None,
) -> None:
    """Fuzzy search; tolerates misspellings. Scans first when the index is stale."""
    scanned = app.store.ensure_index()
    if scanned is not None and not scanned.ok:
        app.emit(scanned)
        return
    request = _drop_unset(
        {
            "query": query,
            "type": item_type,
            "area": area,
            "status": status,
            "tags": tags,
            "limit": limit,
        }
    )
    app.emit(app.store.search_items(request))


@click.command(
    "list",
    cls=VaultCommand,
    examples="""\
  obsvault list --type Task --sort dueDate
  obsvault list --area Work --status "To Do" --limit 10 --offset 10
  obsvault list --sort updatedAt --desc""",
)
@click.option("--type", "item_type", type=_TYPE_CHOICE, default=None, help="Only this type.")
@click.option("--area", default=None, help="Only items in this area.")
@click.option("--status", default=None, help="Only items with this status.")
@click.option("--tags", multiple=True, help="Only items with any of these tags (repeatable).")
@click.option("--sort", "sort_by", type=_SORT_CHOICE, default="title", help="Sort field.")
@click.option("--desc", is_flag=True, help="Sort descending.")
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Page size.")
@click.option("--offset", type=click.IntRange(min=0), default=0, help="Items to skip.")
@click.pass_obj
def list_cmd(
    app: AppContext,
    item_type: str | None,
    area: str | None,
    status: str | None,
    tags: tuple[str, ...],
    sort_by: str,
    desc: bool,
    limit: int | None,
    offset: int,
) -> None:
    """List items from a fresh scan with filters, sorting, and paging."""
    request = _drop_unset(
        {
            "type": item_type,
            "area": area,
            "status": status,
            "tags": tags,
            "sortBy": sort_by,
            "sortOrder": "desc" if desc else "asc",
            "limit": limit,
            "offset": offset,
        }
    )
    app.emit(app.store.list_items(request))


@click.command(
    cls=VaultCommand,
    examples="""\
  obsvault get task-fix-login-bug-m1abc2
  obsvault --json get _areas-health""",
)
@click.argument("item_id")
@click.pass_obj
def get(app: AppContext, item_id: str) -> None:
    """Show one item with its fields and content."""
    app.emit(app.store.get_item(item_id))
