"""Command: update item fields."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from obsvault.commands._base import VaultCommand, parse_assignments

if TYPE_CHECKING:
    from obsvault.commands._context import AppContext


@click.command(
    cls=VaultCommand,
    examples="""\
  obsvault update task-fix-login-bug-m1abc2 --status Done
  obsvault update _projects-fix-login-bug --title "Fix login bug on mobile"
  obsvault update _areas-health --set currentFocus="{primary: Sleep}"
  obsvault update ID1 ID2 ID3 --status Blocked""",
)
@click.argument("item_ids", nargs=-1, required=True)
@click.option("--title", default=None, help="New title (moves the file).")
@click.option("--status", default=None, help="New status.")
@click.option("--tags", multiple=True, help="Replace tags (repeatable).")
@click.option("--content", default=None, help="New description text.")
@click.option(
    "--set",
    "assignments",
    multiple=True,
    metavar="FIELD=VALUE",
    help="Set any other field by its camelCase name (repeatable).",
)
@click.pass_obj
def update(
    app: AppContext,
    item_ids: tuple[str, ...],
    title: str | None,
    status: str | None,
    tags: tuple[str, ...],
    content: str | None,
    assignments: tuple[str, ...],
) -> None:
    """Update one or more items. Several IDs apply the same change to each."""
    changes: dict[str, Any] = parse_assignments(assignments)
    if title is not None:
        changes["title"] = title
    if status is not None:
        changes["status"] = status
    if tags:
        changes["tags"] = list(tags)
    if content is not None:
        changes["content"] = content

    if not changes:
        click.echo("No changes specified. Use --help for options.", err=True)
        raise SystemExit(1)

    if len(item_ids) == 1:
        app.emit(app.store.update_item(item_ids[0], changes))
    else:
        app.emit(app.store.bulk_update(list(item_ids), changes))
