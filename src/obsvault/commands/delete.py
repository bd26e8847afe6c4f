"""Command: delete items."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from obsvault.commands._base import VaultCommand

if TYPE_CHECKING:
    from obsvault.commands._context import AppContext


@click.command(
    cls=VaultCommand,
    examples="""\
  obsvault delete task-old-idea-m1abc2
  obsvault delete _projects-old-idea _projects-stale-task --yes""",
)
@click.argument("item_ids", nargs=-1, required=True)
@click.option("-y", "--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_obj
def delete(app: AppContext, item_ids: tuple[str, ...], yes: bool) -> None:
    """Delete items. The file is copied to _backups/ first when backups are on."""
    if not yes and not app.settings.json_output:
        click.confirm(f"Delete {len(item_ids)} item(s)?", abort=True)

    if len(item_ids) == 1:
        app.emit(app.store.delete_item(item_ids[0]))
    else:
        app.emit(app.store.bulk_delete(list(item_ids)))
