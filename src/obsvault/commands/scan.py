"""Command: scan the vault and show outstanding tasks."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from obsvault.commands._base import VaultCommand
from obsvault.services.queries import outstanding_tasks
from obsvault.services.result import ServiceResult

if TYPE_CHECKING:
    from obsvault.commands._context import AppContext


@click.command(
    cls=VaultCommand,
    examples="""\
  obsvault scan
  obsvault --vault ~/Obsidian/Main scan --top 10
  obsvault --json scan""",
)
@click.option(
    "--top",
    type=click.IntRange(min=1),
    default=None,
    help="How many outstanding tasks to show (default: tools.outstanding_limit).",
)
@click.pass_obj
def scan(app: AppContext, top: int | None) -> None:
    """Rescan the vault and list outstanding tasks by status and due date."""
    result = app.store.scan_vault()
    if not result.ok:
        app.emit(result)
        return

    tasks = outstanding_tasks(result.data["items"])
    limit = top or app.settings.tools.outstanding_limit
    app.emit(
        ServiceResult(
            ok=True,
            op=result.op,
            data={
                "vault": str(app.store.root),
                "count": result.data["count"],
                "by_type": result.data["by_type"],
                "outstanding": tasks[:limit],
                "outstanding_total": len(tasks),
            },
            warnings=result.warnings,
        )
    )
