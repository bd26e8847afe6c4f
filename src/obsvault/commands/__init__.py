"""Subcommand modules for obsvault.

Provides register_commands() which uses deferred imports to keep
``obsvault --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the create group and the standalone commands on the root CLI group."""
    # --- Groups ---
    from obsvault.commands.create import create

    cli.add_command(create)

    # --- Standalone commands ---
    from obsvault.commands.delete import delete
    from obsvault.commands.query import get, list_cmd, search
    from obsvault.commands.scan import scan
    from obsvault.commands.serve import serve
    from obsvault.commands.update import update

    cli.add_command(scan)
    cli.add_command(update)
    cli.add_command(search)
    cli.add_command(list_cmd)
    cli.add_command(get)
    cli.add_command(delete)
    cli.add_command(serve)
