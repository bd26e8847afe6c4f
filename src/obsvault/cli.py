"""Root CLI group for obsvault with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from obsvault import __version__
from obsvault.commands import register_commands
from obsvault.commands._context import AppContext
from obsvault.config.settings import ObsSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="obsvault")
@click.option(
    "--vault",
    "vault_root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Vault directory (default: directory of obsvault.toml, else CWD).",
)
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug logging.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    vault_root: Path | None,
    json_output: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """obsvault: typed tasks, epics, areas, and resources in an Obsidian vault."""
    ctx.ensure_object(dict)
    settings = ObsSettings.load(
        config_path=config_path,
        vault_root=vault_root,
        json_output=json_output,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
