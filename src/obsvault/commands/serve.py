"""serve: start the MCP server (requires obsvault[mcp] extra)."""

from __future__ import annotations

import click

from obsvault.commands._base import VaultCommand


@click.command(
    cls=VaultCommand,
    examples="""\
  # Start the MCP server (stdio transport, default)
  obsvault --vault ~/Obsidian/Main serve

  # Streamable HTTP on custom host/port
  obsvault serve --transport streamable-http --host 0.0.0.0 --port 9000""",
)
@click.option(
    "--transport",
    default="stdio",
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    help="MCP transport protocol.",
)
@click.option("--host", default="127.0.0.1", help="Bind address (HTTP transports only).")
@click.option("--port", default=8000, type=int, help="Listen port (HTTP transports only).")
@click.pass_obj
def serve(app: object, transport: str, host: str, port: int) -> None:
    """Start the MCP server (requires obsvault[mcp] extra)."""
    from obsvault.mcp.server import create_server, mcp_available

    if not mcp_available:
        click.echo("MCP not installed. Install with: pip install obsvault[mcp]", err=True)
        raise SystemExit(1)

    from obsvault.commands._context import AppContext

    assert isinstance(app, AppContext)
    server = create_server(
        vault_root=app.settings.vault_root,
        config_path=app.settings.config_path,
        host=host,
        port=port,
    )
    server.run(transport=transport)
