"""FastMCP server setup.

Optional extra: guarded behind try/except ImportError.
Transport: stdio default, streamable HTTP optional.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

mcp_available = False
_FastMCP: Any = None

try:
    from mcp.server.fastmcp import FastMCP as _FastMCP  # type: ignore[no-redef,import-not-found]

    mcp_available = True
except ImportError:
    pass

__all__ = ["create_server", "mcp_available"]


def create_server(
    *,
    vault_root: Path | None = None,
    config_path: str | Path | None = None,
    host: str = "127.0.0.1",
    port: int = 8000,
) -> Any:
    """Create and configure the MCP server.

    Builds a VaultStore for *vault_root* (or the directory holding the
    discovered ``obsvault.toml``, or CWD) and registers all tools.
    Returns the FastMCP instance.

    *host* and *port* configure the bind address for HTTP transports.
    They are ignored when using stdio.

    Raises RuntimeError if the mcp extra is not installed.
    """
    if not mcp_available or _FastMCP is None:
        msg = "MCP extra not installed. Install with: pip install obsvault[mcp]"
        raise RuntimeError(msg)

    from obsvault.config.settings import ObsSettings
    from obsvault.mcp.tools import register_tools
    from obsvault.services.store import VaultStore

    settings = ObsSettings.load(config_path=config_path, vault_root=vault_root)
    store = VaultStore(settings)

    server = _FastMCP("obsvault", host=host, port=port)
    register_tools(server, store)
    return server
