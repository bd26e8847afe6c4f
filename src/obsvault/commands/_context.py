"""AppContext: shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Provides lazy VaultStore initialization and
centralized result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from obsvault.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from obsvault.config.settings import ObsSettings
    from obsvault.services.result import ServiceResult
    from obsvault.services.store import VaultStore


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The store is created on first use so ``--help`` and ``--version``
    never touch the vault.
    """

    def __init__(self, settings: ObsSettings) -> None:
        self.settings = settings
        self._store: VaultStore | None = None

        from obsvault.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def store(self) -> VaultStore:
        """The store instance (created lazily on first access)."""
        if self._store is None:
            from obsvault.services.store import VaultStore

            self._store = VaultStore(self.settings)
        return self._store

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
