"""Custom Click base classes with --examples support.

Provides VaultCommand and VaultGroup that accept an ``examples`` parameter.
When ``--examples`` is passed, the command prints usage examples and exits.
"""

from __future__ import annotations

from typing import Any

import click


def _add_examples_option(cmd: click.Command | click.Group, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command or group."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class VaultCommand(click.Command):
    """Click Command subclass that supports an ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class VaultGroup(click.Group):
    """Click Group whose subcommands are VaultCommands by default."""

    command_class = VaultCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


def parse_assignments(pairs: tuple[str, ...]) -> dict[str, Any]:
    """Turn ``KEY=VALUE`` pairs into a dict.

    Values are read as YAML scalars or flow collections, so ``pinned=true``
    is a bool and ``tags=[a, b]`` a list; anything else stays a string.

    Raises:
        click.BadParameter: For a pair without ``=``.
    """
    from ruamel.yaml import YAML, YAMLError

    yaml = YAML(typ="safe", pure=True)
    result: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key.strip():
            msg = f"Expected KEY=VALUE, got {pair!r}"
            raise click.BadParameter(msg, param_hint="--set")
        try:
            value = yaml.load(raw) if raw.strip() else ""
        except YAMLError:
            value = raw
        if value is None or hasattr(value, "isoformat"):
            value = raw
        result[key.strip()] = value
    return result
