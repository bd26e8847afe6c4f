"""Rich Console factory and theme for obsvault output.

Consoles render into a StringIO buffer, preserving the
``format_result() -> str`` contract. In non-TTY environments (tests,
pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

OBS_THEME = Theme(
    {
        "obs.ok": "bold green",
        "obs.error": "bold red",
        "obs.op": "bold cyan",
        "obs.key": "dim",
        "obs.id": "bold blue",
        "obs.path": "dim",
        "obs.title": "bold",
        "obs.type.task": "yellow",
        "obs.type.epic": "magenta",
        "obs.type.area": "green",
        "obs.type.resource": "blue",
        "obs.score": "magenta",
    }
)


def style_for_type(item_type: str) -> str:
    """Theme style for an item type, or ``""`` when unknown."""
    key = f"obs.type.{item_type.lower()}"
    return key if key in OBS_THEME.styles else ""


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=OBS_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
