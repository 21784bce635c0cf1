"""
CLI output helpers built on rich.

Respects NO_COLOR and FORCE_COLOR; falls back to plain text when stdout is
not a TTY.
"""

from __future__ import annotations

import os

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

LAYERCONF_THEME = Theme(
    {
        "info": "#88C0D0",
        "success": "#A3BE8C",
        "warning": "#EBCB8B",
        "error": "#BF616A bold",
        "muted": "#D8DEE9",
        "null": "#B48EAD italic",
    }
)

console = Console(
    theme=LAYERCONF_THEME,
    force_terminal=os.environ.get("FORCE_COLOR") is not None,
    no_color=os.environ.get("NO_COLOR") is not None,
)

err_console = Console(theme=LAYERCONF_THEME, stderr=True)


def error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[error]✗ {message}[/error]")


def warning(message: str) -> None:
    err_console.print(f"[warning]⚠ {message}[/warning]")


def render_value(value: str | None) -> str:
    """Show null distinctly from the empty string."""
    if value is None:
        return "[null]null[/null]"
    return escape(value) if value else '[muted]""[/muted]'


def print_entries(title: str, entries: dict[str, str | None]) -> None:
    """Print flat configuration entries as a two-column table."""
    table = Table(title=title)
    table.add_column("Path", style="info")
    table.add_column("Value")

    for path, value in entries.items():
        table.add_row(path, render_value(value))

    console.print(table)
