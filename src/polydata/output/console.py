"""Rich Console factory, theme and renderers for polydata output.

Creates Console instances that render to a StringIO buffer, preserving a
``render_*() -> str`` contract. In non-TTY environments (tests, pipes)
Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO
from typing import Any

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

POLYDATA_THEME = Theme(
    {
        "pd.name": "bold",
        "pd.kind": "bold cyan",
        "pd.field": "green",
        "pd.method": "magenta",
        "pd.tag": "bold blue",
        "pd.key": "dim",
        "pd.error": "bold red",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=POLYDATA_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def render_description(description: dict[str, Any], *, no_color: bool = False) -> str:
    """Render a :func:`~polydata.output.describe.describe_constructor` result."""
    console = create_console(no_color=no_color)
    console.print(f"[pd.name]{description['name']}[/] [pd.key]({description['kind']})[/]")
    console.print(f"[pd.key]fields:[/] [pd.field]{', '.join(description['fields']) or '-'}[/]")
    console.print(f"[pd.key]methods:[/] [pd.method]{', '.join(description['methods']) or '-'}[/]")

    variants = description.get("variants")
    if variants:
        table = Table(title=f"variants by {description['discriminator']}", title_justify="left")
        table.add_column("tag", style="pd.tag")
        table.add_column("fields", style="pd.field")
        table.add_column("methods", style="pd.method")
        for tag, info in variants.items():
            table.add_row(tag, ", ".join(info["fields"]), ", ".join(info["methods"]) or "-")
        console.print(table)
    return get_output(console)
