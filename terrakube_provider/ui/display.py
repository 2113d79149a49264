"""Display utilities for the terrakube command line."""

import json
from typing import Any, Dict

from rich.console import Console
from rich.table import Table

from ..entities import EntityKind

console = Console()


def display_state(kind: EntityKind, values: Dict[str, Any], title: str = "") -> None:
    """Display the tracked state of one resource in a formatted table.

    Args:
        kind: Kind of the resource.
        values: Tracked state values.
        title: Table title; defaults to the resource type name.
    """
    if not values:
        console.print(f"[yellow]No {kind.name} in state.[/yellow]")
        return

    table = Table(title=title or f"terrakube_{kind.name}", show_header=True, header_style="bold magenta")
    table.add_column("Attribute", style="cyan", no_wrap=True)
    table.add_column("Value")

    for name in kind.state_names():
        table.add_row(name, _format_value(values.get(name)))

    console.print(table)


def display_state_json(values: Dict[str, Any]) -> None:
    """Print state as JSON, for scripting."""
    console.print_json(json.dumps(values, sort_keys=True))


def _format_value(value: Any) -> str:
    """Render an attribute value with a Rich style."""
    if value is None:
        return "[dim](unknown)[/dim]"
    if isinstance(value, bool):
        return "[green]true[/green]" if value else "[red]false[/red]"
    return str(value)
