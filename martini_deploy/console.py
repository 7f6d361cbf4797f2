"""Console rendering helpers for the martini-deploy CLI."""
from __future__ import annotations

from typing import Any, Dict, Sequence

from .models import PollOutcome

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()


def mask_secret(value: str) -> str:
    if not value:
        return "(missing)"
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}{'*' * (len(value) - 8)}{value[-4:]}"


def render_configuration_summary(config: Dict[str, Any]) -> None:
    """Render startup configuration summary."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")

    for key, value in config.items():
        rendered = "-" if value is None else str(value)
        table.add_row(key, rendered)

    panel = Panel(
        table,
        title="[bold green]martini-deploy[/bold green]",
        subtitle="[dim]package upload[/dim]",
        border_style="blue",
    )
    console.print(panel)


def render_outputs(values: Dict[str, str]) -> None:
    if not values:
        return
    table = Table(title="Outputs", show_lines=False)
    table.add_column("Key", style="bold cyan")
    table.add_column("Value")
    for key, value in values.items():
        table.add_row(key, value or "[dim](empty)[/dim]")
    console.print(table)


def render_evidence(outcomes: Sequence[PollOutcome]) -> None:
    """Print the status-check evidence, one record per line."""
    if not outcomes:
        return
    console.rule("[bold]Status checks[/bold]")
    for outcome in outcomes:
        style = "green" if outcome.started else "yellow"
        console.print(outcome.to_evidence(), style=style, markup=False, highlight=False)
