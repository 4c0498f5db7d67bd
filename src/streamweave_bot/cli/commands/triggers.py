"""Trigger catalog CLI command."""

from __future__ import annotations

import argparse

from rich.console import Console
from rich.table import Table

from ...automation import TriggerCatalog


def cmd_triggers(args: argparse.Namespace) -> int:
    """List trigger definitions, optionally filtered by category or platform."""
    console = Console()
    catalog = TriggerCatalog()

    if args.categories:
        for category in catalog.categories():
            console.print(category)
        return 0

    definitions = catalog.all()
    if args.category:
        category_ids = {d.id for d in catalog.by_category(args.category)}
        definitions = [d for d in definitions if d.id in category_ids]
    if args.platform:
        platform_ids = {d.id for d in catalog.by_platform(args.platform)}
        definitions = [d for d in definitions if d.id in platform_ids]

    if not definitions:
        console.print("[yellow]No triggers match.[/]")
        return 0

    table = Table(title="Triggers")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Category", style="magenta")
    table.add_column("Platform")
    if args.verbose:
        table.add_column("Variables", style="green")

    for definition in definitions:
        row = [
            str(definition.id),
            definition.name,
            definition.category,
            definition.platform or "-",
        ]
        if args.verbose:
            row.append(", ".join(variable.name for variable in definition.variables))
        table.add_row(*row)

    console.print(table)
    return 0


__all__ = ["cmd_triggers"]
