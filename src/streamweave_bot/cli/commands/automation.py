"""Automation CLI commands.

Provides the CLI interface for the automation documents:
- Validation of the configuration and the JSON documents
- Simulating an event against console-backed capabilities
- Snapshot export and import
- Inspecting stored variables
"""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ...automation import AutomationError, AutomationEvent, VariableStore
from ...core import validate_automation_documents, validate_yaml_config
from ..base import build_engine, load_config, logger
from ..simulation import console_capabilities


def _parse_data(pairs: list[str] | None) -> dict[str, Any]:
    """Turn ``key=value`` pairs into event data; values are JSON when they parse."""
    data: dict[str, Any] = {}
    for pair in pairs or []:
        key, separator, raw = pair.partition("=")
        if not separator or not key:
            raise ValueError(f"Expected key=value, got {pair!r}")
        try:
            data[key] = json.loads(raw)
        except json.JSONDecodeError:
            data[key] = raw
    return data


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate the configuration file and the automation documents."""
    console = Console()
    errors: list[str] = []

    config_path = Path(args.config)
    if config_path.exists():
        is_valid, config_errors = validate_yaml_config(config_path)
        if not is_valid:
            errors.extend(f"{config_path.name}: {error}" for error in config_errors)

    try:
        config = load_config(args)
    except Exception as e:
        console.print(f"[red]Cannot load configuration: {e}[/]")
        return 1

    directory = config.automation.data_path
    _, document_errors = validate_automation_documents(directory, config.automation)
    errors.extend(document_errors)

    if errors:
        console.print("[red bold]Errors:[/]")
        for error in errors:
            console.print(f"  [red]- {error}[/]")
        return 1

    console.print(f"[green]Configuration and automation documents in {directory} are valid.[/]")
    return 0


def cmd_simulate(args: argparse.Namespace) -> int:
    """Run one event (or one action) against console-backed capabilities."""
    console = Console()
    try:
        config = load_config(args)
        data = _parse_data(args.data)
        engine = build_engine(config, console_capabilities(console, args.files_dir))
    except (AutomationError, ValueError) as e:
        console.print(f"[red]Error: {e}[/]")
        return 1

    event_payload = {
        "type": args.type,
        "platform": args.platform,
        "user": args.user,
        "message": args.message,
        "data": data,
    }

    try:
        if args.action:
            event = AutomationEvent.model_validate(event_payload)
            success = asyncio.run(engine.run_action(args.action, event))
            if not success:
                console.print(f"[yellow]Action {args.action} did not complete successfully[/]")
        else:
            asyncio.run(engine.process_event(event_payload))
    except Exception as e:
        logger.error("Simulation failed: %s", e, exc_info=True)
        console.print(f"[red]Error: {e}[/]")
        return 1

    history = engine.get_execution_history(limit=50)
    if not history:
        console.print("[yellow]No actions ran for this event.[/]")
        return 0

    table = Table(title="Executed Actions")
    table.add_column("Action", style="cyan")
    table.add_column("Trigger", style="magenta")
    table.add_column("Status")
    table.add_column("Duration", style="green")
    for entry in reversed(history):
        status = "[green]OK[/]" if entry["success"] else f"[red]Failed[/] {entry.get('error') or ''}"
        table.add_row(entry["action_name"], entry["trigger"], status, f"{entry['duration']:.3f}s")
    console.print(table)

    if args.save_variables:
        engine.variables.save()
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Export commands and actions as one snapshot document."""
    console = Console()
    try:
        engine = build_engine(load_config(args))
    except AutomationError as e:
        console.print(f"[red]Error: {e}[/]")
        return 1

    snapshot = engine.export_configuration()
    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(snapshot, encoding="utf-8")
        console.print(
            f"[green]Exported {len(engine.commands)} commands and "
            f"{len(engine.actions)} actions to {output_path}[/]"
        )
    else:
        print(snapshot)
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    """Import a snapshot into the automation documents."""
    console = Console()
    import_path = Path(args.import_file)
    if not import_path.exists():
        console.print(f"[red]Import file not found: {import_path}[/]")
        return 1

    try:
        config = load_config(args)
        engine = build_engine(config)
    except AutomationError as e:
        console.print(f"[red]Error: {e}[/]")
        return 1

    if not engine.import_configuration(import_path.read_text(encoding="utf-8")):
        console.print("[red]Import failed; nothing was changed.[/]")
        return 1

    directory = engine.save(config.automation.data_path)
    console.print(
        f"[green]Imported into {directory}: {len(engine.commands)} commands, "
        f"{len(engine.actions)} actions[/]"
    )
    return 0


def cmd_variables(args: argparse.Namespace) -> int:
    """Show stored global or user variables."""
    console = Console()
    config = load_config(args)
    if not config.automation.variables_file:
        console.print("[yellow]No variables file configured.[/]")
        return 0

    store = VariableStore(config.automation.variables_file)
    if args.user:
        values = store.user_variables(args.user)
        title = f"Variables for {args.user}"
    else:
        values = store.globals()
        title = "Global Variables"

    if not values:
        console.print(f"[yellow]{title}: none stored.[/]")
        if not args.user and store.users():
            console.print(f"[dim]Users with variables: {', '.join(sorted(store.users()))}[/]")
        return 0

    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Value", style="green")
    for name, value in sorted(values.items()):
        table.add_row(name, json.dumps(value, ensure_ascii=False))
    console.print(table)

    if not args.user and store.users():
        console.print(
            Panel(
                ", ".join(sorted(store.users())),
                title="Users with variables",
                border_style="blue",
                expand=False,
            )
        )
    return 0


__all__ = ["cmd_export", "cmd_import", "cmd_simulate", "cmd_validate", "cmd_variables"]
