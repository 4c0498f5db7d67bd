"""CLI argument parser."""

from __future__ import annotations

import argparse

from .. import __version__


def _add_config_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c",
        "--config",
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)",
    )
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Directory holding commands.json and actions.json (overrides the config)",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    Returns:
        ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="streamweave-bot",
        description="Streamweave - chat-bot automation for live streams",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List the trigger types for Twitch
  streamweave-bot triggers --platform twitch

  # Check the configuration and the automation documents
  streamweave-bot validate -c config.yaml

  # Try a chat command against console-backed capabilities
  streamweave-bot simulate --user alice --message "!so bob"

  # Back up and restore commands and actions
  streamweave-bot export -o backup.json
  streamweave-bot import backup.json
        """,
    )

    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s v{__version__}",
        help="Show program's version number and exit",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # triggers
    triggers_parser = subparsers.add_parser("triggers", help="List trigger types")
    triggers_parser.add_argument("--category", help="Category prefix, e.g. Twitch/Chat")
    triggers_parser.add_argument("--platform", help="Platform name, e.g. twitch")
    triggers_parser.add_argument(
        "--categories", action="store_true", help="Only list top-level categories"
    )
    triggers_parser.add_argument(
        "--verbose", action="store_true", help="Show the template variables of each trigger"
    )

    # validate
    validate_parser = subparsers.add_parser(
        "validate", help="Validate the configuration and automation documents"
    )
    _add_config_arguments(validate_parser)

    # simulate
    simulate_parser = subparsers.add_parser(
        "simulate", help="Run one event against console-backed capabilities"
    )
    _add_config_arguments(simulate_parser)
    simulate_parser.add_argument(
        "-t", "--type", default="command", help="Event type (default: command)"
    )
    simulate_parser.add_argument("-u", "--user", default="viewer", help="Acting user")
    simulate_parser.add_argument("-m", "--message", default="", help="Chat message")
    simulate_parser.add_argument("-p", "--platform", default="twitch", help="Platform name")
    simulate_parser.add_argument(
        "--data",
        action="append",
        metavar="KEY=VALUE",
        help="Event data entry; repeatable, values are parsed as JSON when possible",
    )
    simulate_parser.add_argument("--action", help="Run this action id instead of matching")
    simulate_parser.add_argument(
        "--files-dir", default=None, help="Base directory for file read/write steps"
    )
    simulate_parser.add_argument(
        "--save-variables",
        action="store_true",
        help="Persist variables changed during the simulation",
    )

    # export
    export_parser = subparsers.add_parser("export", help="Export commands and actions")
    _add_config_arguments(export_parser)
    export_parser.add_argument("-o", "--output", help="Output file (default: stdout)")

    # import
    import_parser = subparsers.add_parser("import", help="Import an exported snapshot")
    _add_config_arguments(import_parser)
    import_parser.add_argument("import_file", help="Snapshot JSON file")

    # variables
    variables_parser = subparsers.add_parser("variables", help="Show stored variables")
    _add_config_arguments(variables_parser)
    variables_parser.add_argument("--user", help="Show the variables of this user")

    return parser


__all__ = ["build_parser"]
