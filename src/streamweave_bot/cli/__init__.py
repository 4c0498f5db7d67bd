"""CLI module for Streamweave.

This module provides the command-line interface for the automation runtime.
"""

from __future__ import annotations

from collections.abc import Sequence

from .base import build_engine, load_config, logger
from .commands import (
    cmd_export,
    cmd_import,
    cmd_simulate,
    cmd_triggers,
    cmd_validate,
    cmd_variables,
)
from .parser import build_parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point.

    Args:
        argv: Optional sequence of CLI arguments (without the program name).

    Returns:
        Process exit code. 0 for success.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        raise SystemExit(0)

    handlers = {
        "triggers": cmd_triggers,
        "validate": cmd_validate,
        "simulate": cmd_simulate,
        "export": cmd_export,
        "import": cmd_import,
        "variables": cmd_variables,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 1


__all__ = [
    "main",
    "build_parser",
    "build_engine",
    "load_config",
    "logger",
    "cmd_export",
    "cmd_import",
    "cmd_simulate",
    "cmd_triggers",
    "cmd_validate",
    "cmd_variables",
]
