"""CLI command handlers package."""

from .automation import cmd_export, cmd_import, cmd_simulate, cmd_validate, cmd_variables
from .triggers import cmd_triggers

__all__ = [
    "cmd_export",
    "cmd_import",
    "cmd_simulate",
    "cmd_triggers",
    "cmd_validate",
    "cmd_variables",
]
