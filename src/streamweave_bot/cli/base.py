"""Base utilities and shared imports for CLI module."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..automation import AutomationEngine, Capabilities
from ..core import BotConfig, get_logger, setup_logging

logger = get_logger("cli")


def _has_valid_logging_config(logging_config: Any) -> bool:
    """Return True when logging config looks like a real LoggingConfig."""

    if logging_config is None:
        return False
    level = getattr(logging_config, "level", None)
    log_format = getattr(logging_config, "format", None)
    return isinstance(level, str) and isinstance(log_format, str)


def load_config(args: argparse.Namespace) -> BotConfig:
    """Load the configuration named by ``--config`` and apply CLI overrides.

    A missing configuration file falls back to the defaults so the CLI works
    against a bare data directory.
    """
    config_path = Path(getattr(args, "config", "config.yaml"))
    if config_path.exists():
        config = BotConfig.load(config_path)
    else:
        logger.debug("Config file %s not found; using defaults", config_path)
        config = BotConfig()

    data_dir = getattr(args, "data_dir", None)
    if data_dir:
        config.automation.data_dir = str(data_dir)
    if getattr(args, "debug", False):
        config.logging.level = "DEBUG"

    if _has_valid_logging_config(config.logging):
        setup_logging(config.logging)
    return config


def build_engine(config: BotConfig, capabilities: Capabilities | None = None) -> AutomationEngine:
    # One-shot commands never watch the documents, whatever hot_reload says
    return AutomationEngine.from_config(config, capabilities, watch=False)


__all__ = [
    "Console",
    "Panel",
    "Path",
    "Table",
    "__version__",
    "BotConfig",
    "_has_valid_logging_config",
    "build_engine",
    "get_logger",
    "load_config",
    "logger",
    "setup_logging",
]
