"""Logging utilities for the Streamweave automation runtime.

Every component logs through :func:`get_logger`, which places it under the
``streamweave`` namespace. :func:`setup_logging` installs a rich console
handler (plus an optional rotating file) on the root logger and applies the
configured level, with per-component overrides such as::

    logging:
      level: INFO
      component_levels:
        automation.handlers: DEBUG
        automation.watcher: WARNING

Action runs log through :class:`ActionLogAdapter`, which tags each record
with the action, its trigger and the acting user.
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from contextlib import suppress
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

from .config import LoggingConfig

LOGGER_NAMESPACE = "streamweave"

_loggers: dict[str, logging.Logger] = {}
_default_level: int = logging.INFO
_component_levels: dict[str, int] = {}

console = Console()


class CloseOnEmitFileHandler(RotatingFileHandler):
    """A RotatingFileHandler that releases the file after each emit.

    Holding the log file open blocks temporary directory cleanup on Windows,
    which the test-suite relies on.
    """

    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        try:
            super().emit(record)
        finally:
            try:
                self.flush()
            finally:
                # Reopened lazily on the next emit (delay=True)
                self.close()


class ActionLogAdapter(logging.LoggerAdapter):
    """Prefixes messages with the running action and exposes it as record extras.

    The extras ``action_id``, ``action_name``, ``trigger`` and ``user`` are
    available to file formats, e.g. ``%(action_id)s``.
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = self.extra or {}
        kwargs["extra"] = {**extra, **(kwargs.get("extra") or {})}
        return f"[{extra.get('action_name', '?')}] {msg}", kwargs


def action_logger(
    logger: logging.Logger,
    action_id: str,
    action_name: str,
    trigger: str = "manual",
    user: str | None = None,
) -> ActionLogAdapter:
    """Wrap ``logger`` for the records of one action run."""
    return ActionLogAdapter(
        logger,
        {
            "action_id": action_id,
            "action_name": action_name,
            "trigger": trigger,
            "user": user or "-",
        },
    )


def _level_for(name: str) -> int:
    """Level of component ``name``: the longest configured prefix wins."""
    best, best_length = _default_level, -1
    for component, level in _component_levels.items():
        if (name == component or name.startswith(component + ".")) and len(component) > best_length:
            best, best_length = level, len(component)
    return best


def _close_root_handlers(root_logger: logging.Logger) -> None:
    for handler in list(root_logger.handlers):
        with suppress(Exception):
            handler.flush()
        with suppress(Exception):
            handler.close()
    root_logger.handlers.clear()


def _file_handler(config: LoggingConfig, log_path: Path) -> CloseOnEmitFileHandler:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = CloseOnEmitFileHandler(
        log_path,
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding="utf-8",
        delay=True,
    )
    handler.setFormatter(logging.Formatter(config.format))
    return handler


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure logging for the whole application.

    Handlers do not filter by level; each ``streamweave`` logger carries its
    own level so component overrides can be more verbose than the default.

    Args:
        config: LoggingConfig instance. If None, defaults are used.
    """
    global _default_level, _component_levels

    if config is None:
        config = LoggingConfig()

    root_logger = logging.getLogger()
    _close_root_handlers(root_logger)

    _default_level = getattr(logging, config.level)
    _component_levels = {
        name: getattr(logging, level) for name, level in config.component_levels.items()
    }
    root_logger.setLevel(_default_level)
    logging.getLogger(LOGGER_NAMESPACE).setLevel(_default_level)

    root_logger.addHandler(
        RichHandler(
            console=console,
            show_time=True,
            show_path=config.show_path,
            markup=False,
            rich_tracebacks=True,
        )
    )
    if config.log_file:
        root_logger.addHandler(_file_handler(config, Path(config.log_file)))

    for name, lg in _loggers.items():
        lg.setLevel(_level_for(name))

    logger = get_logger("setup")
    logger.info("Logging configured: level=%s", config.level)
    for name, level in sorted(config.component_levels.items()):
        logger.info("Component %s logs at %s", name, level)
    if config.log_file:
        logger.info("Log file: %s", config.log_file)


def get_logger(name: str) -> logging.Logger:
    """Get or create a logger under the ``streamweave`` namespace.

    Args:
        name: Component name, e.g. ``automation.handlers.chat``

    Returns:
        Logger instance
    """
    if name not in _loggers:
        logger = logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
        logger.setLevel(_level_for(name))
        _loggers[name] = logger

    return _loggers[name]


def log_exception(
    logger: logging.Logger | logging.LoggerAdapter, exc: Exception, context: str = ""
) -> None:
    """Log an exception with its traceback and optional context."""
    if context:
        logger.exception("%s: %s", context, exc)
    else:
        logger.exception("Exception occurred: %s", exc)
