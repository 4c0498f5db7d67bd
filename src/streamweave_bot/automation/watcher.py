"""Automation document watcher for hot-reloading."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from watchdog.observers import Observer

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer as ObserverClass

from ..core.config import AutomationConfig
from ..core.logger import get_logger
from ..core.validation import validate_automation_documents

logger = get_logger("automation.watcher")


def _event_path(raw: Any) -> Path:
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return Path(bytes(raw).decode("utf-8")).resolve()
    return Path(str(raw)).resolve()


class AutomationDocumentHandler(FileSystemEventHandler):
    """Reloads the automation documents when one of them changes."""

    def __init__(
        self,
        directory: Path,
        file_names: Iterable[str],
        reload_callback: Callable[[], Any],
        reload_delay: float = 0.4,
        automation: AutomationConfig | None = None,
    ):
        """Initialize the document handler.

        Args:
            directory: Directory holding the documents
            file_names: Document file names to react to
            reload_callback: Called after the documents validated
            reload_delay: Delay in seconds before reloading after a change
            automation: Settings naming the documents, used for validation
        """
        self.directory = directory.resolve()
        self.watched = {(self.directory / name).resolve() for name in file_names}
        self.reload_callback = reload_callback
        self.reload_delay = reload_delay
        self.automation = automation
        self._last_reload_time = 0.0
        self._pending_reload = False

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._handle(_event_path(event.src_path))

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._handle(_event_path(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        # Atomic saves land as a rename onto the document
        if not event.is_directory:
            self._handle(_event_path(event.dest_path))

    def _handle(self, path: Path) -> None:
        if path not in self.watched:
            return

        current_time = time.time()
        if current_time - self._last_reload_time < self.reload_delay:
            return

        logger.info("Automation document changed: %s", path.name)
        self._schedule_reload()

    def _schedule_reload(self) -> None:
        if self._pending_reload:
            return

        self._pending_reload = True
        time.sleep(self.reload_delay)
        try:
            self._reload()
        finally:
            self._pending_reload = False
            self._last_reload_time = time.time()

    def _reload(self) -> None:
        is_valid, errors = validate_automation_documents(self.directory, self.automation)
        if not is_valid:
            logger.error("Automation documents failed validation:")
            for error in errors:
                logger.error("  - %s", error)
            logger.error("Automation documents not reloaded due to validation errors")
            return

        try:
            self.reload_callback()
            logger.info("Automation documents reloaded")
        except Exception as e:
            logger.error("Failed to reload automation documents: %s", e, exc_info=True)


class AutomationFileWatcher:
    """Watches the automation data directory and triggers reloads."""

    def __init__(
        self,
        directory: str | Path,
        reload_callback: Callable[[], Any],
        automation: AutomationConfig | None = None,
    ):
        """Initialize the watcher.

        Args:
            directory: Directory holding ``commands.json`` and ``actions.json``
            reload_callback: Called once changed documents validated,
                typically ``AutomationEngine.reload``
            automation: Settings naming the documents and the debounce delay

        Example:
            ```python
            engine = AutomationEngine.from_config(config)
            watcher = AutomationFileWatcher(engine.data_dir, engine.reload)
            watcher.start()
            ```
        """
        self.automation = automation or AutomationConfig()
        self.directory = Path(directory).resolve()
        self.reload_callback = reload_callback
        self.reload_delay = self.automation.reload_delay
        self._observer: Observer | None = None  # type: ignore[valid-type]
        self._handler: AutomationDocumentHandler | None = None

    def start(self) -> None:
        if self._observer is not None:
            logger.warning("Automation watcher already started")
            return

        if not self.directory.is_dir():
            logger.error("Automation directory not found: %s", self.directory)
            return

        self._handler = AutomationDocumentHandler(
            self.directory,
            (self.automation.commands_file, self.automation.actions_file),
            self.reload_callback,
            self.reload_delay,
            self.automation,
        )
        self._observer = ObserverClass()
        self._observer.schedule(self._handler, str(self.directory), recursive=False)
        self._observer.start()
        logger.info("Watching automation documents in %s", self.directory)

    def stop(self) -> None:
        if self._observer is None:
            return

        self._observer.stop()
        self._observer.join()
        self._observer = None
        self._handler = None
        logger.info("Automation watcher stopped")

    def is_running(self) -> bool:
        """Check if watcher is running.

        Returns:
            True if watcher is running, False otherwise
        """
        return self._observer is not None and self._observer.is_alive()


def create_engine_watcher(engine: Any) -> AutomationFileWatcher:
    """Create a watcher that reloads ``engine`` from its data directory."""
    directory = engine.data_dir or engine.config.data_path
    return AutomationFileWatcher(directory, engine.reload, engine.config)


__all__ = ["AutomationDocumentHandler", "AutomationFileWatcher", "create_engine_watcher"]
