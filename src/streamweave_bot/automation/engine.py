"""Automation engine: turns platform events into action runs.

This module provides the AutomationEngine class that coordinates:
- Command matching, permission checks and cooldown gating
- Trigger lookup for stream events (follows, cheers, raids, ...)
- Per-event execution contexts and the Run Action recursion guard
- Action and queue serialization
- Execution history, snapshot export/import and document reloads
"""

from __future__ import annotations

import asyncio
import json
import random
import time
from collections.abc import Awaitable, Callable, Mapping
from contextlib import AsyncExitStack
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..core.config import AutomationConfig, BotConfig, HTTPClientConfig
from ..core.logger import action_logger, get_logger, log_exception
from .actions import ActionCatalog
from .capabilities import Capabilities
from .commands import CommandCatalog
from .context import ExecutionContext
from .exceptions import AutomationError
from .handlers import HandlerRegistry, HandlerServices, create_default_registry
from .interpreter import StepInterpreter
from .loader import (
    build_snapshot,
    load_actions,
    load_commands,
    parse_snapshot,
    save_actions,
    save_commands,
)
from .models import Action, AutomationEvent, Command, EventType, Platform, TriggerType
from .state import CooldownTracker, VariableStore
from .watcher import AutomationFileWatcher, create_engine_watcher

logger = get_logger("automation")

EventInput = AutomationEvent | Mapping[str, Any]


class AutomationEngine:
    """Coordinates the catalogs, the step interpreter and the engine-owned state."""

    def __init__(
        self,
        commands: CommandCatalog | None = None,
        actions: ActionCatalog | None = None,
        capabilities: Capabilities | None = None,
        variables: VariableStore | None = None,
        http_defaults: HTTPClientConfig | None = None,
        cooldowns: CooldownTracker | None = None,
        config: AutomationConfig | None = None,
        registry: HandlerRegistry | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
    ) -> None:
        self.commands = commands or CommandCatalog()
        self.actions = actions or ActionCatalog()
        self.cooldowns = cooldowns or CooldownTracker()
        self.variables = variables or VariableStore()
        self.config = config or AutomationConfig()
        self._rng = rng or random.Random()
        self.services = HandlerServices(
            capabilities=capabilities or Capabilities(),
            variables=self.variables,
            http=http_defaults or HTTPClientConfig(),
            set_action_enabled=self.actions.set_enabled,
            rng=self._rng,
            sleep=sleep or asyncio.sleep,
        )
        self.registry = registry or create_default_registry(self.services)
        self.interpreter = StepInterpreter(self.registry, rng=self._rng)

        self._data_dir: Path | None = None
        self._watcher: AutomationFileWatcher | None = None
        self._action_locks: dict[str, asyncio.Lock] = {}
        self._queue_locks: dict[str, asyncio.Lock] = {}
        self._execution_history: list[dict[str, Any]] = []
        self._max_history: int = 500

    @classmethod
    def from_config(
        cls,
        config: BotConfig,
        capabilities: Capabilities | None = None,
        watch: bool | None = None,
    ) -> AutomationEngine:
        """Build an engine from the bot configuration and load its documents.

        Args:
            config: Bot configuration
            capabilities: Platform capabilities for the steps
            watch: Start the document watcher; defaults to ``automation.hot_reload``
        """
        automation = config.automation
        engine = cls(
            capabilities=capabilities,
            variables=VariableStore(automation.variables_file),
            http_defaults=config.http,
            config=automation,
        )
        if automation.data_path.is_dir():
            engine.load_directory(automation.data_path)
        else:
            logger.info("Automation directory %s does not exist yet", automation.data_path)

        watch = automation.hot_reload if watch is None else watch
        if watch:
            engine.start_watching()
        return engine

    @property
    def capabilities(self) -> Capabilities:
        return self.services.capabilities

    @property
    def data_dir(self) -> Path | None:
        return self._data_dir

    @property
    def watcher(self) -> AutomationFileWatcher | None:
        return self._watcher

    def start_watching(self) -> bool:
        """Reload the documents whenever they change on disk.

        Returns:
            True when the watcher is running
        """
        if self._watcher is not None and self._watcher.is_running():
            return True
        watcher = create_engine_watcher(self)
        watcher.start()
        if not watcher.is_running():
            return False
        self._watcher = watcher
        return True

    def stop_watching(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------
    async def process_event(self, event: EventInput) -> None:
        """Dispatch an incoming event to the matching actions.

        Never raises: malformed events are ignored and unexpected errors are
        logged.
        """
        try:
            if not isinstance(event, AutomationEvent):
                event = AutomationEvent.model_validate(event)
        except ValidationError as exc:
            logger.debug("Ignoring unrecognised event: %s", exc)
            return

        try:
            if event.type == EventType.COMMAND:
                await self._process_command(event)
            else:
                await self._process_stream_event(event)
        except Exception as exc:
            logger.error(
                "Failed to process %s event from %s: %s",
                event.type.value,
                event.user,
                exc,
                exc_info=True,
            )

    async def _process_command(self, event: AutomationEvent) -> None:
        if not event.message:
            logger.debug("Ignoring command event without a message from %s", event.user)
            return
        command = self.commands.match_command(event.message, Platform.from_name(event.platform))
        if command is None:
            return
        if not command.is_permitted(event.user):
            logger.debug("User %s may not run command %s", event.user, command.command)
            return
        if not self.cooldowns.try_acquire(
            command.id, command.global_cooldown, command.user_cooldown, event.user
        ):
            logger.debug("Command %s is on cooldown for %s", command.command, event.user)
            return

        data = {**event.data, "commandId": command.id}
        actions = self.actions.find_actions_by_trigger(TriggerType.COMMAND, data, event.user)
        logger.debug("Command %s matched %s action(s)", command.command, len(actions))
        for action in actions:
            await self._execute_action(action, event, command, trigger="command")

        self.cooldowns.record(command.id, command.global_cooldown, command.user_cooldown, event.user)

    async def _process_stream_event(self, event: AutomationEvent) -> None:
        trigger_type = event.type.trigger_type
        if trigger_type is None:
            return
        actions = self.actions.find_actions_by_trigger(trigger_type, event.data, event.user)
        for action in actions:
            await self._execute_action(action, event, trigger=event.type.value)

    # ------------------------------------------------------------------
    # Contexts
    # ------------------------------------------------------------------
    def build_context(
        self, event: AutomationEvent | None = None, command: Command | None = None
    ) -> ExecutionContext:
        """Create the execution context for one action run of an event."""
        user = event.user if event else None
        message = (event.message if event else None) or ""
        platform = event.platform if event else "twitch"
        args: dict[str, Any] = dict(event.data) if event else {}

        raw_input = ""
        if command is not None:
            raw_input = self.commands.remainder(command, message)
            for position, token in enumerate(raw_input.split()):
                args[f"input{position}"] = token
            args["rawInput"] = raw_input

        variables: dict[str, Any] = {
            "user": user or None,
            "userName": user or None,
            "platform": platform,
            "message": message,
            "rawInput": raw_input,
        }
        if command is not None:
            variables["command"] = command.command
            variables["commandId"] = command.id

        input0 = args.get("input0")
        if isinstance(input0, str) and input0.strip():
            target = input0.strip().lstrip("@")
            variables["targetUser"] = target
            variables["targetUserName"] = target

        context = ExecutionContext(
            user=user,
            message=message,
            raw_input=raw_input,
            platform=platform,
            args=args,
            variables=variables,
        )
        context.run_action_by_id = self._make_runner(context)
        return context

    def _make_runner(self, context: ExecutionContext) -> Callable[[str], Awaitable[bool]]:
        async def run_action_by_id(action_id: str) -> bool:
            if action_id in context.action_stack:
                logger.warning(
                    "Prevented recursive Run Action loop: %s (stack: %s)",
                    action_id,
                    " -> ".join(context.action_stack),
                )
                return False
            target = self.actions.get(action_id)
            if target is None:
                logger.warning("Run Action target not found: %s", action_id)
                return False

            context.action_stack.append(action_id)
            try:
                await self.interpreter.run_steps(
                    target.sub_actions, context, target.always_run, target.random_action
                )
            finally:
                context.action_stack.pop()
            return True

        return run_action_by_id

    # ------------------------------------------------------------------
    # Action execution
    # ------------------------------------------------------------------
    async def _execute_action(
        self,
        action: Action,
        event: AutomationEvent | None,
        command: Command | None = None,
        trigger: str = "manual",
    ) -> bool:
        if not action.enabled:
            return False
        queue = self.actions.get_queue(action.queue)
        if queue is not None and queue.paused:
            logger.info("Queue %s is paused; not running action %s", queue.name, action.name)
            return False

        async with AsyncExitStack() as stack:
            if queue is not None and queue.blocking:
                await stack.enter_async_context(self._lock_for(self._queue_locks, queue.id))
            if not action.concurrent:
                await stack.enter_async_context(self._lock_for(self._action_locks, action.id))
            return await self._run_action_steps(action, event, command, trigger)

    @staticmethod
    def _lock_for(locks: dict[str, asyncio.Lock], key: str) -> asyncio.Lock:
        lock = locks.get(key)
        if lock is None:
            lock = locks[key] = asyncio.Lock()
        return lock

    async def _run_action_steps(
        self,
        action: Action,
        event: AutomationEvent | None,
        command: Command | None,
        trigger: str,
    ) -> bool:
        context = self.build_context(event, command)
        context.action_stack.append(action.id)
        run_log = action_logger(logger, action.id, action.name, trigger, context.user)
        run_log.info("Executing action (trigger: %s)", trigger)

        start_time = time.time()
        error: str | None = None
        try:
            success = await self.interpreter.run_steps(
                action.sub_actions, context, action.always_run, action.random_action
            )
            if not success:
                error = "One or more steps failed"
        except Exception as exc:
            log_exception(run_log, exc, "Action failed")
            success = False
            error = str(exc)

        if not action.exclude_from_history:
            self._record_execution(
                {
                    "action_id": action.id,
                    "action_name": action.name,
                    "trigger": trigger,
                    "user": context.user,
                    "success": success,
                    "error": error,
                    "broke": context.break_requested,
                    "duration": time.time() - start_time,
                    "timestamp": datetime.now().isoformat(),
                }
            )
        return success

    async def run_action(self, action_id: str, event: EventInput | None = None) -> bool:
        """Manually run an action, optionally with an event for its context.

        Returns:
            True if the action ran and no step failed
        """
        action = self.actions.get(action_id)
        if action is None:
            logger.warning("Action not found: %s", action_id)
            return False
        if not action.enabled:
            logger.warning("Action is disabled: %s", action.name)
            return False
        if event is not None and not isinstance(event, AutomationEvent):
            event = AutomationEvent.model_validate(event)
        return await self._execute_action(action, event, trigger="manual")

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    def _record_execution(self, result: dict[str, Any]) -> None:
        self._execution_history.append(result)
        if len(self._execution_history) > self._max_history:
            self._execution_history = self._execution_history[-self._max_history :]

    def get_execution_history(
        self,
        action_name: str | None = None,
        limit: int = 20,
    ) -> list[dict[str, Any]]:
        """Get execution history for actions.

        Args:
            action_name: Optional filter by action name
            limit: Maximum number of entries to return

        Returns:
            List of execution history entries (newest first)
        """
        history = self._execution_history
        if action_name:
            history = [h for h in history if h.get("action_name") == action_name]
        return list(reversed(history[-limit:]))

    def clear_history(self) -> None:
        self._execution_history.clear()

    # ------------------------------------------------------------------
    # Snapshots and documents
    # ------------------------------------------------------------------
    def export_configuration(self) -> str:
        snapshot = build_snapshot(self.commands.all(), self.actions.all(), self.actions.queues())
        return json.dumps(snapshot.to_document(), indent=2, ensure_ascii=False)

    def import_configuration(self, json_data: str) -> bool:
        """Upsert commands, actions and queues from an exported snapshot.

        Nothing changes unless the whole document validates.
        """
        try:
            snapshot, present = parse_snapshot(json_data)
        except AutomationError as exc:
            logger.error("Failed to import configuration: %s", exc)
            return False

        for command in snapshot.commands:
            self.commands.create(command)
        for action in snapshot.actions:
            self.actions.create(action)
        if "queues" in present:
            queues = {queue.id: queue for queue in self.actions.queues()}
            queues.update((queue.id, queue) for queue in snapshot.queues)
            self.actions.set_queues(queues.values())
        logger.info(
            "Imported %s commands and %s actions",
            len(snapshot.commands),
            len(snapshot.actions),
        )
        return True

    def load_directory(self, path: str | Path | None = None) -> None:
        """Replace the catalogs with the documents in ``path``.

        Raises:
            AutomationError: If the directory is missing or a document is invalid.
        """
        directory = Path(path) if path is not None else self.config.data_path
        if not directory.is_dir():
            raise AutomationError(f"Automation directory not found: {directory}")

        commands = load_commands(directory / self.config.commands_file)
        actions, queues = load_actions(directory / self.config.actions_file)
        self.commands.replace(commands)
        self.actions.replace(actions, queues)
        self._data_dir = directory
        logger.info(
            "Loaded %s commands and %s actions from %s", len(commands), len(actions), directory
        )

    def reload(self) -> bool:
        """Reload the current data directory; the catalogs stay untouched on failure."""
        directory = self._data_dir or self.config.data_path
        try:
            self.load_directory(directory)
        except AutomationError as exc:
            logger.error("Failed to reload automation documents: %s", exc)
            return False
        return True

    def save(self, path: str | Path | None = None) -> Path:
        """Write both documents to ``path`` (default: the current data directory)."""
        directory = Path(path) if path is not None else (self._data_dir or self.config.data_path)
        save_commands(directory / self.config.commands_file, self.commands.all())
        save_actions(directory / self.config.actions_file, self.actions.all(), self.actions.queues())
        logger.info("Saved automation documents to %s", directory)
        return directory


__all__ = ["AutomationEngine", "EventInput"]
