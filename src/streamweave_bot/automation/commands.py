"""Command catalog: storage and chat-text matching of commands."""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from ..core.logger import get_logger
from .models import Command, CommandLocation, CommandMode, Platform

logger = get_logger("automation.commands")


class CommandCatalog:
    """In-memory collection of commands, kept in insertion order.

    There is no priority field: when several commands match a message, the
    one inserted first wins.
    """

    def __init__(self, commands: Iterable[Command] | None = None) -> None:
        self._commands: dict[str, Command] = {}
        for command in commands or []:
            self._commands[command.id] = command

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, command_id: object) -> bool:
        return command_id in self._commands

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------
    def create(self, config: Mapping[str, Any] | Command | None = None, **fields: Any) -> Command:
        """Create a command, filling defaults and generating an id when absent."""
        if isinstance(config, Command):
            command = config.merged(fields) if fields else config
        else:
            command = Command.model_validate({**(config or {}), **fields})
        self._commands[command.id] = command
        logger.debug("Created command %s (%s)", command.name, command.id)
        return command

    def update(self, command_id: str, changes: Mapping[str, Any]) -> Command | None:
        existing = self._commands.get(command_id)
        if existing is None:
            return None
        updated = existing.merged({**changes, "id": command_id})
        self._commands[command_id] = updated
        return updated

    def delete(self, command_id: str) -> bool:
        return self._commands.pop(command_id, None) is not None

    def get(self, command_id: str) -> Command | None:
        return self._commands.get(command_id)

    def all(self) -> list[Command]:
        return list(self._commands.values())

    def by_group(self, group: str) -> list[Command]:
        return [command for command in self._commands.values() if command.group == group]

    def groups(self) -> list[str]:
        return sorted({command.group for command in self._commands.values() if command.group})

    def reset(self) -> None:
        self._commands.clear()

    def replace(self, commands: Iterable[Command]) -> None:
        """Swap the whole collection for ``commands``."""
        self._commands = {command.id: command for command in commands}

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------
    def match_command(self, text: str, platform: Platform | int) -> Command | None:
        """Return the first enabled command for ``platform`` whose trigger matches ``text``."""
        for command in self._commands.values():
            if not command.enabled:
                continue
            if not command.applies_to(Platform(platform)):
                continue
            if self.matches(command, text):
                return command
        return None

    def matches(self, command: Command, text: str) -> bool:
        if command.mode == CommandMode.REGEX:
            pattern = self._compile(command)
            return pattern is not None and pattern.search(text) is not None

        haystack, trigger = self._normalise(command, text)
        if command.location == CommandLocation.START:
            return haystack.startswith(trigger)
        return trigger in haystack

    def remainder(self, command: Command, text: str) -> str:
        """Text following the matched trigger, used to build arguments."""
        if command.mode == CommandMode.REGEX:
            pattern = self._compile(command)
            match = pattern.search(text) if pattern else None
            return text[match.end() :].strip() if match else ""

        haystack, trigger = self._normalise(command, text)
        if command.location == CommandLocation.START:
            if not haystack.startswith(trigger):
                return ""
            return text[len(trigger) :].strip()
        position = haystack.find(trigger)
        if position < 0:
            return ""
        return text[position + len(trigger) :].strip()

    @staticmethod
    def _normalise(command: Command, text: str) -> tuple[str, str]:
        if command.case_sensitive:
            return text, command.command
        return text.lower(), command.command.lower()

    @staticmethod
    def _compile(command: Command) -> re.Pattern[str] | None:
        flags = 0 if command.case_sensitive else re.IGNORECASE
        try:
            return re.compile(command.command, flags)
        except re.error as exc:
            logger.debug("Invalid pattern on command %s (%r): %s", command.id, command.command, exc)
            return None

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------
    def export_commands(self) -> str:
        payload = {
            "commands": [command.to_document() for command in self._commands.values()],
            "version": 1,
            "timestamp": datetime.now().isoformat(),
        }
        return json.dumps(payload, indent=2, ensure_ascii=False)

    def import_commands(self, json_data: str) -> bool:
        """Upsert commands from an export document.

        Nothing changes unless every entry validates.
        """
        try:
            data = json.loads(json_data)
            entries = data.get("commands") if isinstance(data, dict) else None
            if not isinstance(entries, list):
                return False
            commands = [Command.model_validate(entry) for entry in entries]
        except (json.JSONDecodeError, ValidationError, TypeError) as exc:
            logger.warning("Command import rejected: %s", exc)
            return False

        for command in commands:
            self._commands[command.id] = command
        return True


__all__ = ["CommandCatalog"]
