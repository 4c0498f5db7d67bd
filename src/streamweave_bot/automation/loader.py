"""Reading and writing the automation JSON documents and snapshots."""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..core.logger import get_logger
from .exceptions import DocumentLoadError
from .models import Action, ActionQueue, AutomationSnapshot, Command

logger = get_logger("automation.loader")


def read_document(path: str | Path) -> Any:
    """Parse a JSON document; a missing or blank file reads as ``None``.

    Raises:
        DocumentLoadError: If the file cannot be read or is not valid JSON.
    """
    path = Path(path)
    if not path.exists():
        return None
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DocumentLoadError(f"Cannot read {path}: {exc}", str(path)) from exc
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise DocumentLoadError(f"Invalid JSON in {path}: {exc}", str(path)) from exc


def collection(data: Any, *keys: str) -> list[Any]:
    """Entity list of a document that is either an array or an object."""
    if data is None:
        return []
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in keys:
            value = data.get(key)
            if isinstance(value, list):
                return value
        return []
    raise DocumentLoadError(f"Expected an array or an object, got {type(data).__name__}")


def _validate_all(entries: list[Any], model: type, path: Path) -> list[Any]:
    try:
        return [model.model_validate(entry) for entry in entries]
    except ValidationError as exc:
        raise DocumentLoadError(f"Invalid entry in {path}: {exc}", str(path)) from exc


def load_commands(path: str | Path) -> list[Command]:
    """Load the commands document; a missing file yields an empty list."""
    path = Path(path)
    entries = collection(read_document(path), "commands", "Commands")
    commands = _validate_all(entries, Command, path)
    logger.debug("Loaded %s commands from %s", len(commands), path)
    return commands


def load_actions(path: str | Path) -> tuple[list[Action], list[ActionQueue]]:
    """Load the actions document and the queues it may carry."""
    path = Path(path)
    data = read_document(path)
    actions = _validate_all(collection(data, "actions", "Actions"), Action, path)
    queues: list[ActionQueue] = []
    if isinstance(data, dict):
        queues = _validate_all(collection(data, "queues", "Queues"), ActionQueue, path)
    logger.debug("Loaded %s actions and %s queues from %s", len(actions), len(queues), path)
    return actions, queues


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    tmp_path.replace(path)


def save_commands(path: str | Path, commands: Iterable[Command]) -> None:
    _write_json(Path(path), [command.to_document() for command in commands])


def save_actions(
    path: str | Path,
    actions: Iterable[Action],
    queues: Iterable[ActionQueue] = (),
) -> None:
    """Write the actions document; queues switch it to the object form."""
    documents = [action.to_document() for action in actions]
    queue_documents = [queue.to_document() for queue in queues]
    if queue_documents:
        _write_json(Path(path), {"actions": documents, "queues": queue_documents})
    else:
        _write_json(Path(path), documents)


def build_snapshot(
    commands: Iterable[Command],
    actions: Iterable[Action],
    queues: Iterable[ActionQueue] = (),
) -> AutomationSnapshot:
    return AutomationSnapshot(commands=list(commands), actions=list(actions), queues=list(queues))


def parse_snapshot(json_data: str) -> tuple[AutomationSnapshot, set[str]]:
    """Parse and validate an exported snapshot.

    Returns:
        The snapshot and the names of the collections the document carried.

    Raises:
        DocumentLoadError: If the JSON is malformed, carries no collection, or
            any entry fails validation.
    """
    try:
        data = json.loads(json_data)
    except (json.JSONDecodeError, TypeError) as exc:
        raise DocumentLoadError(f"Invalid snapshot JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise DocumentLoadError("Snapshot must be a JSON object")

    present = {key for key in ("commands", "actions", "queues") if data.get(key) is not None}
    if not present & {"commands", "actions"}:
        raise DocumentLoadError("Snapshot carries neither commands nor actions")
    for key in present:
        if not isinstance(data[key], list):
            raise DocumentLoadError(f"Snapshot field {key!r} must be an array")

    try:
        snapshot = AutomationSnapshot.model_validate(data)
    except ValidationError as exc:
        raise DocumentLoadError(f"Invalid snapshot: {exc}") from exc
    return snapshot, present


__all__ = [
    "build_snapshot",
    "collection",
    "load_actions",
    "load_commands",
    "parse_snapshot",
    "read_document",
    "save_actions",
    "save_commands",
]
