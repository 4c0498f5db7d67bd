"""Configuration and automation document validation, JSON schema generation."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError

from .config import AutomationConfig, BotConfig
from .logger import get_logger

logger = get_logger("validation")


def _format_errors(exc: ValidationError, prefix: str = "") -> list[str]:
    errors = []
    for error in exc.errors():
        loc = " -> ".join(str(x) for x in error["loc"])
        if prefix:
            loc = f"{prefix} -> {loc}" if loc else prefix
        errors.append(f"{loc}: {error['msg']}")
    return errors


def generate_json_schema(output_path: str | Path | None = None) -> dict[str, Any]:
    """Generate JSON schema for BotConfig.

    Args:
        output_path: Optional path to save the schema to

    Returns:
        JSON schema dictionary
    """
    schema = BotConfig.model_json_schema()

    if output_path:
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(schema, f, indent=2)
        logger.info("JSON schema saved to %s", output_file)

    return schema


def validate_yaml_config(config_path: str | Path) -> tuple[bool, list[str]]:
    """Validate a YAML configuration file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    config_file = Path(config_path)
    if not config_file.exists():
        return False, [f"Configuration file not found: {config_path}"]

    try:
        with open(config_file, encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        return False, [f"Invalid YAML syntax: {e}"]

    if yaml_data is None:
        yaml_data = {}
    if not isinstance(yaml_data, dict):
        return False, ["Configuration root must be a mapping"]

    try:
        BotConfig(**yaml_data)
        return True, []
    except ValidationError as e:
        return False, _format_errors(e)


def _document_entries(data: Any, *keys: str) -> list[Any] | None:
    """Pull an entity list out of a document that is an array or an object."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in keys:
            value = data.get(key)
            if isinstance(value, list):
                return value
        return []
    return None


def _validate_entries(
    entries: list[Any], model: type[BaseModel], label: str
) -> list[str]:
    errors: list[str] = []
    for position, entry in enumerate(entries):
        if not isinstance(entry, dict):
            errors.append(f"{label}[{position}]: expected an object")
            continue
        try:
            model.model_validate(entry)
        except ValidationError as e:
            errors.extend(_format_errors(e, f"{label}[{position}]"))
    return errors


def validate_automation_documents(
    directory: str | Path, automation: AutomationConfig | None = None
) -> tuple[bool, list[str]]:
    """Validate ``commands.json`` and ``actions.json`` in a directory.

    Missing documents are fine (they load as empty collections); documents
    that exist must parse and every entry must validate.

    Args:
        directory: Directory holding the documents
        automation: Optional settings naming the document files

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    from ..automation.models import Action, ActionQueue, Command

    automation = automation or AutomationConfig()
    base = Path(directory)
    if not base.is_dir():
        return False, [f"Automation directory not found: {base}"]

    errors: list[str] = []
    documents = (
        (automation.commands_file, (("commands", "Commands", Command),)),
        (
            automation.actions_file,
            (("actions", "Actions", Action), ("queues", "Queues", ActionQueue)),
        ),
    )
    for file_name, sections in documents:
        path = base / file_name
        if not path.exists():
            continue
        try:
            data = json.loads(path.read_text(encoding="utf-8") or "[]")
        except json.JSONDecodeError as e:
            errors.append(f"{file_name}: invalid JSON: {e}")
            continue

        for position, (key, alt_key, model) in enumerate(sections):
            if isinstance(data, list) and position > 0:
                # Array documents only carry the primary collection
                continue
            entries = _document_entries(data, key, alt_key)
            if entries is None:
                errors.append(f"{file_name}: expected an array or an object")
                break
            errors.extend(_validate_entries(entries, model, f"{file_name} -> {key}"))

    return not errors, errors


__all__ = [
    "generate_json_schema",
    "validate_automation_documents",
    "validate_yaml_config",
]
