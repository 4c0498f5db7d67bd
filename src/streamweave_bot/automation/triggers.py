"""Static catalog of trigger types for authoring tools.

The definitions ship with the package in ``data/triggers.yaml`` and are read
once. The engine does not consult this catalog; it only describes which
trigger types exist, what they can be configured with and which template
variables they provide.
"""

from __future__ import annotations

from functools import lru_cache
from importlib import resources
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from ..core.logger import get_logger

logger = get_logger("automation.triggers")

TriggerFieldType = Literal["toggle", "select", "number", "text", "multiselect"]


class TriggerFieldOption(BaseModel):
    label: str
    value: Any = None


class TriggerField(BaseModel):
    """A setting a trigger of this type can carry."""

    name: str
    type: TriggerFieldType
    label: str
    description: str | None = None
    options: list[TriggerFieldOption] = Field(default_factory=list)
    default: Any = None


class TriggerVariable(BaseModel):
    """A template variable available when the trigger fires."""

    name: str
    type: str
    description: str
    example: Any = None


class TriggerDefinition(BaseModel):
    id: int
    name: str
    category: str
    description: str
    platform: str | None = None
    fields: list[TriggerField] = Field(default_factory=list)
    variables: list[TriggerVariable] = Field(default_factory=list)

    @property
    def top_category(self) -> str:
        return self.category.split("/")[0]


@lru_cache(maxsize=1)
def _load_definitions() -> tuple[TriggerDefinition, ...]:
    source = resources.files("streamweave_bot.automation").joinpath("data/triggers.yaml")
    raw = yaml.safe_load(source.read_text(encoding="utf-8")) or []
    definitions = tuple(TriggerDefinition.model_validate(entry) for entry in raw)
    logger.debug("Trigger catalog loaded with %s definitions", len(definitions))
    return definitions


class TriggerCatalog:
    """Read-only lookup over the trigger type definitions."""

    def __init__(self, definitions: list[TriggerDefinition] | None = None) -> None:
        items = definitions if definitions is not None else _load_definitions()
        self._definitions: dict[int, TriggerDefinition] = {item.id: item for item in items}

    def __len__(self) -> int:
        return len(self._definitions)

    def get(self, trigger_id: int) -> TriggerDefinition | None:
        return self._definitions.get(int(trigger_id))

    def all(self) -> list[TriggerDefinition]:
        return list(self._definitions.values())

    def by_category(self, prefix: str) -> list[TriggerDefinition]:
        """Definitions whose category path starts with ``prefix``."""
        return [item for item in self._definitions.values() if item.category.startswith(prefix)]

    def by_platform(self, platform: str) -> list[TriggerDefinition]:
        """Definitions for ``platform`` plus the platform-neutral ones."""
        wanted = platform.strip().lower()
        return [
            item
            for item in self._definitions.values()
            if not item.platform or item.platform.lower() == wanted
        ]

    def categories(self) -> list[str]:
        """Sorted top-level category names."""
        return sorted({item.top_category for item in self._definitions.values()})


__all__ = [
    "TriggerCatalog",
    "TriggerDefinition",
    "TriggerField",
    "TriggerFieldOption",
    "TriggerVariable",
]
