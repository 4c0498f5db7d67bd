"""Step results, handler groups and the type-tag dispatch table."""

from __future__ import annotations

import asyncio
import random
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ...core.config import HTTPClientConfig
from ...core.logger import get_logger
from ..capabilities import Capabilities
from ..context import ExecutionContext
from ..models import SubAction
from ..state import VariableStore

logger = get_logger("automation.handlers")


class StepResult:
    """Result of one step execution."""

    def __init__(
        self,
        success: bool = True,
        variables: Mapping[str, Any] | None = None,
        error: str | None = None,
        duration: float = 0.0,
        skipped: bool = False,
    ) -> None:
        self.success = success
        self.variables = dict(variables or {})
        self.error = error
        self.duration = duration
        self.skipped = skipped
        self.timestamp = datetime.now().isoformat()

    @classmethod
    def failed(cls, error: str) -> StepResult:
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "variables": self.variables,
            "error": self.error,
            "duration": self.duration,
            "skipped": self.skipped,
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:
        return f"StepResult(success={self.success!r}, error={self.error!r}, variables={self.variables!r})"


StepHandler = Callable[[SubAction, ExecutionContext], Awaitable[StepResult]]
ActionStateSetter = Callable[[str, Any], bool]


@dataclass
class HandlerServices:
    """Everything a handler group may reach besides the step and its context."""

    capabilities: Capabilities = field(default_factory=Capabilities)
    variables: VariableStore = field(default_factory=VariableStore)
    http: HTTPClientConfig = field(default_factory=HTTPClientConfig)
    set_action_enabled: ActionStateSetter | None = None
    rng: random.Random = field(default_factory=random.Random)
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    now: Callable[[], datetime] = datetime.now


def to_int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def to_float(value: Any, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def to_bool(value: Any, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


class HandlerGroup(ABC):
    """A category of step handlers sharing the same collaborators."""

    category: str = "general"

    def __init__(self, services: HandlerServices) -> None:
        self.services = services

    @property
    def capabilities(self) -> Capabilities:
        return self.services.capabilities

    @abstractmethod
    def handlers(self) -> dict[int, StepHandler]:
        """Map of step type tag to handler coroutine."""

    def text(self, step: SubAction, context: ExecutionContext, *names: str, default: str = "") -> str:
        """Templated value of the first of ``names`` that the step sets."""
        for name in names:
            value = step.get(name)
            if value is not None and value != "":
                return context.render(value)
        return context.render(default)

    def unavailable(self, capability: str, step: SubAction) -> StepResult:
        logger.info(
            "No %s capability configured; skipping step %s (type %s)",
            capability,
            step.id,
            step.type,
        )
        return StepResult(success=True, skipped=True)


class HandlerRegistry:
    """Dispatch table from step type tag to handler."""

    def __init__(self) -> None:
        self._handlers: dict[int, StepHandler] = {}

    def __contains__(self, step_type: object) -> bool:
        return step_type in self._handlers

    def register(self, step_type: int, handler: StepHandler) -> None:
        if step_type in self._handlers:
            logger.debug("Replacing handler for step type %s", step_type)
        self._handlers[int(step_type)] = handler

    def register_group(self, group: HandlerGroup) -> None:
        for step_type, handler in group.handlers().items():
            self.register(step_type, handler)

    def get(self, step_type: int) -> StepHandler | None:
        return self._handlers.get(step_type)

    def types(self) -> list[int]:
        return sorted(self._handlers)

    async def dispatch(self, step: SubAction, context: ExecutionContext) -> StepResult:
        """Run the handler for ``step``; handler exceptions become failed results."""
        handler = self._handlers.get(step.type)
        if handler is None:
            logger.warning("Unknown step type %s (step %s); skipping", step.type, step.id)
            return StepResult(success=True, skipped=True)

        start_time = time.time()
        try:
            result = await handler(step, context)
        except Exception as exc:
            logger.error(
                "Step %s (type %s) failed: %s", step.id, step.type, exc, exc_info=True
            )
            return StepResult(success=False, error=str(exc), duration=time.time() - start_time)

        result.duration = time.time() - start_time
        if not result.success:
            logger.warning("Step %s (type %s) failed: %s", step.id, step.type, result.error)
        return result


__all__ = [
    "ActionStateSetter",
    "HandlerGroup",
    "HandlerRegistry",
    "HandlerServices",
    "StepHandler",
    "StepResult",
    "to_bool",
    "to_float",
    "to_int",
]
