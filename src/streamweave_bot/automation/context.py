"""Per-event execution context shared by the steps of one run."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .templating import render_template

RunActionCallback = Callable[[str], Awaitable[bool]]


@dataclass
class ExecutionContext:
    """State carried through one event's action runs.

    A context is created for every processed event and is never shared
    between events. Nested Run Action calls reuse the caller's context so
    variables set by the inner action stay visible afterwards.
    """

    user: str | None = None
    message: str = ""
    raw_input: str = ""
    platform: str = "twitch"
    args: dict[str, Any] = field(default_factory=dict)
    variables: dict[str, Any] = field(default_factory=dict)
    break_requested: bool = False
    action_stack: list[str] = field(default_factory=list)
    run_action_by_id: RunActionCallback | None = None

    @property
    def user_name(self) -> str:
        return self.user or ""

    def render(self, template: Any) -> str:
        """Apply ``%name%`` substitution against this context."""
        return render_template(template, self.variables, self.args)

    def merge_variables(self, values: Mapping[str, Any] | None) -> None:
        if values:
            self.variables.update(values)

    def request_break(self) -> None:
        self.break_requested = True


__all__ = ["ExecutionContext", "RunActionCallback"]
