"""Steps that run or switch other actions."""

from __future__ import annotations

from ...core.logger import get_logger
from ..context import ExecutionContext
from ..models import SubAction, SubActionType
from .base import HandlerGroup, StepHandler, StepResult

logger = get_logger("automation.handlers.actions")

_STATE_NAMES = {0: "disable", 1: "enable", 2: "toggle"}


class ActionControlHandlers(HandlerGroup):
    category = "actions"

    def handlers(self) -> dict[int, StepHandler]:
        return {
            SubActionType.RUN_ACTION: self.run_action,
            SubActionType.ACTION_STATE: self.set_action_state,
        }

    async def run_action(self, step: SubAction, context: ExecutionContext) -> StepResult:
        """Run another action with the current context.

        The step fails when the engine refuses the call (unknown action or an
        action already on the call stack).
        """
        action_id = self.text(step, context, "action_id")
        if not action_id:
            return StepResult(skipped=True)
        if context.run_action_by_id is None:
            return StepResult.failed("Run Action is not available in this context")

        if await context.run_action_by_id(action_id):
            return StepResult()
        return StepResult.failed(f"Action {action_id} was not run")

    async def set_action_state(self, step: SubAction, context: ExecutionContext) -> StepResult:
        action_id = self.text(step, context, "action_id")
        if not action_id:
            return StepResult.failed("actionId is required")
        setter = self.services.set_action_enabled
        if setter is None:
            return self.unavailable("action state", step)

        state = step.get("state", "toggle")
        if isinstance(state, int) and not isinstance(state, bool):
            state = _STATE_NAMES.get(state, state)
        if not setter(action_id, state):
            return StepResult.failed(f"Could not set state {state!r} on action {action_id}")
        return StepResult()


__all__ = ["ActionControlHandlers"]
