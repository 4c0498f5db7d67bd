"""Step interpreter: runs an action's step tree against an execution context."""

from __future__ import annotations

import random
from collections.abc import Sequence

from ..core.logger import get_logger
from .context import ExecutionContext
from .handlers.base import HandlerRegistry, StepResult
from .models import SubAction, SubActionType

logger = get_logger("automation.interpreter")


class StepInterpreter:
    """Executes steps through a handler registry.

    Sequencing rules, shared by top-level dispatch and nested Run Action:

    * steps run in ascending ``index`` order, disabled steps are skipped;
    * a failed step abandons the remaining siblings unless ``always_run``;
    * a break aborts every remaining sibling at every enclosing level,
      whatever ``always_run`` says.
    """

    def __init__(self, registry: HandlerRegistry, rng: random.Random | None = None) -> None:
        self.registry = registry
        self.rng = rng or random.Random()

    async def execute_step(
        self,
        step: SubAction,
        context: ExecutionContext,
        always_run: bool = False,
    ) -> StepResult:
        """Run one step, merge its variables and descend into its children."""
        if step.type in (SubActionType.IF_BLOCK, SubActionType.ELSE_BLOCK):
            # Blocks carry no behaviour of their own
            if await self.run_steps(step.sub_actions or [], context, always_run, step.random):
                return StepResult()
            return StepResult.failed(f"Block {step.id} failed")

        result = await self.registry.dispatch(step, context)
        context.merge_variables(result.variables)
        if not result.success:
            return result

        if step.type == SubActionType.IF_ELSE:
            condition = bool(result.variables.get("conditionResult"))
            block = step.block(condition)
            logger.debug("Branch %s took the %s block", step.id, "true" if condition else "false")
            if not await self.run_steps(block.sub_actions or [], context, always_run, block.random):
                return StepResult(
                    success=False,
                    variables=result.variables,
                    error=f"{'True' if condition else 'False'} block of step {step.id} failed",
                )
        return result

    async def run_steps(
        self,
        steps: Sequence[SubAction],
        context: ExecutionContext,
        always_run: bool = False,
        pick_random: bool = False,
    ) -> bool:
        """Run a list of sibling steps.

        Args:
            steps: Sibling steps, in any order
            context: Execution context shared by the whole event
            always_run: Keep going after a failed step
            pick_random: Run one weighted-random enabled step instead of all

        Returns:
            False when a step failed, True otherwise (including after a break)
        """
        ordered = sorted(steps, key=lambda step: step.index)
        if pick_random:
            chosen = self.pick_weighted(ordered)
            ordered = [chosen] if chosen is not None else []

        succeeded = True
        for step in ordered:
            if context.break_requested:
                logger.debug("Break requested; skipping remaining steps")
                break
            if not step.enabled:
                continue
            result = await self.execute_step(step, context, always_run)
            if not result.success:
                succeeded = False
                if not always_run:
                    break
        return succeeded

    def pick_weighted(self, steps: Sequence[SubAction]) -> SubAction | None:
        """Pick one enabled step by weight; uniform when no step has a positive weight."""
        candidates = [step for step in steps if step.enabled]
        if not candidates:
            return None
        weights = [max(step.weight, 0) for step in candidates]
        if sum(weights) <= 0:
            return self.rng.choice(candidates)
        return self.rng.choices(candidates, weights=weights, k=1)[0]


__all__ = ["StepInterpreter"]
