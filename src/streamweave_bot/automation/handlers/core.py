"""Core logic steps: delay, random number, comment, break and condition checks."""

from __future__ import annotations

import math
import re

from ...core.logger import get_logger
from ..context import ExecutionContext
from ..models import CompareOperation, SubAction, SubActionType
from .base import HandlerGroup, StepHandler, StepResult, to_int

logger = get_logger("automation.handlers.core")


def _as_number(value: str) -> float | None:
    try:
        number = float(value.strip())
    except ValueError:
        return None
    return None if math.isnan(number) else number


def compare(operation: int, left: str, right: str) -> bool:
    """Evaluate a branch comparison; numeric operators are False for non-numbers.

    Raises:
        re.error: If ``operation`` is a regex match and ``right`` is not a valid pattern.
    """
    if operation == CompareOperation.EQUALS:
        return left == right
    if operation == CompareOperation.NOT_EQUALS:
        return left != right
    if operation == CompareOperation.CONTAINS:
        return right in left
    if operation == CompareOperation.NOT_CONTAINS:
        return right not in left
    if operation == CompareOperation.STARTS_WITH:
        return left.startswith(right)
    if operation == CompareOperation.ENDS_WITH:
        return left.endswith(right)
    if operation == CompareOperation.IS_EMPTY:
        return left.strip() == ""
    if operation == CompareOperation.IS_NOT_EMPTY:
        return left.strip() != ""
    if operation == CompareOperation.REGEX:
        return re.search(right, left) is not None

    a, b = _as_number(left), _as_number(right)
    if a is None or b is None:
        return False
    if operation == CompareOperation.GREATER_THAN:
        return a > b
    if operation == CompareOperation.GREATER_OR_EQUAL:
        return a >= b
    if operation == CompareOperation.LESS_THAN:
        return a < b
    if operation == CompareOperation.LESS_OR_EQUAL:
        return a <= b

    logger.warning("Unknown comparison operation %s; treating as false", operation)
    return False


class CoreHandlers(HandlerGroup):
    category = "core"

    def handlers(self) -> dict[int, StepHandler]:
        return {
            SubActionType.WAIT: self.delay,
            SubActionType.RANDOM_NUMBER: self.random_number,
            SubActionType.COMMENT: self.comment,
            SubActionType.BREAK: self.break_execution,
            SubActionType.IF_ELSE: self.evaluate_condition,
        }

    async def delay(self, step: SubAction, context: ExecutionContext) -> StepResult:
        """Wait a fixed number of milliseconds, or a random amount in ``[min, max]``."""
        low = to_int(self.text(step, context, "min_value", "min", "value"), 1000)
        high = to_int(self.text(step, context, "max_value", "max"), low)
        low = max(low, 0)
        wait_ms = self.services.rng.randint(low, high) if high > low else low
        await self.services.sleep(wait_ms / 1000)
        return StepResult(variables={"delayUsed": wait_ms})

    async def random_number(self, step: SubAction, context: ExecutionContext) -> StepResult:
        low = to_int(self.text(step, context, "min"), 1)
        high = to_int(self.text(step, context, "max"), 100)
        if low > high:
            low, high = high, low
        name = step.get("variable_name") or "randomNumber"
        return StepResult(variables={name: self.services.rng.randint(low, high)})

    async def comment(self, step: SubAction, context: ExecutionContext) -> StepResult:
        return StepResult()

    async def break_execution(self, step: SubAction, context: ExecutionContext) -> StepResult:
        context.request_break()
        return StepResult()

    async def evaluate_condition(self, step: SubAction, context: ExecutionContext) -> StepResult:
        """Evaluate a branch step's condition; the interpreter runs the chosen block."""
        left = self.text(step, context, "input")
        right = self.text(step, context, "value")
        operation = to_int(step.get("operation"), CompareOperation.EQUALS)
        try:
            condition = compare(operation, left, right)
        except re.error as exc:
            return StepResult.failed(f"Invalid regex {right!r}: {exc}")
        return StepResult(variables={"conditionResult": condition})


__all__ = ["CoreHandlers", "compare"]
