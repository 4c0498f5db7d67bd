"""Variable steps: global and user variables, arguments, math and string operations."""

from __future__ import annotations

import asyncio
import math

from ...core.logger import get_logger
from ..context import ExecutionContext
from ..models import SubAction, SubActionType
from .base import HandlerGroup, StepHandler, StepResult, to_bool, to_int

logger = get_logger("automation.handlers.variables")

MATH_ALIASES = {
    "+": "add",
    "-": "subtract",
    "*": "multiply",
    "/": "divide",
    "%": "modulo",
    "mod": "modulo",
    "^": "power",
    "**": "power",
    "pow": "power",
}


def calculate(operation: str, left: float, right: float) -> float:
    """Apply a named arithmetic operation; division and modulo by zero give 0.

    Raises:
        ValueError: If the operation is unknown or the result is not a finite
            real number (e.g. a negative base with a fractional exponent).
    """
    name = MATH_ALIASES.get(operation, operation)
    if name == "add":
        result = left + right
    elif name == "subtract":
        result = left - right
    elif name == "multiply":
        result = left * right
    elif name == "divide":
        result = left / right if right != 0 else 0
    elif name == "modulo":
        result = left % right if right != 0 else 0
    elif name == "power":
        try:
            result = left**right
        except (OverflowError, ZeroDivisionError) as exc:
            raise ValueError(f"Cannot raise {left} to {right}: {exc}") from exc
    else:
        raise ValueError(f"Unknown operation: {operation}")

    if isinstance(result, complex) or (isinstance(result, float) and not math.isfinite(result)):
        raise ValueError(f"{operation} of {left} and {right} is not a finite real number")
    return result


def _substring(text: str, start: int, end: int | None) -> str:
    # Bounds are clamped to the string and swapped when reversed
    size = len(text)
    begin = min(max(start, 0), size)
    finish = size if end is None else min(max(end, 0), size)
    if begin > finish:
        begin, finish = finish, begin
    return text[begin:finish]


class VariableHandlers(HandlerGroup):
    category = "variables"

    def handlers(self) -> dict[int, StepHandler]:
        return {
            SubActionType.GET_GLOBAL_VAR: self.get_global,
            SubActionType.SET_GLOBAL_VAR: self.set_global,
            SubActionType.SET_ARGUMENT: self.set_argument,
            SubActionType.SET_USER_VAR: self.set_user,
            SubActionType.GET_USER_VAR: self.get_user,
            SubActionType.MATH_OPERATION: self.math_operation,
            SubActionType.STRING_OPERATION: self.string_operation,
        }

    async def _persist(self, step: SubAction) -> None:
        if to_bool(step.get("persisted")):
            await asyncio.to_thread(self.services.variables.save)

    async def set_global(self, step: SubAction, context: ExecutionContext) -> StepResult:
        name = step.get("variable_name")
        if not name:
            return StepResult.failed("variableName is required")
        self.services.variables.set_global(name, self.text(step, context, "value"))
        await self._persist(step)
        return StepResult()

    async def get_global(self, step: SubAction, context: ExecutionContext) -> StepResult:
        name = step.get("variable_name")
        if not name:
            return StepResult.failed("variableName is required")
        destination = step.get("destination_variable") or name
        value = self.services.variables.get_global(name, step.get("default_value"))
        return StepResult(variables={destination: value})

    async def set_argument(self, step: SubAction, context: ExecutionContext) -> StepResult:
        name = step.get("variable_name")
        if not name:
            return StepResult.failed("variableName is required")
        value = self.text(step, context, "value")
        context.args[name] = value
        return StepResult(variables={name: value})

    async def set_user(self, step: SubAction, context: ExecutionContext) -> StepResult:
        name = step.get("variable_name")
        user = self.text(step, context, "user_name", default=context.user_name).lstrip("@")
        if not name or not user:
            return StepResult.failed("userName and variableName are required")
        self.services.variables.set_user(user, name, self.text(step, context, "value"))
        await self._persist(step)
        return StepResult()

    async def get_user(self, step: SubAction, context: ExecutionContext) -> StepResult:
        name = step.get("variable_name")
        user = self.text(step, context, "user_name", default=context.user_name).lstrip("@")
        if not name or not user:
            return StepResult.failed("userName and variableName are required")
        destination = step.get("destination_variable") or name
        value = self.services.variables.get_user(user, name, step.get("default_value"))
        return StepResult(variables={destination: value})

    async def math_operation(self, step: SubAction, context: ExecutionContext) -> StepResult:
        raw_left = self.text(step, context, "operand1", default="0")
        raw_right = self.text(step, context, "operand2", default="0")
        try:
            left, right = float(raw_left), float(raw_right)
        except ValueError:
            return StepResult.failed(f"Operands must be numbers: {raw_left!r}, {raw_right!r}")

        operation = str(step.get("operation", "")).strip().lower()
        try:
            result = calculate(operation, left, right)
        except ValueError as exc:
            return StepResult.failed(str(exc))
        return StepResult(variables={step.get("variable_name") or "mathResult": result})

    async def string_operation(self, step: SubAction, context: ExecutionContext) -> StepResult:
        text = self.text(step, context, "input")
        first = self.text(step, context, "param1")
        second = self.text(step, context, "param2")
        operation = str(step.get("operation", "")).strip().lower()

        if operation == "uppercase":
            result: object = text.upper()
        elif operation == "lowercase":
            result = text.lower()
        elif operation == "trim":
            result = text.strip()
        elif operation == "length":
            result = len(text)
        elif operation == "replace":
            result = text.replace(first, second) if first else text
        elif operation == "substring":
            result = _substring(text, to_int(first, 0), to_int(second) if second else None)
        elif operation == "split":
            result = text.split(first) if first else list(text)
        else:
            return StepResult.failed(f"Unknown operation: {operation}")

        return StepResult(variables={step.get("variable_name") or "stringResult": result})


__all__ = ["VariableHandlers", "calculate"]
