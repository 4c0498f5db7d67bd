"""File steps, backed by the file capability."""

from __future__ import annotations

from ..capabilities import resolve
from ..context import ExecutionContext
from ..models import SubAction, SubActionType
from .base import HandlerGroup, StepHandler, StepResult, to_bool


class FileHandlers(HandlerGroup):
    category = "file"

    def handlers(self) -> dict[int, StepHandler]:
        return {
            SubActionType.WRITE_TO_FILE: self.write_to_file,
            SubActionType.READ_FROM_FILE: self.read_from_file,
        }

    async def write_to_file(self, step: SubAction, context: ExecutionContext) -> StepResult:
        path = self.text(step, context, "file")
        if not path:
            return StepResult.failed("file is required")
        files = self.capabilities.files
        if files is None:
            return self.unavailable("file", step)

        text = self.text(step, context, "text")
        await resolve(files.write_text(path, text, to_bool(step.get("append"))))
        return StepResult()

    async def read_from_file(self, step: SubAction, context: ExecutionContext) -> StepResult:
        variable = step.get("variable_name") or "fileContent"
        path = self.text(step, context, "file")
        if not path:
            return StepResult.failed("file is required")
        files = self.capabilities.files
        if files is None:
            self.unavailable("file", step)
            return StepResult(variables={variable: ""}, skipped=True)

        content = await resolve(files.read_text(path))
        return StepResult(variables={variable: content if content is not None else ""})


__all__ = ["FileHandlers"]
