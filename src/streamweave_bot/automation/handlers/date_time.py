"""Current date/time step."""

from __future__ import annotations

import re
from datetime import datetime

from ..context import ExecutionContext
from ..models import SubAction, SubActionType
from .base import HandlerGroup, StepHandler, StepResult

DEFAULT_FORMAT = "YYYY-MM-DD HH:mm:ss"
FORMAT_TOKENS = re.compile(r"YYYY|MM|DD|HH|mm|ss")


def format_timestamp(moment: datetime, pattern: str = DEFAULT_FORMAT) -> str:
    """Format ``moment`` using ``YYYY MM DD HH mm ss`` tokens."""
    values = {
        "YYYY": f"{moment.year:04d}",
        "MM": f"{moment.month:02d}",
        "DD": f"{moment.day:02d}",
        "HH": f"{moment.hour:02d}",
        "mm": f"{moment.minute:02d}",
        "ss": f"{moment.second:02d}",
    }
    return FORMAT_TOKENS.sub(lambda match: values[match.group(0)], pattern)


class DateTimeHandlers(HandlerGroup):
    category = "datetime"

    def handlers(self) -> dict[int, StepHandler]:
        return {SubActionType.GET_DATE_TIME: self.get_date_time}

    async def get_date_time(self, step: SubAction, context: ExecutionContext) -> StepResult:
        now = self.services.now()
        pattern = self.text(step, context, "format", default=DEFAULT_FORMAT)
        variable = step.get("variable_name") or "dateTime"
        return StepResult(
            variables={
                variable: format_timestamp(now, pattern),
                "timestamp": int(now.timestamp() * 1000),
                "year": now.year,
                "month": now.month,
                "day": now.day,
                "hour": now.hour,
                "minute": now.minute,
                "second": now.second,
            }
        )


__all__ = ["DateTimeHandlers", "format_timestamp"]
