"""``%identifier%`` substitution for step fields."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

TOKEN_PATTERN = re.compile(r"%(\w+)%")


def render_value(value: Any) -> str:
    """Render a variable value the way it appears inside chat text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def render_template(template: Any, *sources: Mapping[str, Any]) -> str:
    """Replace every ``%name%`` token with the first source that defines it.

    Sources are searched in order; a ``None`` value counts as undefined.
    Tokens that no source defines are left as they are.

    Example:
        >>> render_template("hi %user%, %missing%", {"user": "alice"})
        'hi alice, %missing%'
    """
    if template is None:
        return ""
    if not isinstance(template, str):
        return render_value(template)
    if "%" not in template:
        return template

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        for source in sources:
            value = source.get(name)
            if value is not None:
                return render_value(value)
        return match.group(0)

    return TOKEN_PATTERN.sub(_substitute, template)


__all__ = ["TOKEN_PATTERN", "render_template", "render_value"]
