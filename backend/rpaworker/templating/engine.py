"""Template engine — {{variable}} expansion in step configs."""

from __future__ import annotations

import math
import re
from typing import Any

# Matches {{name}}; names are word characters only, no dotted paths.
TEMPLATE_RE = re.compile(r"\{\{(\w+)\}\}")


def stringify(value: Any) -> str:
    """Render a variable for substitution into a config string.

    Booleans are lowercase, ``None`` is ``null``, whole floats drop their
    ``.0`` and lists join their items with commas.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (list, tuple)):
        return ",".join("" if item is None else stringify(item) for item in value)
    return str(value)


def render_template_str(template: str, variables: dict[str, Any]) -> str:
    """Replace every {{name}} in *template* with ``stringify(variables[name])``.

    Unknown names are left in place, braces included.
    """
    if not isinstance(template, str):
        return template

    def replacer(match: re.Match) -> str:
        name = match.group(1)
        if name not in variables:
            return match.group(0)
        return stringify(variables[name])

    return TEMPLATE_RE.sub(replacer, template)


def render_config(config: dict[str, Any], variables: dict[str, Any]) -> dict[str, Any]:
    """Render templates in the top-level string values of a step config.

    Only direct string fields are expanded; lists, dicts and scalars are
    passed through as-is, so a ``data`` array for csvWrite keeps its shape.
    """
    return {
        key: render_template_str(value, variables) if isinstance(value, str) else value
        for key, value in config.items()
    }
