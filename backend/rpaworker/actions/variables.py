"""Variable actions."""

from __future__ import annotations

from typing import Any

from rpaworker.registry.action_registry import ActionOutcome, VariableWrite, require_config


async def set_variable(session: Any, config: dict[str, Any]) -> ActionOutcome:
    """Write ``config.value`` to the variable named ``config.name``."""
    require_config("setVariable", config, "name")
    name, value = str(config["name"]), config.get("value")
    return ActionOutcome(output={"name": name, "value": value}, set_variable=VariableWrite(name, value))
