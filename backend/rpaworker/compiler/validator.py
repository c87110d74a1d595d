"""Flow static validator — checks a Step tree before execution."""

from __future__ import annotations

from typing import Iterable

from rpaworker.compiler.ir import ControlType, Step
from rpaworker.registry.action_registry import ActionRegistry
from rpaworker.templating.engine import TEMPLATE_RE
from rpaworker.templating.expressions import SUPPORTED_OPERATORS


class ValidationError(Exception):
    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Flow validation failed: {errors}")


def validate_steps(steps: Iterable[Step], registry: ActionRegistry) -> list[str]:
    """Return a list of error strings. Empty list means valid."""
    errors: list[str] = []
    for step in steps:
        _validate_step(step, registry, errors)
    return errors


def ensure_valid(steps: Iterable[Step], registry: ActionRegistry) -> None:
    """Raise :class:`ValidationError` if *steps* has any static error."""
    errors = validate_steps(steps, registry)
    if errors:
        raise ValidationError(errors)


def _validate_step(step: Step, registry: ActionRegistry, errors: list[str]) -> None:
    if not step.id:
        errors.append("Step with empty id.")
    if not step.action_type:
        errors.append(f"Step '{step.id}': missing actionType.")
        return

    control = step.control
    if control is ControlType.LOOP:
        items = step.config.get("items")
        if items is not None and not isinstance(items, str):
            errors.append(f"Step '{step.id}': loop 'items' must name a variable.")
        elif items is None and step.config.get("count") is None:
            errors.append(f"Step '{step.id}': loop requires either 'items' or 'count'.")
        if step.else_children:
            errors.append(f"Step '{step.id}': loop does not take elseChildren.")
    elif control is ControlType.CONDITION:
        if not isinstance(step.config.get("variable"), str) or not step.config["variable"]:
            errors.append(f"Step '{step.id}': condition requires 'variable'.")
        op = step.config.get("operator")
        if not _operator_ok(op):
            errors.append(f"Step '{step.id}': condition operator '{op}' is not supported.")
    else:
        if step.action_type not in registry:
            errors.append(f"Step '{step.id}': unknown action type '{step.action_type}'.")
        if step.children or step.else_children:
            errors.append(f"Step '{step.id}': action '{step.action_type}' cannot have nested steps.")

    for child in (*step.children, *step.else_children):
        _validate_step(child, registry, errors)


def _operator_ok(op: object) -> bool:
    """Unset means "=="; a templated operator is checked once it resolves at run time."""
    if op is None or op == "":
        return True
    if not isinstance(op, str):
        return False
    return op in SUPPORTED_OPERATORS or TEMPLATE_RE.search(op) is not None
