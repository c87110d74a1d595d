"""Condition evaluator — compares a variable against a literal, no eval()."""

from __future__ import annotations

import math
import operator
from typing import Any, Callable


def _to_number(value: Any) -> float:
    """Coerce *value* to a float; anything non-numeric becomes NaN.

    NaN makes every ordering comparison false, so ``"abc" > 3`` is simply
    not satisfied rather than an error.
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if value is None:
        return math.nan
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return 0.0
        try:
            return float(stripped)
        except ValueError:
            return math.nan
    return math.nan


def loose_equals(actual: Any, expected: Any) -> bool:
    """Loose equality used by ``==`` / ``!=``.

    - identical values are equal
    - None equals only None
    - a number or bool against a string compares numerically
    - everything else compares by string form
    """
    if actual is None or expected is None:
        return actual is None and expected is None
    if actual == expected and type(actual) is type(expected):
        return True
    numeric = (int, float, bool)
    if isinstance(actual, numeric) or isinstance(expected, numeric):
        left, right = _to_number(actual), _to_number(expected)
        if not (math.isnan(left) or math.isnan(right)):
            return left == right
    return str(actual) == str(expected)


def _ordered(op: Callable[[float, float], bool]) -> Callable[[Any, Any], bool]:
    return lambda a, b: op(_to_number(a), _to_number(b))


# Supported comparison operators
_OPS: dict[str, Callable[[Any, Any], bool]] = {
    "==": loose_equals,
    "!=": lambda a, b: not loose_equals(a, b),
    ">": _ordered(operator.gt),
    "<": _ordered(operator.lt),
    ">=": _ordered(operator.ge),
    "<=": _ordered(operator.le),
    "contains": lambda a, b: isinstance(a, str) and str(b) in a,
}

SUPPORTED_OPERATORS: frozenset[str] = frozenset(_OPS)


def evaluate_comparison(actual: Any, op: str, expected: Any) -> bool:
    """Evaluate ``actual <op> expected``.

    Raises ``ValueError`` for an operator outside :data:`SUPPORTED_OPERATORS`.
    """
    op_fn = _OPS.get(op) if isinstance(op, str) else None
    if op_fn is None:
        raise ValueError(f'condition: unknown operator "{op}"')
    return bool(op_fn(actual, expected))
