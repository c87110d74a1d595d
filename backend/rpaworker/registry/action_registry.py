"""Action registry — maps step action types to handler coroutines.

A handler has the signature ``async (session, config) -> ActionOutcome``.
It signals failure by raising and never touches the variable store
directly: a variable write is requested through ``ActionOutcome.set_variable``
and applied by the interpreter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterator

from rpaworker.compiler.ir import ControlType

logger = logging.getLogger("rpaworker.registry.action")


@dataclass(frozen=True)
class VariableWrite:
    name: str
    value: Any


@dataclass(frozen=True)
class ActionOutcome:
    output: Any = None
    set_variable: VariableWrite | None = None
    screenshot: str | None = None  # base64 PNG, lifted into StepResult.screenshot_data

    @classmethod
    def of(cls, value: Any) -> "ActionOutcome":
        """Wrap a bare handler return value."""
        if isinstance(value, ActionOutcome):
            return value
        return cls(output=value)


ActionHandler = Callable[[Any, dict[str, Any]], Awaitable[Any]]


class UnknownActionError(Exception):
    """Raised when a step names an action type with no registered handler."""

    def __init__(self, action_type: str):
        self.action_type = action_type
        super().__init__(f"Unknown action type: {action_type}")


class ActionConfigError(Exception):
    """Raised by a handler when its resolved config is missing or malformed."""

    def __init__(self, action_type: str, message: str):
        self.action_type = action_type
        super().__init__(f"{action_type}: {message}")


def require_config(action_type: str, config: dict[str, Any], *keys: str) -> None:
    """Raise :class:`ActionConfigError` for the first missing or empty key."""
    for key in keys:
        if config.get(key) in (None, ""):
            raise ActionConfigError(action_type, f"{key} is required")


class ActionRegistry:
    """Explicit registration table of primitive action handlers."""

    def __init__(self) -> None:
        self._handlers: dict[str, ActionHandler] = {}

    def register(self, action_type: str, handler: ActionHandler) -> None:
        if ControlType.of(action_type) is not None:
            raise ValueError(f"'{action_type}' is a control construct and cannot be registered")
        if action_type in self._handlers:
            logger.debug("Replacing handler for action type %s", action_type)
        self._handlers[action_type] = handler

    def get(self, action_type: str) -> ActionHandler:
        handler = self._handlers.get(action_type)
        if handler is None:
            raise UnknownActionError(action_type)
        return handler

    def is_known(self, action_type: str) -> bool:
        """True for registered primitives and the engine's control constructs."""
        return action_type in self._handlers or ControlType.of(action_type) is not None

    def __contains__(self, action_type: object) -> bool:
        return action_type in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)
