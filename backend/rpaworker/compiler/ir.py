"""Internal Representation (IR) dataclasses — output of flow normalization."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ── Control constructs ──────────────────────────────────────────


class ControlType(str, Enum):
    """Step types interpreted by the engine itself rather than a handler."""

    LOOP = "loop"
    CONDITION = "condition"

    @classmethod
    def of(cls, action_type: str) -> "ControlType | None":
        try:
            return cls(action_type)
        except ValueError:
            return None


# ── Step ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Step:
    id: str
    action_type: str
    config: dict[str, Any] = field(default_factory=dict)
    children: tuple["Step", ...] = ()  # loop body / condition then-branch
    else_children: tuple["Step", ...] = ()  # condition else-branch

    @property
    def control(self) -> ControlType | None:
        return ControlType.of(self.action_type)


# ── Flow graph (editor output) ──────────────────────────────────


@dataclass
class FlowNode:
    id: str
    type: str = ""
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class FlowEdge:
    source: str
    target: str


@dataclass
class FlowDefinition:
    nodes: list[FlowNode] = field(default_factory=list)
    edges: list[FlowEdge] = field(default_factory=list)
