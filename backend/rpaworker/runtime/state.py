"""Execution state — per-run context and result records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Literal

from rpaworker.runtime.cancellation import CancellationToken

RunStatus = Literal["completed", "failed"]

CANCELLED_ERROR = "Execution cancelled"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class StepResult:
    step_id: str
    action_type: str
    status: RunStatus
    started_at: str
    completed_at: str
    output: Any = None
    error: str | None = None
    screenshot_data: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """camelCase wire shape used by callbacks."""
        payload: dict[str, Any] = {
            "stepId": self.step_id,
            "actionType": self.action_type,
            "status": self.status,
            "startedAt": self.started_at,
            "completedAt": self.completed_at,
        }
        if self.output is not None:
            payload["output"] = self.output
        if self.error is not None:
            payload["error"] = self.error
        if self.screenshot_data is not None:
            payload["screenshotData"] = self.screenshot_data
        return payload


@dataclass
class ExecutionResult:
    execution_id: str
    status: RunStatus
    steps: list[StepResult] = field(default_factory=list)
    error: str | None = None

    @property
    def cancelled(self) -> bool:
        return self.status == "failed" and self.error == CANCELLED_ERROR

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "executionId": self.execution_id,
            "status": self.status,
            "steps": [s.to_payload() for s in self.steps],
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload


StepCallback = Callable[[StepResult], Any]


@dataclass
class ExecutionContext:
    """Everything one execution's interpreter calls share.

    ``variables`` and ``results`` are owned by a single execution task and
    passed by reference through every nesting level; writes inside a loop or
    branch stay visible after it returns.
    """

    execution_id: str
    session: Any
    token: CancellationToken
    variables: dict[str, Any] = field(default_factory=dict)
    results: list[StepResult] = field(default_factory=list)
    on_step_complete: StepCallback | None = None
