"""Execution service — runs flows as background tasks and reports back.

One asyncio task per execution ID.  Step progress is POSTed as it happens
(without holding up the run); the completion event is sent after every
pending step event has been attempted, so a caller sees them in order.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

from rpaworker.compiler.ir import Step
from rpaworker.runtime.executor import FlowExecutor
from rpaworker.runtime.state import ExecutionResult, StepResult
from rpaworker.services.callback_service import CallbackService

logger = logging.getLogger("rpaworker.execution")


class ExecutionConflictError(Exception):
    """Raised when an execution ID is already running on this worker."""

    def __init__(self, execution_id: str):
        self.execution_id = execution_id
        super().__init__(f"Execution {execution_id} is already running")


class ExecutionService:
    def __init__(self, executor: FlowExecutor, callbacks: CallbackService) -> None:
        self.executor = executor
        self.callbacks = callbacks
        self._tasks: dict[str, asyncio.Task] = {}

    @property
    def running(self) -> list[str]:
        return list(self._tasks)

    def is_running(self, execution_id: str) -> bool:
        return execution_id in self._tasks

    def task(self, execution_id: str) -> asyncio.Task | None:
        return self._tasks.get(execution_id)

    def start(
        self,
        execution_id: str,
        steps: Sequence[Step],
        callback_url: str | None = None,
        variables: dict[str, Any] | None = None,
    ) -> asyncio.Task:
        """Schedule the execution and return its task without waiting for it."""
        if execution_id in self._tasks:
            raise ExecutionConflictError(execution_id)

        task = asyncio.create_task(
            self._run(execution_id, steps, callback_url, variables),
            name=f"execution-{execution_id}",
        )
        self._tasks[execution_id] = task
        task.add_done_callback(lambda _t: self._tasks.pop(execution_id, None))
        logger.info("Execution %s scheduled (callback=%s)", execution_id, callback_url or "-")
        return task

    async def _run(
        self,
        execution_id: str,
        steps: Sequence[Step],
        callback_url: str | None,
        variables: dict[str, Any] | None,
    ) -> ExecutionResult | None:
        pending: set[asyncio.Task] = set()

        def on_step_complete(step: StepResult) -> None:
            if not callback_url:
                return
            t = asyncio.create_task(
                self.callbacks.step_complete(callback_url, execution_id, step.to_payload())
            )
            pending.add(t)
            t.add_done_callback(pending.discard)

        result: ExecutionResult | None = None
        try:
            result = await self.executor.execute(
                execution_id, steps, on_step_complete, initial_variables=variables
            )
            payload = result.to_payload()
        except Exception as exc:
            logger.exception("Execution %s crashed", execution_id)
            payload = {
                "executionId": execution_id,
                "status": "failed",
                "steps": [],
                "error": str(exc) or exc.__class__.__name__,
            }

        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        if callback_url:
            await self.callbacks.execution_complete(callback_url, payload)
        return result

    async def shutdown(self) -> None:
        """Cancel every in-flight execution and wait for its cleanup."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Cancelled %d in-flight executions on shutdown", len(tasks))
