"""Flow executor — one execution from session acquisition to cleanup."""

from __future__ import annotations

import logging
import time
from typing import Any, Sequence

from rpaworker.compiler.ir import Step
from rpaworker.registry.action_registry import ActionRegistry
from rpaworker.runtime.cancellation import CancellationRegistry, RunCancelledError
from rpaworker.runtime.interpreter import StepInterpreter
from rpaworker.runtime.pool import BrowserPool, PoolExhaustedError, SessionConflictError
from rpaworker.runtime.state import (
    CANCELLED_ERROR,
    ExecutionContext,
    ExecutionResult,
    StepCallback,
)
from rpaworker.utils.logger import ctx_execution_id
from rpaworker.utils.metrics import record_cancellation, record_pool_rejection, record_run_completed

logger = logging.getLogger("rpaworker.execution")


class FlowExecutor:
    def __init__(
        self,
        pool: BrowserPool,
        cancellations: CancellationRegistry,
        registry: ActionRegistry,
    ) -> None:
        self.pool = pool
        self.cancellations = cancellations
        self.interpreter = StepInterpreter(registry)

    async def execute(
        self,
        execution_id: str,
        steps: Sequence[Step],
        on_step_complete: StepCallback | None = None,
        initial_variables: dict[str, Any] | None = None,
    ) -> ExecutionResult:
        """Run *steps* against a fresh pooled session.

        Step failures and cancellation come back as a ``failed`` result.
        Any other exception propagates after the session is released and
        the cancel flag cleared.
        """
        corr = ctx_execution_id.set(execution_id)
        try:
            try:
                session = await self.pool.acquire(execution_id)
            except (PoolExhaustedError, SessionConflictError) as exc:
                logger.warning("Execution %s rejected: %s", execution_id, exc)
                record_pool_rejection()
                if isinstance(exc, PoolExhaustedError):
                    # the ID is not running anywhere, so its cancel flag is stale
                    self.cancellations.discard(execution_id)
                return ExecutionResult(execution_id=execution_id, status="failed", error=str(exc))
            except BaseException:
                # launch or context failure: nothing is running under this ID
                self.cancellations.discard(execution_id)
                raise

            ctx = ExecutionContext(
                execution_id=execution_id,
                session=session,
                token=self.cancellations.token(execution_id),
                variables=dict(initial_variables or {}),
                on_step_complete=on_step_complete,
            )
            logger.info("Execution %s started (%d top-level steps)", execution_id, len(steps))
            start = time.monotonic()
            result: ExecutionResult | None = None
            try:
                status = await self.interpreter.run(steps, ctx)
                if status == "completed":
                    result = ExecutionResult(execution_id, "completed", ctx.results)
                else:
                    error = ctx.results[-1].error if ctx.results else None
                    result = ExecutionResult(
                        execution_id, "failed", ctx.results, error or "Unknown error"
                    )
            except RunCancelledError:
                logger.info("Execution %s cancelled after %d steps", execution_id, len(ctx.results))
                record_cancellation()
                result = ExecutionResult(execution_id, "failed", ctx.results, CANCELLED_ERROR)
            finally:
                await self.pool.release(execution_id)
                self.cancellations.discard(execution_id)
                elapsed = time.monotonic() - start
                record_run_completed(elapsed, result.status if result else "error")
                logger.info(
                    "Execution %s finished: %s in %.2fs",
                    execution_id, result.status if result else "error", elapsed,
                )
            return result
        finally:
            ctx_execution_id.reset(corr)
