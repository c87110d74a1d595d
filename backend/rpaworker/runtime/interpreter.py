"""Step interpreter — recursive execution of an ordered Step tree.

Each step goes through the same pipeline:
  1. cancellation checkpoint (raises RunCancelledError, never recorded)
  2. ``{{var}}`` resolution of the step's top-level string config values
  3. dispatch: ``loop`` / ``condition`` are run here, everything else is
     looked up in the ActionRegistry and awaited with the pooled session

A failure stops the remaining siblings at that level and propagates
``failed`` upward.  Containers record nothing when they succeed; their
children's results speak for them.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Iterator, Sequence

from rpaworker.compiler.ir import ControlType, Step
from rpaworker.registry.action_registry import ActionOutcome, ActionRegistry
from rpaworker.runtime.state import ExecutionContext, RunStatus, StepResult, utc_now_iso
from rpaworker.templating.engine import render_config
from rpaworker.templating.expressions import evaluate_comparison
from rpaworker.utils.logger import ctx_step_id
from rpaworker.utils.metrics import record_step_execution
from rpaworker.utils.redaction import redact_sensitive_data

logger = logging.getLogger("rpaworker.runtime")

DEFAULT_ITEM_VARIABLE = "item"
DEFAULT_INDEX_VARIABLE = "index"
DEFAULT_OPERATOR = "=="


class StepFailure(Exception):
    """A container step could not run its body (bad config, non-list items)."""


class StepInterpreter:
    def __init__(self, registry: ActionRegistry) -> None:
        self.registry = registry

    async def run(self, steps: Sequence[Step], ctx: ExecutionContext) -> RunStatus:
        """Execute *steps* in order; return ``completed`` only if all of them did."""
        for step in steps:
            ctx.token.raise_if_cancelled()
            resolved = render_config(step.config, ctx.variables)

            control = step.control
            if control is ControlType.LOOP:
                ok = await self._run_loop(step, resolved, ctx)
            elif control is ControlType.CONDITION:
                ok = await self._run_condition(step, resolved, ctx)
            else:
                ok = await self._run_action(step, resolved, ctx)

            if not ok:
                return "failed"
        return "completed"

    # ── Control constructs ──────────────────────────────────────

    async def _run_loop(self, step: Step, config: dict[str, Any], ctx: ExecutionContext) -> bool:
        started_at = utc_now_iso()
        try:
            iterations = self._loop_iterations(config, ctx)
        except StepFailure as exc:
            await self._fail_container(step, started_at, str(exc), ctx)
            return False

        for binding in iterations:
            ctx.variables.update(binding)
            if await self.run(step.children, ctx) == "failed":
                await self._fail_container(
                    step, started_at, f"loop body failed: {_last_error(ctx)}", ctx
                )
                return False
        return True

    @staticmethod
    def _loop_iterations(config: dict[str, Any], ctx: ExecutionContext) -> Iterator[dict[str, Any]]:
        """Check the loop config and return a lazy iterator of variable bindings.

        Array mode (``items`` names a list variable) wins over count mode.
        Config errors raise :class:`StepFailure` here, before the body runs.
        """
        items_var = config.get("items")
        if items_var is not None:
            if not isinstance(items_var, str):
                raise StepFailure("loop: 'items' must name a variable")
            items = ctx.variables.get(items_var)
            if not isinstance(items, list):
                raise StepFailure(f"loop: variable '{items_var}' is not a list")
            item_name = config.get("itemVariable") or DEFAULT_ITEM_VARIABLE
            return ({item_name: item} for item in items)

        count = config.get("count")
        if count is None:
            raise StepFailure("loop: requires either 'items' or 'count'")
        try:
            n = int(float(count))
        except (TypeError, ValueError, OverflowError):
            raise StepFailure(f"loop: count '{count}' is not a finite number") from None
        index_name = config.get("indexVariable") or DEFAULT_INDEX_VARIABLE
        return ({index_name: i} for i in range(max(n, 0)))

    async def _run_condition(self, step: Step, config: dict[str, Any], ctx: ExecutionContext) -> bool:
        started_at = utc_now_iso()
        try:
            name = config.get("variable")
            if not isinstance(name, str):
                raise StepFailure("condition: 'variable' must name a variable")
            matched = evaluate_comparison(
                ctx.variables.get(name),
                config.get("operator") or DEFAULT_OPERATOR,
                config.get("value"),
            )
        except (StepFailure, ValueError) as exc:
            await self._fail_container(step, started_at, str(exc), ctx)
            return False

        branch = step.children if matched else step.else_children
        logger.debug("Condition %s evaluated %s", step.id, matched)
        if await self.run(branch, ctx) == "failed":
            await self._fail_container(
                step, started_at, f"condition branch failed: {_last_error(ctx)}", ctx
            )
            return False
        return True

    # ── Primitive actions ───────────────────────────────────────

    async def _run_action(self, step: Step, config: dict[str, Any], ctx: ExecutionContext) -> bool:
        started_at = utc_now_iso()
        token = ctx_step_id.set(step.id)
        try:
            logger.info(
                "Step %s: action=%s config=%s",
                step.id, step.action_type, redact_sensitive_data(config),
            )
            try:
                handler = self.registry.get(step.action_type)
                outcome = ActionOutcome.of(await handler(ctx.session, config))
            except Exception as exc:
                error = str(exc) or exc.__class__.__name__
                logger.warning("Step %s failed: %s", step.id, error)
                record_step_execution(step.action_type, "failed")
                await self._record(
                    StepResult(
                        step_id=step.id,
                        action_type=step.action_type,
                        status="failed",
                        started_at=started_at,
                        completed_at=utc_now_iso(),
                        error=error,
                    ),
                    ctx,
                )
                return False

            if outcome.set_variable is not None:
                ctx.variables[outcome.set_variable.name] = outcome.set_variable.value
                logger.debug("Step %s: set variable %s", step.id, outcome.set_variable.name)

            logger.info("Step %s completed", step.id)
            record_step_execution(step.action_type, "completed")
            await self._record(
                StepResult(
                    step_id=step.id,
                    action_type=step.action_type,
                    status="completed",
                    started_at=started_at,
                    completed_at=utc_now_iso(),
                    output=outcome.output,
                    screenshot_data=outcome.screenshot,
                ),
                ctx,
            )
            return True
        finally:
            ctx_step_id.reset(token)

    # ── Recording ───────────────────────────────────────────────

    async def _fail_container(
        self, step: Step, started_at: str, error: str, ctx: ExecutionContext
    ) -> None:
        logger.warning("Step %s (%s) failed: %s", step.id, step.action_type, error)
        await self._record(
            StepResult(
                step_id=step.id,
                action_type=step.action_type,
                status="failed",
                started_at=started_at,
                completed_at=utc_now_iso(),
                error=error,
            ),
            ctx,
        )

    @staticmethod
    async def _record(result: StepResult, ctx: ExecutionContext) -> None:
        """Append *result* and forward it to the progress callback.

        Callback errors are logged and never change the step's outcome.
        """
        ctx.results.append(result)
        if ctx.on_step_complete is None:
            return
        try:
            ret = ctx.on_step_complete(result)
            if inspect.isawaitable(ret):
                await ret
        except Exception as exc:
            logger.warning("Step %s: progress callback failed: %s", result.step_id, exc)


def _last_error(ctx: ExecutionContext) -> str:
    if ctx.results and ctx.results[-1].error:
        return ctx.results[-1].error
    return "Unknown error"
