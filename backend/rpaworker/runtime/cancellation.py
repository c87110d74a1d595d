"""Execution cancellation — in-process registry of cancel requests.

The registry is a set of execution IDs that an external actor (the
``/cancel/{execution_id}`` endpoint) has asked to stop.  Running executions
poll it cooperatively through a :class:`CancellationToken` at the start of
every step, at every nesting depth.  An action already in flight is never
interrupted; the signal takes effect at the next step boundary.

Usage:
    # In API cancel endpoint:
    registry.request(execution_id)

    # In the interpreter (once per step):
    ctx.token.raise_if_cancelled()

    # In FlowExecutor cleanup (finally block):
    registry.discard(execution_id)

The registry is constructed once in the application lifespan and injected
into the executor and the API; there is no module-level state.
"""

from __future__ import annotations

import logging
import threading

logger = logging.getLogger("rpaworker.cancellation")


class RunCancelledError(Exception):
    """Raised at a step boundary when a cancellation request is detected."""


class CancellationRegistry:
    """Thread-safe set of execution IDs requested for early termination."""

    def __init__(self) -> None:
        self._requested: set[str] = set()
        self._lock = threading.Lock()

    def request(self, execution_id: str) -> None:
        """Flag *execution_id* for cancellation.

        Accepted whether or not the execution is currently running; the flag
        is consumed by the owning execution's cleanup.
        """
        with self._lock:
            self._requested.add(execution_id)
        logger.info("Cancel registry: signalled execution %s", execution_id)

    def is_requested(self, execution_id: str) -> bool:
        with self._lock:
            return execution_id in self._requested

    def discard(self, execution_id: str) -> None:
        """Remove *execution_id* (call in the finally block of an execution)."""
        with self._lock:
            self._requested.discard(execution_id)
        logger.debug("Cancel registry: cleared execution %s", execution_id)

    def clear(self) -> None:
        with self._lock:
            self._requested.clear()

    def token(self, execution_id: str) -> "CancellationToken":
        return CancellationToken(execution_id, self)

    def __contains__(self, execution_id: object) -> bool:
        return isinstance(execution_id, str) and self.is_requested(execution_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._requested)


class CancellationToken:
    """Binds one execution ID to the registry for step-boundary checks."""

    __slots__ = ("execution_id", "_registry")

    def __init__(self, execution_id: str, registry: CancellationRegistry) -> None:
        self.execution_id = execution_id
        self._registry = registry

    @property
    def cancelled(self) -> bool:
        return self._registry.is_requested(self.execution_id)

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise RunCancelledError(f"Execution {self.execution_id} was cancelled")
