"""Callback delivery — POSTs progress and completion events to the caller.

Delivery is best-effort: one attempt, no retry.  A failed POST is logged
and never changes the outcome of the execution that produced it.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger("rpaworker.callbacks")


class CallbackService:
    def __init__(
        self,
        secret: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.secret = secret
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Any) -> "CallbackService":
        return cls(secret=settings.WORKER_SECRET, timeout=settings.CALLBACK_TIMEOUT_SECONDS)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.secret:
            headers["Authorization"] = f"Bearer {self.secret}"
        return headers

    async def post(self, url: str, payload: dict[str, Any]) -> bool:
        """Deliver *payload* to *url*. Returns False on any failure."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(url, json=payload, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("Callback %s to %s failed: %s", payload.get("type"), url, exc)
            return False
        if resp.status_code >= 400:
            logger.warning(
                "Callback %s to %s returned %s", payload.get("type"), url, resp.status_code
            )
            return False
        return True

    async def step_complete(self, url: str, execution_id: str, step: dict[str, Any]) -> bool:
        return await self.post(
            url, {"type": "step_complete", "executionId": execution_id, "step": step}
        )

    async def execution_complete(self, url: str, result: dict[str, Any]) -> bool:
        return await self.post(url, {"type": "execution_complete", **result})
