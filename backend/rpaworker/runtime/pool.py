"""Browser pool — one shared Chromium host, one isolated context per execution.

The host is launched lazily on first acquisition and relaunched if it is
found disconnected.  Each execution gets its own ``BrowserContext`` (fresh
cookies/storage, fixed viewport and user agent) plus a single ``Page``.
Capacity is a hard limit: an acquisition beyond ``max_sessions`` fails
immediately, before any awaiting, and nothing is queued.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from playwright.async_api import async_playwright

logger = logging.getLogger("rpaworker.pool")


class PoolExhaustedError(Exception):
    """Raised when every session slot is taken."""

    def __init__(self, max_sessions: int):
        self.max_sessions = max_sessions
        super().__init__(f"Max concurrent sessions ({max_sessions}) reached")


class SessionConflictError(Exception):
    """Raised when an execution ID already owns a session."""

    def __init__(self, execution_id: str):
        self.execution_id = execution_id
        super().__init__(f"Execution {execution_id} already holds a browser session")


@dataclass
class Session:
    execution_id: str
    context: Any
    page: Any

    async def close(self) -> None:
        """Close page then context; failures are logged and swallowed."""
        for target in (self.page, self.context):
            try:
                await target.close()
            except Exception as exc:
                logger.debug("Session %s: close failed: %s", self.execution_id, exc)


@dataclass
class PoolStatus:
    active_sessions: int
    max_sessions: int
    browser_connected: bool

    def to_payload(self) -> dict[str, Any]:
        return {
            "activeSessions": self.active_sessions,
            "maxSessions": self.max_sessions,
            "browserConnected": self.browser_connected,
        }


class PlaywrightLauncher:
    """Starts Playwright once and launches Chromium hosts from it."""

    def __init__(self) -> None:
        self._playwright: Any = None

    async def launch(self, headless: bool, args: list[str]) -> Any:
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        return await self._playwright.chromium.launch(headless=headless, args=args)

    async def stop(self) -> None:
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None


class BrowserPool:
    def __init__(
        self,
        max_sessions: int = 3,
        headless: bool = True,
        viewport: dict[str, int] | None = None,
        user_agent: str | None = None,
        launch_args: list[str] | None = None,
        launcher: Any = None,
    ) -> None:
        self.max_sessions = max_sessions
        self.headless = headless
        self.viewport = viewport or {"width": 1280, "height": 720}
        self.user_agent = user_agent
        self.launch_args = list(launch_args or [])
        self._launcher = launcher or PlaywrightLauncher()
        self._browser: Any = None
        self._browser_lock = asyncio.Lock()
        self._sessions: dict[str, Session] = {}
        # IDs that passed the capacity check but whose context is still opening
        self._pending: set[str] = set()

    @classmethod
    def from_settings(cls, settings: Any, launcher: Any = None) -> "BrowserPool":
        return cls(
            max_sessions=settings.POOL_MAX_SESSIONS,
            headless=settings.BROWSER_HEADLESS,
            viewport=settings.viewport,
            user_agent=settings.BROWSER_USER_AGENT,
            launch_args=settings.BROWSER_LAUNCH_ARGS,
            launcher=launcher,
        )

    # ── Host ────────────────────────────────────────────────────

    @property
    def browser_connected(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def _get_browser(self) -> Any:
        async with self._browser_lock:
            if self.browser_connected:
                return self._browser
            if self._browser is not None:
                logger.warning("Browser host disconnected; relaunching")
            self._browser = await self._launcher.launch(
                headless=self.headless, args=self.launch_args
            )
            logger.info("Browser host launched (headless=%s)", self.headless)
            return self._browser

    # ── Sessions ────────────────────────────────────────────────

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)

    async def acquire(self, execution_id: str) -> Session:
        """Create and register an isolated session for *execution_id*.

        Raises :class:`PoolExhaustedError` or :class:`SessionConflictError`
        before the first suspension point, so a rejected caller never
        touches the browser.
        """
        if execution_id in self._sessions or execution_id in self._pending:
            raise SessionConflictError(execution_id)
        if len(self._sessions) + len(self._pending) >= self.max_sessions:
            raise PoolExhaustedError(self.max_sessions)

        self._pending.add(execution_id)
        try:
            browser = await self._get_browser()
            context = await browser.new_context(
                viewport=self.viewport,
                user_agent=self.user_agent,
            )
            try:
                page = await context.new_page()
            except BaseException:
                await context.close()
                raise
            session = Session(execution_id=execution_id, context=context, page=page)
            self._sessions[execution_id] = session
        finally:
            self._pending.discard(execution_id)

        logger.debug(
            "Session acquired for %s (%d/%d)", execution_id, len(self._sessions), self.max_sessions
        )
        return session

    async def release(self, execution_id: str) -> None:
        """Close and deregister the session for *execution_id*. Idempotent."""
        session = self._sessions.pop(execution_id, None)
        if session is None:
            return
        await session.close()
        logger.debug(
            "Session released for %s (%d/%d)", execution_id, len(self._sessions), self.max_sessions
        )

    def status(self) -> PoolStatus:
        return PoolStatus(
            active_sessions=len(self._sessions),
            max_sessions=self.max_sessions,
            browser_connected=self.browser_connected,
        )

    async def shutdown(self) -> None:
        """Release every session, close the host and stop Playwright."""
        for execution_id in list(self._sessions):
            await self.release(execution_id)
        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as exc:
                logger.debug("Browser close failed: %s", exc)
            self._browser = None
        await self._launcher.stop()
        logger.info("Browser pool shut down")
