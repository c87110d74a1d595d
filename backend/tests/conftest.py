"""Shared fixtures for worker tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest

from rpaworker.actions.variables import set_variable
from rpaworker.compiler.ir import Step
from rpaworker.registry.action_registry import ActionOutcome, ActionRegistry, VariableWrite
from rpaworker.runtime.cancellation import CancellationRegistry
from rpaworker.runtime.executor import FlowExecutor
from rpaworker.runtime.pool import BrowserPool
from rpaworker.utils.metrics import metrics


# ── Fake Playwright objects ─────────────────────────────────────


class FakeContext:
    def __init__(self, **options: Any) -> None:
        self.options = options
        self.pages: list[AsyncMock] = []
        self.close = AsyncMock()

    async def new_page(self) -> AsyncMock:
        page = AsyncMock()
        page.url = "about:blank"
        self.pages.append(page)
        return page


class FakeBrowser:
    def __init__(self) -> None:
        self.contexts: list[FakeContext] = []
        self.connected = True
        self.close = AsyncMock()

    def is_connected(self) -> bool:
        return self.connected

    async def new_context(self, **options: Any) -> FakeContext:
        ctx = FakeContext(**options)
        self.contexts.append(ctx)
        return ctx


class FakeLauncher:
    def __init__(self) -> None:
        self.browsers: list[FakeBrowser] = []
        self.launch_calls: list[dict[str, Any]] = []
        self.stopped = False

    async def launch(self, headless: bool, args: list[str]) -> FakeBrowser:
        self.launch_calls.append({"headless": headless, "args": args})
        browser = FakeBrowser()
        self.browsers.append(browser)
        return browser

    async def stop(self) -> None:
        self.stopped = True


# ── Test action handlers ────────────────────────────────────────


class HandlerLog:
    """Records every (action, config) pair a test handler receives."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def configs(self, action_type: str) -> list[dict[str, Any]]:
        return [cfg for name, cfg in self.calls if name == action_type]


def make_registry(log: HandlerLog) -> ActionRegistry:
    registry = ActionRegistry()

    async def noop(session, config):
        log.calls.append(("noop", config))
        return {"ok": True}

    async def navigate(session, config):
        log.calls.append(("navigate", config))
        return {"url": config.get("url")}

    async def fail(session, config):
        log.calls.append(("fail", config))
        raise RuntimeError(config.get("message") or "boom")

    async def fail_on(session, config):
        """Fails when ``value`` equals ``failOn``."""
        log.calls.append(("failOn", config))
        if str(config.get("value")) == str(config.get("failOn")):
            raise RuntimeError(f"failed on {config.get('value')}")
        return {"value": config.get("value")}

    async def remember(session, config):
        log.calls.append(("remember", config))
        return ActionOutcome(
            output={"saved": config.get("value")},
            set_variable=VariableWrite(config["saveAs"], config.get("value")),
        )

    async def snap(session, config):
        log.calls.append(("snap", config))
        return ActionOutcome(output={"screenshot": "aGVsbG8="}, screenshot="aGVsbG8=")

    registry.register("noop", noop)
    registry.register("navigate", navigate)
    registry.register("fail", fail)
    registry.register("failOn", fail_on)
    registry.register("remember", remember)
    registry.register("snap", snap)
    registry.register("setVariable", set_variable)
    return registry


def step(step_id: str, action_type: str = "noop", children=(), else_children=(), **config) -> Step:
    return Step(
        id=step_id,
        action_type=action_type,
        config=config,
        children=tuple(children),
        else_children=tuple(else_children),
    )


# ── Fixtures ────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture
def pool(launcher) -> BrowserPool:
    return BrowserPool(max_sessions=3, launcher=launcher, user_agent="test-agent")


@pytest.fixture
def cancellations() -> CancellationRegistry:
    return CancellationRegistry()


@pytest.fixture
def handler_log() -> HandlerLog:
    return HandlerLog()


@pytest.fixture
def registry(handler_log) -> ActionRegistry:
    return make_registry(handler_log)


@pytest.fixture
def executor(pool, cancellations, registry) -> FlowExecutor:
    return FlowExecutor(pool, cancellations, registry)
