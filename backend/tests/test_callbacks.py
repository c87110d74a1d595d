"""Tests for callback delivery and the background execution service."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from rpaworker.services.callback_service import CallbackService
from rpaworker.services.execution_service import ExecutionConflictError, ExecutionService

from conftest import step


class Recorder:
    """httpx MockTransport handler that keeps every request body."""

    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"ok": True})

    @property
    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def callbacks(recorder) -> CallbackService:
    return CallbackService(secret="s3cret", transport=httpx.MockTransport(recorder))


class TestCallbackService:
    @pytest.mark.asyncio
    async def test_post_with_bearer(self, callbacks, recorder):
        ok = await callbacks.post("http://app.test/cb", {"type": "ping"})
        assert ok is True
        req = recorder.requests[0]
        assert req.headers["Authorization"] == "Bearer s3cret"
        assert req.headers["Content-Type"] == "application/json"
        assert json.loads(req.content) == {"type": "ping"}

    @pytest.mark.asyncio
    async def test_no_secret_no_header(self, recorder):
        svc = CallbackService(transport=httpx.MockTransport(recorder))
        await svc.post("http://app.test/cb", {"type": "ping"})
        assert "Authorization" not in recorder.requests[0].headers

    @pytest.mark.asyncio
    async def test_http_error_status_returns_false(self):
        svc = CallbackService(transport=httpx.MockTransport(Recorder(status_code=500)))
        assert await svc.post("http://app.test/cb", {"type": "ping"}) is False

    @pytest.mark.asyncio
    async def test_transport_error_swallowed(self):
        def boom(request):
            raise httpx.ConnectError("connection refused", request=request)

        svc = CallbackService(transport=httpx.MockTransport(boom))
        assert await svc.post("http://app.test/cb", {"type": "ping"}) is False

    @pytest.mark.asyncio
    async def test_event_shapes(self, callbacks, recorder):
        await callbacks.step_complete("http://app.test/cb", "e1", {"stepId": "a"})
        await callbacks.execution_complete(
            "http://app.test/cb", {"executionId": "e1", "status": "completed", "steps": []}
        )
        assert recorder.bodies == [
            {"type": "step_complete", "executionId": "e1", "step": {"stepId": "a"}},
            {"type": "execution_complete", "executionId": "e1", "status": "completed", "steps": []},
        ]


@pytest.fixture
def service(executor, callbacks) -> ExecutionService:
    return ExecutionService(executor, callbacks)


class TestExecutionService:
    @pytest.mark.asyncio
    async def test_reports_steps_then_completion(self, service, recorder):
        task = service.start("e1", [step("a"), step("b")], callback_url="http://app.test/cb")
        result = await task
        assert result.status == "completed"

        bodies = recorder.bodies
        assert [b["type"] for b in bodies] == ["step_complete", "step_complete", "execution_complete"]
        assert {b["step"]["stepId"] for b in bodies[:2]} == {"a", "b"}
        assert bodies[0]["step"]["status"] == "completed"
        assert "startedAt" in bodies[0]["step"]
        final = bodies[-1]
        assert final["executionId"] == "e1"
        assert final["status"] == "completed"
        assert [s["stepId"] for s in final["steps"]] == ["a", "b"]
        assert "error" not in final

    @pytest.mark.asyncio
    async def test_failed_completion_carries_error(self, service, recorder):
        await service.start("e1", [step("f", "fail", message="nope")], callback_url="http://app.test/cb")
        final = recorder.bodies[-1]
        assert final["status"] == "failed"
        assert final["error"] == "nope"
        assert final["steps"][0]["error"] == "nope"

    @pytest.mark.asyncio
    async def test_no_callback_url(self, service, recorder):
        result = await service.start("e1", [step("a")])
        assert result.status == "completed"
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_initial_variables(self, service, handler_log):
        await service.start("e1", [step("n", "navigate", url="{{u}}")], variables={"u": "https://v.test"})
        assert handler_log.configs("navigate") == [{"url": "https://v.test"}]

    @pytest.mark.asyncio
    async def test_duplicate_running_id_rejected(self, service, registry):
        gate = asyncio.Event()

        async def block(session, config):
            await gate.wait()
            return {}

        registry.register("block", block)
        task = service.start("e1", [step("b", "block")])
        await asyncio.sleep(0)
        assert service.is_running("e1")
        with pytest.raises(ExecutionConflictError):
            service.start("e1", [step("a")])
        gate.set()
        await task
        await asyncio.sleep(0)
        assert not service.is_running("e1")

    @pytest.mark.asyncio
    async def test_unexpected_error_reported(self, service, recorder, monkeypatch):
        async def explode(*args, **kwargs):
            raise RuntimeError("driver crashed")

        monkeypatch.setattr(service.executor, "execute", explode)
        result = await service.start("e1", [step("a")], callback_url="http://app.test/cb")
        assert result is None
        assert recorder.bodies == [{
            "type": "execution_complete",
            "executionId": "e1",
            "status": "failed",
            "steps": [],
            "error": "driver crashed",
        }]

    @pytest.mark.asyncio
    async def test_callback_failure_does_not_affect_run(self, executor):
        def refuse(request):
            raise httpx.ConnectError("down", request=request)

        svc = ExecutionService(executor, CallbackService(transport=httpx.MockTransport(refuse)))
        result = await svc.start("e1", [step("a"), step("b")], callback_url="http://app.test/cb")
        assert result.status == "completed"
        assert len(result.steps) == 2

    @pytest.mark.asyncio
    async def test_shutdown_cancels_in_flight(self, service, registry, pool):
        started = asyncio.Event()

        async def hang(session, config):
            started.set()
            await asyncio.sleep(3600)

        registry.register("hang", hang)
        service.start("e1", [step("h", "hang")])
        await started.wait()
        await service.shutdown()
        assert pool.active_sessions == 0
        assert service.running == []
