"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from rpaworker.actions import build_default_registry
from rpaworker.api.capture import router as capture_router
from rpaworker.api.executions import router as executions_router
from rpaworker.api.health import router as health_router
from rpaworker.config import settings
from rpaworker.registry.action_registry import ActionRegistry
from rpaworker.runtime.cancellation import CancellationRegistry
from rpaworker.runtime.executor import FlowExecutor
from rpaworker.runtime.pool import BrowserPool
from rpaworker.services.callback_service import CallbackService
from rpaworker.services.execution_service import ExecutionService
from rpaworker.utils.logger import setup_logger

logger = setup_logger(
    log_format=settings.LOG_FORMAT,
    log_level="DEBUG" if settings.DEBUG else settings.LOG_LEVEL,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "RPA flow worker ready (pool=%d, headless=%s, actions=%d)",
        app.state.pool.max_sessions,
        app.state.pool.headless,
        len(app.state.registry),
    )
    try:
        yield
    finally:
        logger.info("Shutting down worker")
        await app.state.execution_service.shutdown()
        await app.state.pool.shutdown()
        app.state.cancellations.clear()


def create_app(
    pool: BrowserPool | None = None,
    registry: ActionRegistry | None = None,
    callbacks: CallbackService | None = None,
) -> FastAPI:
    """Build the worker app with its pool, registries and services on ``app.state``."""
    application = FastAPI(
        title="RPA Flow Worker",
        description="Browser flow execution engine",
        version="0.1.0",
        lifespan=lifespan,
    )

    state = application.state
    state.cancellations = CancellationRegistry()
    state.registry = registry or build_default_registry()
    state.pool = pool or BrowserPool.from_settings(settings)
    state.executor = FlowExecutor(state.pool, state.cancellations, state.registry)
    state.callbacks = callbacks or CallbackService.from_settings(settings)
    state.execution_service = ExecutionService(state.executor, state.callbacks)

    application.include_router(health_router, tags=["health"])
    application.include_router(executions_router, tags=["executions"])
    application.include_router(capture_router, tags=["capture"])
    return application


app = create_app()
