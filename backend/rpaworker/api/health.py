"""Health and metrics endpoints."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from rpaworker.auth import require_worker_secret
from rpaworker.schemas.executions import HealthOut, PoolStatusOut
from rpaworker.utils.metrics import get_metrics_summary

router = APIRouter()


@router.get("/health", response_model=HealthOut)
async def health(request: Request):
    pool = request.app.state.pool.status()
    return HealthOut(
        timestamp=datetime.now(timezone.utc).isoformat(),
        pool=PoolStatusOut(
            active_sessions=pool.active_sessions,
            max_sessions=pool.max_sessions,
            browser_connected=pool.browser_connected,
        ),
    )


@router.get("/metrics/summary", dependencies=[Depends(require_worker_secret)])
async def metrics_summary():
    return get_metrics_summary()
