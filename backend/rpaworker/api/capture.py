"""Capture API router — screenshot and element map for the selector picker."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from rpaworker.auth import require_worker_secret
from rpaworker.config import settings
from rpaworker.runtime.pool import PoolExhaustedError
from rpaworker.schemas.executions import CaptureOut, CaptureRequest
from rpaworker.services.capture_service import capture_page

logger = logging.getLogger("rpaworker.api")

router = APIRouter(dependencies=[Depends(require_worker_secret)])


@router.post("/capture", response_model=CaptureOut)
async def capture(body: CaptureRequest, request: Request):
    try:
        return await capture_page(
            request.app.state.pool, body.url, max_elements=settings.CAPTURE_MAX_ELEMENTS
        )
    except PoolExhaustedError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except Exception as exc:
        logger.warning("Capture of %s failed: %s", body.url, exc)
        raise HTTPException(status_code=500, detail=str(exc) or "Capture failed") from exc
