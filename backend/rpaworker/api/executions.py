"""Execution API router — start and cancel flow executions."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from rpaworker.auth import require_worker_secret
from rpaworker.compiler.normalizer import normalize_flow
from rpaworker.compiler.parser import parse_flow, parse_steps
from rpaworker.compiler.validator import validate_steps
from rpaworker.schemas.executions import CancelOut, ExecuteAccepted, ExecuteRequest
from rpaworker.services.execution_service import ExecutionConflictError

logger = logging.getLogger("rpaworker.api")

router = APIRouter(dependencies=[Depends(require_worker_secret)])


@router.post("/execute", response_model=ExecuteAccepted)
async def execute(body: ExecuteRequest, request: Request):
    state = request.app.state
    if body.flow is not None:
        steps = normalize_flow(parse_flow(body.flow.model_dump()))
    else:
        steps = parse_steps([s.model_dump(by_alias=True) for s in body.steps or []])

    if not steps:
        raise HTTPException(status_code=400, detail="executionId and steps are required")

    errors = validate_steps(steps, state.registry)
    if errors:
        raise HTTPException(
            status_code=422,
            detail={"message": "Flow validation failed", "errors": errors},
        )

    try:
        state.execution_service.start(
            body.execution_id, steps, callback_url=body.callback_url, variables=body.variables
        )
    except ExecutionConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc

    return ExecuteAccepted(execution_id=body.execution_id)


@router.post("/cancel/{execution_id}", response_model=CancelOut)
async def cancel(execution_id: str, request: Request):
    """Flag *execution_id*; it stops at its next step boundary."""
    request.app.state.cancellations.request(execution_id)
    if not request.app.state.execution_service.is_running(execution_id):
        logger.info("Cancel requested for %s, which is not running here", execution_id)
    return CancelOut(execution_id=execution_id)
