"""Pydantic models for the worker HTTP API (camelCase on the wire)."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel

_CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


class StepIn(BaseModel):
    id: str = Field(min_length=1)
    action_type: str = ""
    config: dict[str, Any] = Field(default_factory=dict)
    children: list["StepIn"] | None = None
    else_children: list["StepIn"] | None = None

    model_config = _CAMEL


class FlowNodeIn(BaseModel):
    id: str
    type: str = ""
    data: dict[str, Any] = Field(default_factory=dict)


class FlowEdgeIn(BaseModel):
    source: str
    target: str


class FlowIn(BaseModel):
    nodes: list[FlowNodeIn] = Field(default_factory=list)
    edges: list[FlowEdgeIn] = Field(default_factory=list)


class ExecuteRequest(BaseModel):
    execution_id: str = Field(min_length=1)
    steps: list[StepIn] | None = None
    flow: FlowIn | None = None
    callback_url: str | None = None
    variables: dict[str, Any] | None = None

    model_config = _CAMEL

    @model_validator(mode="after")
    def _one_source(self) -> "ExecuteRequest":
        if self.steps is not None and self.flow is not None:
            raise ValueError("provide either 'steps' or 'flow', not both")
        return self


class ExecuteAccepted(BaseModel):
    status: Literal["started"] = "started"
    execution_id: str

    model_config = _CAMEL


class CancelOut(BaseModel):
    status: Literal["ok"] = "ok"
    execution_id: str

    model_config = _CAMEL


class PoolStatusOut(BaseModel):
    active_sessions: int
    max_sessions: int
    browser_connected: bool

    model_config = _CAMEL


class HealthOut(BaseModel):
    status: str = "ok"
    timestamp: str
    pool: PoolStatusOut


class CaptureRequest(BaseModel):
    url: str = Field(min_length=1)


class CaptureOut(BaseModel):
    screenshot: str
    elements: list[dict[str, Any]]
    url: str
    title: str
