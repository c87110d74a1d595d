"""Flow JSON parser — converts raw step / graph dicts into IR structures."""

from __future__ import annotations

from typing import Any

from rpaworker.compiler.ir import FlowDefinition, FlowEdge, FlowNode, Step


def parse_steps(raw_steps: list[dict[str, Any]] | None) -> list[Step]:
    """Parse a list of step dicts (``{id, actionType, config, children?, elseChildren?}``)."""
    return [parse_step(d) for d in raw_steps or []]


def parse_step(d: dict[str, Any]) -> Step:
    return Step(
        id=str(d["id"]),
        action_type=_first(d, "actionType", "action_type") or "",
        config=dict(d.get("config") or {}),
        children=tuple(parse_steps(_first(d, "children"))),
        else_children=tuple(parse_steps(_first(d, "elseChildren", "else_children"))),
    )


def parse_flow(flow: dict[str, Any]) -> FlowDefinition:
    """Parse an editor graph ``{nodes: [...], edges: [...]}``."""
    nodes = [
        FlowNode(id=str(n["id"]), type=n.get("type") or "", data=dict(n.get("data") or {}))
        for n in flow.get("nodes") or []
    ]
    edges = [
        FlowEdge(source=str(e["source"]), target=str(e["target"]))
        for e in flow.get("edges") or []
    ]
    return FlowDefinition(nodes=nodes, edges=edges)


# ── Internal helpers ────────────────────────────────────────────


def _first(d: dict[str, Any], *keys: str) -> Any:
    """Return the first present key; the editor emits camelCase, Python callers snake_case."""
    for key in keys:
        if d.get(key) is not None:
            return d[key]
    return None
