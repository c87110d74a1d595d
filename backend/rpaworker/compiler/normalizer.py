"""Flow normalizer — orders an editor graph into an executable Step list.

Ordering is Kahn's algorithm with a FIFO queue seeded in node-list order, so
unconnected nodes keep the order the editor saved them in.  Nodes that never
reach in-degree zero (members of a cycle, and anything downstream of one)
are dropped from the output without raising.
"""

from __future__ import annotations

import logging
from collections import deque

from rpaworker.compiler.ir import FlowDefinition, FlowEdge, FlowNode, Step
from rpaworker.compiler.parser import parse_steps

logger = logging.getLogger("rpaworker.compiler.normalizer")


def topo_sort(nodes: list[FlowNode], edges: list[FlowEdge]) -> list[FlowNode]:
    """Return *nodes* ordered so that every edge source precedes its target."""
    node_map = {n.id: n for n in nodes}
    in_degree: dict[str, int] = {n.id: 0 for n in nodes}
    adjacency: dict[str, list[str]] = {n.id: [] for n in nodes}

    for edge in edges:
        if edge.source not in node_map or edge.target not in node_map:
            continue
        adjacency[edge.source].append(edge.target)
        in_degree[edge.target] += 1

    queue = deque(n.id for n in nodes if in_degree[n.id] == 0)
    ordered: list[FlowNode] = []

    while queue:
        nid = queue.popleft()
        ordered.append(node_map[nid])
        for nxt in adjacency[nid]:
            in_degree[nxt] -= 1
            if in_degree[nxt] == 0:
                queue.append(nxt)

    if len(ordered) < len(node_map):
        emitted = {n.id for n in ordered}
        dropped = [n.id for n in nodes if n.id not in emitted]
        logger.warning("Flow graph has a cycle; dropping nodes %s", dropped)

    return ordered


def node_to_step(node: FlowNode) -> Step:
    data = node.data
    return Step(
        id=node.id,
        action_type=data.get("actionType") or node.type,
        config=dict(data.get("config") or {}),
        children=tuple(parse_steps(data.get("children"))),
        else_children=tuple(parse_steps(data.get("elseChildren"))),
    )


def normalize_flow(flow: FlowDefinition) -> list[Step]:
    """Topologically order *flow* and convert each node to a Step."""
    return [node_to_step(n) for n in topo_sort(flow.nodes, flow.edges)]
