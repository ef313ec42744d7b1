"""
Topological ordering of a workflow graph.

Depth-first over predecessors: a node is emitted only after every node with
an edge into it. Ties between independent nodes follow node-list order.
"""

from __future__ import annotations

import logging
from typing import Sequence

from studio.models.graph import WorkflowEdge, WorkflowNode

logger = logging.getLogger(__name__)


class CycleDetectedError(Exception):
    """The graph has a directed cycle; ``source -> target`` closes it."""

    def __init__(self, source: str, target: str):
        self.source = source
        self.target = target
        super().__init__(f"Cycle detected: edge {source} -> {target} closes a loop")


def _build_predecessors(
    nodes: Sequence[WorkflowNode],
    edges: Sequence[WorkflowEdge],
) -> dict[str, list[str]]:
    """node -> upstream node ids, in edge-list order, duplicates collapsed."""
    predecessors: dict[str, list[str]] = {n.id: [] for n in nodes}
    for edge in edges:
        if edge.source not in predecessors or edge.target not in predecessors:
            logger.debug("Ignoring dangling edge %s (%s -> %s)", edge.id, edge.source, edge.target)
            continue
        upstream = predecessors[edge.target]
        if edge.source not in upstream:
            upstream.append(edge.source)
    return predecessors


def order(
    nodes: Sequence[WorkflowNode],
    edges: Sequence[WorkflowEdge],
) -> list[WorkflowNode]:
    """
    Return the nodes in an order where every edge points forward.

    Raises:
        CycleDetectedError: when a predecessor is reached while still on the
            current DFS path.
    """
    node_map = {n.id: n for n in nodes}
    predecessors = _build_predecessors(nodes, edges)

    ordered: list[WorkflowNode] = []
    visited: set[str] = set()
    in_progress: set[str] = set()

    for node in nodes:
        if node.id in visited:
            continue

        # Frames are (node id, predecessors not yet visited)
        in_progress.add(node.id)
        stack = [(node.id, iter(predecessors[node.id]))]
        while stack:
            node_id, upstream_iter = stack[-1]
            for upstream in upstream_iter:
                if upstream in in_progress:
                    raise CycleDetectedError(upstream, node_id)
                if upstream not in visited:
                    in_progress.add(upstream)
                    stack.append((upstream, iter(predecessors[upstream])))
                    break
            else:
                stack.pop()
                in_progress.discard(node_id)
                visited.add(node_id)
                ordered.append(node_map[node_id])

    return ordered
