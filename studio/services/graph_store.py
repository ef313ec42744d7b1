"""
In-memory workflow graph edited by the node editor.

Keeps the invariant that every edge endpoint names an existing node:
connecting to a missing node is rejected and deleting a node removes its
edges.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from studio.models.graph import NodeStatus, WorkflowEdge, WorkflowNode

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class GraphError(ValueError):
    """Raised when a mutation would leave the graph inconsistent."""


def default_edge_id(source: str, target: str) -> str:
    return f"e{source}-{target}"


class WorkflowGraph:
    def __init__(
        self,
        nodes: Iterable[WorkflowNode] | None = None,
        edges: Iterable[WorkflowEdge] | None = None,
    ):
        self._nodes: list[WorkflowNode] = []
        self._edges: list[WorkflowEdge] = []
        if nodes or edges:
            self.replace(list(nodes or []), list(edges or []))

    @property
    def nodes(self) -> list[WorkflowNode]:
        return self._nodes

    @property
    def edges(self) -> list[WorkflowEdge]:
        return self._edges

    def get_node(self, node_id: str) -> WorkflowNode:
        for node in self._nodes:
            if node.id == node_id:
                return node
        raise KeyError(f"Node '{node_id}' not found")

    def has_node(self, node_id: str) -> bool:
        return any(n.id == node_id for n in self._nodes)

    # ---- nodes ----

    def add_node(self, node: WorkflowNode | dict[str, Any]) -> WorkflowNode:
        if isinstance(node, dict):
            node = WorkflowNode.model_validate(node)
        if self.has_node(node.id):
            raise GraphError(f"Node '{node.id}' already exists")
        self._nodes.append(node)
        return node

    def update_node(
        self,
        node_id: str,
        data: dict[str, Any] | None = None,
        *,
        status: NodeStatus | None = None,
        output: dict[str, Any] | None = _UNSET,
    ) -> WorkflowNode:
        """Merge ``data`` into the node config and/or set its run fields."""
        node = self.get_node(node_id)
        if data:
            node.config = {**node.config, **data}
        if status is not None:
            node.status = status
        if output is not _UNSET:
            node.output = output
        return node

    def delete_node(self, node_id: str) -> WorkflowNode:
        node = self.get_node(node_id)
        self._nodes.remove(node)
        before = len(self._edges)
        self._edges = [
            e for e in self._edges if e.source != node_id and e.target != node_id
        ]
        removed = before - len(self._edges)
        if removed:
            logger.debug("Deleted node %s and %d attached edge(s)", node_id, removed)
        return node

    # ---- edges ----

    def connect(
        self,
        source: str,
        target: str,
        *,
        edge_id: str | None = None,
        source_handle: str | None = None,
        target_handle: str | None = None,
    ) -> WorkflowEdge:
        edge_id = edge_id or default_edge_id(source, target)
        for edge in self._edges:
            if edge.id == edge_id:
                return edge

        missing = [nid for nid in (source, target) if not self.has_node(nid)]
        if missing:
            raise GraphError(
                f"Cannot connect {source} -> {target}: unknown node(s) {', '.join(missing)}"
            )

        edge = WorkflowEdge(
            id=edge_id,
            source=source,
            target=target,
            source_handle=source_handle,
            target_handle=target_handle,
        )
        self._edges.append(edge)
        return edge

    def delete_edge(self, edge_id: str) -> WorkflowEdge:
        for edge in self._edges:
            if edge.id == edge_id:
                self._edges.remove(edge)
                return edge
        raise KeyError(f"Edge '{edge_id}' not found")

    # ---- whole graph ----

    def snapshot(self) -> tuple[list[WorkflowNode], list[WorkflowEdge]]:
        """Deep copies; later edits to the graph don't reach them."""
        return (
            [n.model_copy(deep=True) for n in self._nodes],
            [e.model_copy(deep=True) for e in self._edges],
        )

    def replace(self, nodes: list[WorkflowNode], edges: list[WorkflowEdge]) -> None:
        """Swap in a whole new graph. Nothing is merged with the current one."""
        node_ids: set[str] = set()
        for node in nodes:
            if node.id in node_ids:
                raise GraphError(f"Duplicate node id '{node.id}'")
            node_ids.add(node.id)

        for edge in edges:
            if edge.source not in node_ids or edge.target not in node_ids:
                raise GraphError(
                    f"Edge '{edge.id}' references a missing node ({edge.source} -> {edge.target})"
                )

        self._nodes = [n.model_copy(deep=True) for n in nodes]
        self._edges = [e.model_copy(deep=True) for e in edges]
