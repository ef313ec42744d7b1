"""
Workflow engine.

Owns the live graph, the run log and the saved-workflow library, and runs
the graph: orders nodes topologically, feeds each node the merged outputs
of its upstream nodes, dispatches to the operation registry and writes
status/output back onto the graph.

Key concepts:
- One run at a time per engine; a second call raises WorkflowBusyError.
- Nodes run strictly one after another in scheduler order.
- Fail-fast: the first failing node stops the run; later nodes keep the
  status they had before the run.
- Inputs are merged in edge-list order, later edges overwriting earlier keys.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from typing import Any, AsyncIterator, Callable, get_args

from studio import config
from studio.llm.provider import CapabilityProvider
from studio.models.graph import (
    Category,
    NodeStatus,
    SavedWorkflow,
    WorkflowEdge,
    WorkflowNode,
)
from studio.models.node_registry import node_label
from studio.services.graph_store import WorkflowGraph
from studio.services.node_executors import run_operation
from studio.services.run_log import RunLog, RunLogEntry
from studio.services.scheduler import CycleDetectedError, order
from studio.services.workflow_library import WorkflowLibrary

logger = logging.getLogger(__name__)

DEFAULT_WORKFLOW_NAME = "Untitled Workflow"
DEFAULT_CATEGORY: Category = "copy"

NodeListener = Callable[[dict[str, Any]], None]


class WorkflowBusyError(RuntimeError):
    """A run was requested while another run on the same engine is active."""


def _collect_incoming(
    nodes: list[WorkflowNode], edges: list[WorkflowEdge]
) -> dict[str, list[WorkflowEdge]]:
    """target node -> incoming edges, preserving edge-list order."""
    node_ids = {n.id for n in nodes}
    incoming: dict[str, list[WorkflowEdge]] = {nid: [] for nid in node_ids}
    for edge in edges:
        if edge.source in node_ids and edge.target in node_ids:
            incoming[edge.target].append(edge)
    return incoming


def merge_inputs(
    incoming: list[WorkflowEdge], results: dict[str, dict[str, Any]]
) -> dict[str, Any]:
    """Union of upstream outputs; a later edge wins on key collisions."""
    inputs: dict[str, Any] = {}
    for edge in incoming:
        upstream = results.get(edge.source)
        if upstream:
            inputs.update(upstream)
    return inputs


class WorkflowEngine:
    def __init__(
        self,
        provider: CapabilityProvider | None = None,
        *,
        graph: WorkflowGraph | None = None,
        run_log: RunLog | None = None,
        library: WorkflowLibrary | None = None,
    ):
        if provider is None:
            from studio.llm.gemini import GeminiProvider

            provider = GeminiProvider()
        self.provider = provider
        self.graph = graph or WorkflowGraph()
        self.run_log = run_log or RunLog()
        self.library = library or WorkflowLibrary()

        self.workflow_name: str = DEFAULT_WORKFLOW_NAME
        self.active_category: Category = DEFAULT_CATEGORY
        self.last_error: str | None = None

        self._running = False
        self._node_listeners: list[NodeListener] = []

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Node status events
    # ------------------------------------------------------------------

    def subscribe_nodes(self, callback: NodeListener) -> None:
        self._node_listeners.append(callback)

    def unsubscribe_nodes(self, callback: NodeListener) -> None:
        if callback in self._node_listeners:
            self._node_listeners.remove(callback)

    def _set_node_state(
        self,
        node_id: str,
        status: NodeStatus,
        output: dict[str, Any] | None = None,
    ) -> None:
        try:
            if status == "completed":
                self.graph.update_node(node_id, status=status, output=output)
            else:
                self.graph.update_node(node_id, status=status)
        except KeyError:
            # Removed by the editor while the run was in flight
            logger.warning("Node %s disappeared during the run", node_id)

        event = {"event": "node_status", "node_id": node_id, "status": status}
        if status == "completed":
            event["output"] = output
        for callback in list(self._node_listeners):
            try:
                callback(event)
            except Exception:
                logger.exception("Node listener failed")

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute_workflow(self) -> None:
        """
        Run the current graph once.

        Raises:
            WorkflowBusyError: if a run is already in progress on this engine.
        """
        if self._running:
            raise WorkflowBusyError("A workflow is already running")

        self._running = True
        try:
            self.last_error = None
            self.run_log.clear()
            self.run_log.info("🚀 Starting workflow execution...")
            await self._run()
        finally:
            self._running = False

    async def _run(self) -> None:
        nodes, edges = self.graph.snapshot()
        results: dict[str, dict[str, Any]] = {}

        try:
            ordered = order(nodes, edges)
        except CycleDetectedError as e:
            self._fail(str(e))
            return

        logger.info("Executing workflow with %d nodes: %s", len(ordered), [n.id for n in ordered])
        incoming = _collect_incoming(nodes, edges)

        for node in ordered:
            label = node_label(node.type, node.config)
            self._set_node_state(node.id, "running")
            self.run_log.info(f"▶️ Executing: {label}")

            inputs = merge_inputs(incoming[node.id], results)
            result = await run_operation(node.type, node.config, inputs, self.provider)

            if not result.success:
                self._set_node_state(node.id, "error")
                self.run_log.error(f"❌ Error in {label}: {result.error}")
                self._fail(result.error or "Unknown error")
                return

            data = result.data or {}
            results[node.id] = data
            self._set_node_state(node.id, "completed", output=copy.deepcopy(data))
            self.run_log.success(f"✅ Completed: {label}")

        self.run_log.success("🎉 Workflow completed successfully!")

    def _fail(self, message: str) -> None:
        self.last_error = message
        self.run_log.error(f"❌ Workflow failed: {message}")

    async def execute_workflow_streaming(self) -> AsyncIterator[str]:
        """
        Run the graph and yield SSE events as the run progresses.

        Yields JSON events:
        - {"event": "log", "timestamp": "...", "level": "...", "message": "..."}
        - {"event": "node_status", "node_id": "...", "status": "...", "output": {...}}
        - {"event": "workflow_complete", "success": true|false, "error": ..., "nodes": [...]}
        """
        event_queue: asyncio.Queue = asyncio.Queue()

        def on_log(entry: RunLogEntry) -> None:
            event_queue.put_nowait({"event": "log", **entry.model_dump()})

        def on_node(event: dict[str, Any]) -> None:
            event_queue.put_nowait(event)

        self.run_log.subscribe(on_log)
        self.subscribe_nodes(on_node)

        run_task = asyncio.create_task(self.execute_workflow())
        run_task.add_done_callback(lambda _: event_queue.put_nowait(None))

        try:
            while True:
                event = await event_queue.get()
                if event is None:  # Sentinel for completion
                    break
                yield f"data: {json.dumps(event)}\n\n"

            error = self.last_error
            if run_task.exception() is not None:
                error = str(run_task.exception())

            final_event = {
                "event": "workflow_complete",
                "success": error is None,
                "error": error,
                "nodes": [n.model_dump(mode="json") for n in self.graph.nodes],
            }
            yield f"data: {json.dumps(final_event)}\n\n"
        finally:
            self.run_log.unsubscribe(on_log)
            self.unsubscribe_nodes(on_node)

    def clear_log(self) -> None:
        self.run_log.clear()

    # ------------------------------------------------------------------
    # Saved workflows
    # ------------------------------------------------------------------

    def set_workflow_name(self, name: str) -> None:
        name = name.strip()
        if not name:
            raise ValueError("Workflow name cannot be empty")
        self.workflow_name = name

    def set_active_category(self, category: str) -> None:
        if category not in get_args(Category):
            raise ValueError(
                f"Unknown category '{category}'. Expected one of: {', '.join(get_args(Category))}"
            )
        self.active_category = category

    def save_workflow(self, name: str | None = None) -> SavedWorkflow:
        if name is not None:
            self.set_workflow_name(name)
        nodes, edges = self.graph.snapshot()
        workflow = self.library.save(self.workflow_name, self.active_category, nodes, edges)
        self.run_log.success(f"💾 Workflow saved: {workflow.name}")
        return workflow

    def load_workflow(self, workflow_id: str) -> SavedWorkflow:
        """Replace the live graph with a saved one. Raises KeyError for unknown ids."""
        workflow = self.library.get(workflow_id)
        self.graph.replace(workflow.nodes, workflow.edges)
        self.workflow_name = workflow.name
        self.active_category = workflow.category
        self.run_log.info(f"📂 Workflow loaded: {workflow.name}")
        return workflow

    def delete_workflow(self, workflow_id: str) -> SavedWorkflow:
        return self.library.delete(workflow_id)

    def list_workflows(self) -> list[SavedWorkflow]:
        return self.library.list()


_engine: WorkflowEngine | None = None


def get_engine() -> WorkflowEngine:
    """Process-wide engine used by the HTTP layer."""
    global _engine
    if _engine is None:
        _engine = WorkflowEngine(library=WorkflowLibrary(config.STUDIO_WORKFLOWS_FILE))
    return _engine
