"""
Editor mutations on the live workflow graph.

Node configs are stored exactly as the editor sends them (camelCase keys);
they are only parsed into typed configs when a node runs.
"""
import copy
import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from studio.models.graph import WorkflowEdge, WorkflowNode
from studio.models.node_registry import get_node_spec
from studio.services.graph_store import GraphError
from studio.services.workflow_executor import WorkflowEngine, get_engine

router = APIRouter(prefix="/graph")


class GraphResponse(BaseModel):
    workflow_name: str
    active_category: str
    is_running: bool
    nodes: List[WorkflowNode]
    edges: List[WorkflowEdge]


class CreateNodeRequest(BaseModel):
    type: str
    id: Optional[str] = None
    config: Optional[Dict[str, Any]] = None
    position: Optional[Dict[str, float]] = None


class UpdateNodeRequest(BaseModel):
    config: Optional[Dict[str, Any]] = None
    position: Optional[Dict[str, float]] = None


class ConnectRequest(BaseModel):
    source: str
    target: str
    id: Optional[str] = None
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None


@router.get("", response_model=GraphResponse)
async def get_graph(engine: WorkflowEngine = Depends(get_engine)):
    return GraphResponse(
        workflow_name=engine.workflow_name,
        active_category=engine.active_category,
        is_running=engine.is_running,
        nodes=engine.graph.nodes,
        edges=engine.graph.edges,
    )


@router.post("/nodes", response_model=WorkflowNode, status_code=201)
async def add_node(request: CreateNodeRequest, engine: WorkflowEngine = Depends(get_engine)):
    """Place a node; config defaults to the node type's default config."""
    spec = get_node_spec(request.type)
    if spec is None:
        raise HTTPException(status_code=400, detail=f"Unknown node type '{request.type}'")

    node = WorkflowNode(
        id=request.id or f"{request.type}-{uuid.uuid4().hex[:8]}",
        type=request.type,
        config=request.config if request.config is not None else copy.deepcopy(spec.default_config),
        position=request.position,
    )
    try:
        return engine.graph.add_node(node)
    except GraphError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/nodes/{node_id}", response_model=WorkflowNode)
async def update_node(
    node_id: str,
    request: UpdateNodeRequest,
    engine: WorkflowEngine = Depends(get_engine),
):
    """Merge config keys into a node and/or move it."""
    try:
        node = engine.graph.update_node(node_id, request.config)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Node '{node_id}' not found")
    if request.position is not None:
        node.position = request.position
    return node


@router.delete("/nodes/{node_id}")
async def delete_node(node_id: str, engine: WorkflowEngine = Depends(get_engine)):
    try:
        engine.graph.delete_node(node_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Node '{node_id}' not found")
    return {"deleted": node_id, "edges": len(engine.graph.edges)}


@router.post("/edges", response_model=WorkflowEdge, status_code=201)
async def connect(request: ConnectRequest, engine: WorkflowEngine = Depends(get_engine)):
    try:
        return engine.graph.connect(
            request.source,
            request.target,
            edge_id=request.id,
            source_handle=request.source_handle,
            target_handle=request.target_handle,
        )
    except GraphError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/edges/{edge_id}")
async def delete_edge(edge_id: str, engine: WorkflowEngine = Depends(get_engine)):
    try:
        engine.graph.delete_edge(edge_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Edge '{edge_id}' not found")
    return {"deleted": edge_id}
