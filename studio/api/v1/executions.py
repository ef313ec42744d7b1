"""
Run the live workflow and read its run log.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from studio.models.graph import WorkflowNode
from studio.services.run_log import RunLogEntry
from studio.services.workflow_executor import WorkflowBusyError, WorkflowEngine, get_engine

router = APIRouter(prefix="/executions")


class ExecutionResponse(BaseModel):
    success: bool
    error: Optional[str] = None
    log: List[RunLogEntry]
    nodes: List[WorkflowNode]


class RunLogResponse(BaseModel):
    entries: List[RunLogEntry]
    lines: List[str]


@router.post("", response_model=ExecutionResponse)
async def execute_workflow(engine: WorkflowEngine = Depends(get_engine)):
    """Run the current graph to completion and return the outcome."""
    try:
        await engine.execute_workflow()
    except WorkflowBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return ExecutionResponse(
        success=engine.last_error is None,
        error=engine.last_error,
        log=engine.run_log.entries(),
        nodes=engine.graph.nodes,
    )


@router.post("/stream")
async def execute_workflow_stream(engine: WorkflowEngine = Depends(get_engine)):
    """
    Run the current graph with Server-Sent Events streaming.

    Emits each run log entry and node status change as it happens, then a
    final workflow_complete event.
    """
    if engine.is_running:
        raise HTTPException(status_code=409, detail="A workflow is already running")

    return StreamingResponse(
        engine.execute_workflow_streaming(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )


@router.get("/log", response_model=RunLogResponse)
async def get_run_log(engine: WorkflowEngine = Depends(get_engine)):
    entries = engine.run_log.entries()
    return RunLogResponse(entries=entries, lines=[str(e) for e in entries])


@router.delete("/log")
async def clear_run_log(engine: WorkflowEngine = Depends(get_engine)):
    engine.clear_log()
    return {"cleared": True}
