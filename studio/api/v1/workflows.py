"""
Saved workflow library.

Saving snapshots the live graph together with the engine's workflow name
and active category; loading replaces the live graph wholesale.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from studio.models.graph import SavedWorkflow
from studio.services.graph_store import GraphError
from studio.services.workflow_executor import WorkflowEngine, get_engine

router = APIRouter(prefix="/workflows", tags=["workflows"])


class SaveWorkflowRequest(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None


@router.get("", response_model=List[SavedWorkflow])
async def list_workflows(engine: WorkflowEngine = Depends(get_engine)):
    return engine.list_workflows()


@router.post("", response_model=SavedWorkflow, status_code=201)
async def save_workflow(
    request: Optional[SaveWorkflowRequest] = None,
    engine: WorkflowEngine = Depends(get_engine),
):
    try:
        if request and request.category:
            engine.set_active_category(request.category)
        return engine.save_workflow(request.name if request else None)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{workflow_id}/load", response_model=SavedWorkflow)
async def load_workflow(workflow_id: str, engine: WorkflowEngine = Depends(get_engine)):
    try:
        return engine.load_workflow(workflow_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Workflow not found")
    except GraphError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{workflow_id}")
async def delete_workflow(workflow_id: str, engine: WorkflowEngine = Depends(get_engine)):
    try:
        engine.delete_workflow(workflow_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return {"deleted": workflow_id}
