"""
Graph models: the editor's node/edge representation and saved snapshots.

Nodes carry their configuration bag as sent by the editor; typed parsing
happens per node type at dispatch (see node_configs). Status and output are
written by the workflow engine during a run.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field


NodeType = Literal[
    "textInput",
    "smartSearch",
    "hookGenerator",
    "brandConfig",
    "hookValidator",
    "bodyGenerator",
    "ctaGenerator",
    "copyAssembler",
    "imageInput",
    "deepAnalysis",
    "effectApplier",
    "text2image",
    "image2image",
]
NodeStatus = Literal["idle", "running", "completed", "error"]
Category = Literal["copy", "vfx", "image"]


class WorkflowNode(BaseModel):
    id: str = Field(..., min_length=1)
    type: str
    config: dict[str, Any] = Field(default_factory=dict)
    status: NodeStatus = "idle"
    output: dict[str, Any] | None = None
    position: dict[str, float] | None = None


class WorkflowEdge(BaseModel):
    id: str
    source: str
    target: str
    source_handle: str | None = None
    target_handle: str | None = None


class ExecutionResult(BaseModel):
    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SavedWorkflow(BaseModel):
    id: str
    name: str
    category: Category = "copy"
    nodes: list[WorkflowNode] = Field(default_factory=list)
    edges: list[WorkflowEdge] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
