"""
Node palette: the catalog of node types the editor can place.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from studio.models.node_registry import NODE_REGISTRY

router = APIRouter(prefix="/node-types")


class NodeTypeResponse(BaseModel):
    type: str
    label: str
    category: List[str]
    icon: str
    description: str
    default_config: Dict[str, Any]


@router.get("", response_model=List[NodeTypeResponse])
async def list_node_types(category: Optional[str] = None):
    """List node types, optionally only those shown under one category."""
    specs = list(NODE_REGISTRY.values())
    if category:
        specs = [s for s in specs if category in s.category]
    return [NodeTypeResponse(**spec.model_dump()) for spec in specs]
