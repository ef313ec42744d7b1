from fastapi import APIRouter
from .v1 import executions, graph, node_types, workflows

api_router = APIRouter(prefix="/api", tags=["node-studio"])

api_router.include_router(node_types.router, prefix="/v1", tags=["node-types"])
api_router.include_router(graph.router, prefix="/v1", tags=["graph"])
api_router.include_router(executions.router, prefix="/v1", tags=["executions"])
api_router.include_router(workflows.router, prefix="/v1", tags=["workflows"])


@api_router.get("/")
def read_root():
    return {"message": "Node Studio API"}
