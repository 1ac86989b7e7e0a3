from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from core.goal_map_service import DELETE_MODES, DELETE_SUBTREE, GoalMapService
from core.goal_tree.models import Node, node_to_dict, render_node_to_dict
from core.goal_tree.progress import progress_rollup
from core.goal_tree.tree_store import find_node_by_id, find_node_path, importance_share
from core.snapshot_store import SnapshotStore

router = APIRouter()

_service: Optional[GoalMapService] = None


def get_goal_map_service() -> GoalMapService:
    global _service
    if _service is None:
        _service = GoalMapService(store=SnapshotStore())
    return _service


class FocusRequest(BaseModel):
    node_id: str


class SelectRequest(BaseModel):
    node_id: Optional[str] = None


class AddNodeRequest(BaseModel):
    title: Optional[str] = None


class NodeUpdateRequest(BaseModel):
    title: Optional[str] = None
    importance: Optional[float] = Field(default=None, gt=0)
    progress: Optional[float] = Field(default=None, ge=0, le=1)
    color: Optional[str] = None
    context: Optional[str] = None


def _require_node(service: GoalMapService, node_id: str) -> Node:
    node = find_node_by_id(service.tree, node_id)
    if node is None:
        raise HTTPException(status_code=404, detail=f"Node not found: {node_id}")
    return node


def _state_payload(service: GoalMapService) -> Dict[str, Any]:
    payload = {
        "tree": node_to_dict(service.tree),
        "focused_node_id": service.focused_node.id,
        "selected_node_id": service.selected_node_id,
        "can_undo": service.history.can_undo,
        "can_redo": service.history.can_redo,
    }
    warning = service.persistence_warning
    if warning:
        payload["warning"] = warning
    return payload


@router.get("/tree")
async def get_tree():
    return _state_payload(get_goal_map_service())


@router.get("/nodes/{node_id}")
async def get_node(node_id: str):
    service = get_goal_map_service()
    node = _require_node(service, node_id)
    path = find_node_path(service.tree, node_id)
    return {
        "node": node_to_dict(node),
        "parent_id": path[-2].id if len(path) > 1 else None,
        "rollup": progress_rollup(node),
        "importance_share": importance_share(service.tree, node_id),
    }


@router.get("/nodes/{node_id}/path")
async def get_node_path(node_id: str):
    service = get_goal_map_service()
    _require_node(service, node_id)
    return {
        "path": [{"id": n.id, "title": n.title} for n in find_node_path(service.tree, node_id)]
    }


@router.get("/layout")
async def get_layout(width: Optional[float] = None, height: Optional[float] = None):
    service = get_goal_map_service()
    nodes = service.render_nodes(width, height)
    return {
        "focused_node_id": service.focused_node.id,
        "is_zoomed": service.is_zoomed,
        "breadcrumbs": [{"id": n.id, "title": n.title} for n in service.breadcrumbs()],
        "nodes": [render_node_to_dict(rn) for rn in nodes],
    }


@router.post("/focus")
async def focus_node(req: FocusRequest):
    service = get_goal_map_service()
    _require_node(service, req.node_id)
    service.focus(req.node_id)
    return _state_payload(service)


@router.post("/focus/parent")
async def focus_parent():
    service = get_goal_map_service()
    service.focus_parent()
    return _state_payload(service)


@router.post("/select")
async def select_node(req: SelectRequest):
    service = get_goal_map_service()
    if req.node_id is not None:
        _require_node(service, req.node_id)
    service.select(req.node_id)
    return _state_payload(service)


@router.post("/nodes/{node_id}/children")
async def add_child(node_id: str, req: AddNodeRequest):
    service = get_goal_map_service()
    _require_node(service, node_id)
    if req.title:
        result = service.add_child(node_id, title=req.title)
    else:
        result = service.add_child(node_id)
    if not result.success:
        raise HTTPException(status_code=400, detail="Could not add subgoal")
    return {**_state_payload(service), "new_node_id": result.selected_id}


@router.post("/nodes/{node_id}/siblings")
async def add_sibling(node_id: str, req: AddNodeRequest):
    service = get_goal_map_service()
    _require_node(service, node_id)
    if req.title:
        result = service.add_sibling(node_id, title=req.title)
    else:
        result = service.add_sibling(node_id)
    if not result.success:
        raise HTTPException(status_code=400, detail="The root goal cannot have siblings")
    return {**_state_payload(service), "new_node_id": result.selected_id}


@router.patch("/nodes/{node_id}")
async def update_node(node_id: str, req: NodeUpdateRequest):
    service = get_goal_map_service()
    node = _require_node(service, node_id)
    # color / context may be cleared with null, the rest may not
    updates = {
        k: v for k, v in req.model_dump(exclude_unset=True).items()
        if v is not None or k in ("color", "context")
    }
    updated = Node(
        id=node.id,
        title=updates.get("title", node.title),
        importance=updates.get("importance", node.importance),
        progress=updates.get("progress", node.progress),
        color=updates.get("color", node.color),
        context=updates.get("context", node.context),
        children=node.children,
    )
    changed = service.update_node(updated)
    return {**_state_payload(service), "changed": changed}


@router.delete("/nodes/{node_id}")
async def delete_node(node_id: str, mode: str = DELETE_SUBTREE):
    service = get_goal_map_service()
    if mode not in DELETE_MODES:
        raise HTTPException(status_code=400, detail=f"Unknown delete mode: {mode}")
    _require_node(service, node_id)
    result = service.delete_node(node_id, mode)
    if not result.success:
        raise HTTPException(status_code=400, detail="Cannot delete the root goal.")
    return _state_payload(service)


@router.post("/undo")
async def undo():
    service = get_goal_map_service()
    service.undo()
    return _state_payload(service)


@router.post("/redo")
async def redo():
    service = get_goal_map_service()
    service.redo()
    return _state_payload(service)


@router.post("/reset")
async def reset():
    service = get_goal_map_service()
    service.reset()
    return _state_payload(service)
