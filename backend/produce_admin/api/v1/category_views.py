"""Category tree view routes (mount, render, expand/collapse, unmount)."""

from fastapi import APIRouter, Depends, Response

from produce_admin.api.deps import get_gateway, get_store, get_views, resolve_category_id
from produce_admin.schemas.category import TreeViewResponse
from produce_admin.services.category_store import CategoryStore
from produce_admin.services.hierarchy_gateway import HierarchyMutationGateway
from produce_admin.services.tree_view import TreeViewRegistry, ViewMode

router = APIRouter()


@router.post("", response_model=TreeViewResponse, status_code=201)
async def mount_view(
    views: TreeViewRegistry = Depends(get_views),
    gateway: HierarchyMutationGateway = Depends(get_gateway),
):
    """Open a tree view; every node starts collapsed."""
    view = views.mount()
    return view.render(in_flight=gateway.in_flight)


@router.get("/{view_id}", response_model=TreeViewResponse)
async def render_view(
    view_id: str,
    mode: ViewMode = ViewMode.TREE,
    search: str | None = None,
    views: TreeViewRegistry = Depends(get_views),
    gateway: HierarchyMutationGateway = Depends(get_gateway),
):
    view = views.get(view_id)
    return view.render(mode=mode, search=search, in_flight=gateway.in_flight)


@router.post("/{view_id}/expansion/{category_id}")
async def toggle_expansion(
    view_id: str,
    category_id: str,
    views: TreeViewRegistry = Depends(get_views),
    store: CategoryStore = Depends(get_store),
):
    """Expand a collapsed node or collapse an expanded one."""
    view = views.get(view_id)
    node_id = resolve_category_id(category_id, store)
    return {"categoryId": node_id, "expanded": view.toggle(node_id)}


@router.delete("/{view_id}", status_code=204)
async def unmount_view(
    view_id: str,
    views: TreeViewRegistry = Depends(get_views),
):
    views.unmount(view_id)
    return Response(status_code=204)
