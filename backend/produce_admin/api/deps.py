"""Shared API dependencies.

The store, gateway and view registry are created once in the application
lifespan and shared by every request.
"""

from fastapi import Depends, Request

from produce_admin.schemas.category import CategoryId
from produce_admin.services.category_client import CategoryAPIClient
from produce_admin.services.category_store import CategoryStore
from produce_admin.services.drag_reorder import DragReorderCoordinator
from produce_admin.services.hierarchy_gateway import HierarchyMutationGateway
from produce_admin.services.tree_view import TreeViewRegistry


def get_client(request: Request) -> CategoryAPIClient:
    return request.app.state.category_client


def get_store(request: Request) -> CategoryStore:
    return request.app.state.category_store


def get_gateway(request: Request) -> HierarchyMutationGateway:
    return request.app.state.hierarchy_gateway


def get_views(request: Request) -> TreeViewRegistry:
    return request.app.state.category_views


def get_coordinator(
    store: CategoryStore = Depends(get_store),
    gateway: HierarchyMutationGateway = Depends(get_gateway),
) -> DragReorderCoordinator:
    return DragReorderCoordinator(store, gateway)


def resolve_category_id(raw: str, store: CategoryStore) -> CategoryId:
    """Map a path segment back to the id type the marketplace uses."""
    for record in store.records:
        if str(record.id) == raw:
            return record.id
    return int(raw) if raw.isdigit() else raw


__all__ = [
    "get_client",
    "get_coordinator",
    "get_gateway",
    "get_store",
    "get_views",
    "resolve_category_id",
]
