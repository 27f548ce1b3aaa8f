"""Category API routes."""

from typing import Any

from fastapi import APIRouter, Body, Depends

from produce_admin.api.deps import (
    get_client,
    get_coordinator,
    get_gateway,
    get_store,
    resolve_category_id,
)
from produce_admin.schemas.category import (
    AvailabilityUpdate,
    CategoryFilters,
    CategoryWrite,
    DragRequest,
    DragResult,
    MutationResponse,
    SafeDelete,
    TreeNodeResponse,
)
from produce_admin.services.category_client import CategoryAPIClient
from produce_admin.services.category_store import CategoryStore
from produce_admin.services.category_tree import search_categories
from produce_admin.services.drag_reorder import DragReorderCoordinator
from produce_admin.services.hierarchy_gateway import HierarchyMutationGateway
from produce_admin.services.tree_view import serialize_tree

router = APIRouter()


@router.get("")
async def list_categories(
    search: str | None = None,
    store: CategoryStore = Depends(get_store),
) -> list[dict[str, Any]]:
    """Current flat category list, optionally filtered by name/description."""
    return [record.model_dump(by_alias=True) for record in search_categories(store.records, search)]


@router.post("/refresh")
async def refresh_categories(
    filters: CategoryFilters | None = Body(default=None),
    store: CategoryStore = Depends(get_store),
):
    """Refetch the category list from the marketplace."""
    records = await store.refresh(filters)
    return {"count": len(records), "total": store.page.total, "stats": store.stats}


@router.get("/tree", response_model=list[TreeNodeResponse])
async def get_category_tree(
    store: CategoryStore = Depends(get_store),
    gateway: HierarchyMutationGateway = Depends(get_gateway),
):
    """Categories as a nested tree ordered by sort order."""
    return serialize_tree(store.tree(), in_flight=gateway.in_flight)


@router.post("/drag", response_model=DragResult)
async def drag_category(
    data: DragRequest,
    store: CategoryStore = Depends(get_store),
    coordinator: DragReorderCoordinator = Depends(get_coordinator),
):
    """Apply a completed drag: reorder among siblings or move under a new parent."""
    source_id = resolve_category_id(str(data.source_id), store)
    target_id = resolve_category_id(str(data.target_id), store)
    request = await coordinator.handle_drop(source_id, target_id)
    if request is None:
        return DragResult(applied=False)
    return DragResult(applied=True, mutation=MutationResponse(**request.to_dict()))


@router.post("", status_code=201)
async def create_category(
    data: CategoryWrite,
    client: CategoryAPIClient = Depends(get_client),
    store: CategoryStore = Depends(get_store),
):
    record = await client.create_category(data.model_dump(by_alias=True, exclude_none=True))
    await store.refresh_after_write()
    return record.model_dump(by_alias=True)


@router.get("/{category_id}")
async def get_category(
    category_id: str,
    client: CategoryAPIClient = Depends(get_client),
):
    record = await client.get_category(category_id)
    return record.model_dump(by_alias=True)


@router.put("/{category_id}")
async def update_category(
    category_id: str,
    data: CategoryWrite,
    client: CategoryAPIClient = Depends(get_client),
    store: CategoryStore = Depends(get_store),
):
    record = await client.update_category(
        resolve_category_id(category_id, store),
        data.model_dump(by_alias=True, exclude_unset=True),
    )
    await store.refresh_after_write()
    return record.model_dump(by_alias=True)


@router.get("/{category_id}/usage")
async def get_category_usage(
    category_id: str,
    client: CategoryAPIClient = Depends(get_client),
):
    """Product usage statistics for one category."""
    return await client.get_usage_stats(category_id)


@router.put("/{category_id}/availability")
async def set_category_availability(
    category_id: str,
    data: AvailabilityUpdate,
    client: CategoryAPIClient = Depends(get_client),
    store: CategoryStore = Depends(get_store),
):
    """Flag or unflag a category."""
    result = await client.toggle_availability(
        resolve_category_id(category_id, store), data.is_available, data.flag_reason
    )
    await store.refresh_after_write()
    return result


@router.delete("/{category_id}")
async def delete_category(
    category_id: str,
    data: SafeDelete | None = Body(default=None),
    client: CategoryAPIClient = Depends(get_client),
    store: CategoryStore = Depends(get_store),
):
    """Safe delete: the marketplace refuses categories that still have products."""
    result = await client.safe_delete_category(
        resolve_category_id(category_id, store), data.reason if data else None
    )
    await store.refresh_after_write()
    return result
