"""Drag-and-drop handling for the category tree.

A completed drag (source dropped onto target) becomes exactly one mutation:

- same parent as the target: reorder the source to just after the target;
- different parent: reparent the source under the target's parent, just after
  the target.

A move that would make a category its own ancestor, or hang it under a parent
that does not exist, is rejected here and never sent to the marketplace.
"""

from collections.abc import Iterable

import structlog
from fastapi import HTTPException

from produce_admin.core.exceptions import MutationInFlightError, ValidationFailure
from produce_admin.schemas.category import CategoryId, CategoryRecord
from produce_admin.services.category_store import CategoryStore
from produce_admin.services.category_tree import ancestor_ids, index_records
from produce_admin.services.hierarchy_gateway import (
    HierarchyMutationGateway,
    MutationKind,
    MutationRequest,
)

logger = structlog.get_logger()


def check_drag(
    source_id: CategoryId, target_id: CategoryId, records: Iterable[CategoryRecord]
) -> MutationRequest | None:
    """Resolve a drop into a mutation request.

    Returns ``None`` for a drop onto itself. Raises ``ValidationFailure`` when
    either record is missing or the move would break the forest.
    """
    if source_id == target_id:
        return None

    by_id = index_records(records)
    source = by_id.get(source_id)
    target = by_id.get(target_id)
    if source is None or target is None:
        missing = source_id if source is None else target_id
        raise ValidationFailure(f"Category {missing} not found")

    new_parent_id = target.parent_id
    new_sort_order = target.sort_order + 1

    if new_parent_id is not None and new_parent_id not in by_id:
        raise ValidationFailure(f"Parent category {new_parent_id} not found")

    # Walk from the target upwards: the new parent and all of its ancestors
    if source.id in ancestor_ids(by_id, target.id):
        raise ValidationFailure("A category cannot be moved under its own descendant")

    if source.parent_id == new_parent_id:
        return MutationRequest(
            kind=MutationKind.REORDER,
            category_id=source.id,
            new_sort_order=new_sort_order,
        )
    return MutationRequest(
        kind=MutationKind.REPARENT,
        category_id=source.id,
        new_sort_order=new_sort_order,
        new_parent_id=new_parent_id,
    )


def on_drag_complete(
    source_id: CategoryId, target_id: CategoryId, records: Iterable[CategoryRecord]
) -> MutationRequest | None:
    """Like ``check_drag`` but a rejected drop is a no-op instead of an error."""
    try:
        return check_drag(source_id, target_id, records)
    except ValidationFailure as e:
        logger.info("category_drag_rejected", source_id=source_id, target_id=target_id, reason=e.detail)
        return None


class DragReorderCoordinator:
    def __init__(self, store: CategoryStore, gateway: HierarchyMutationGateway):
        self.store = store
        self.gateway = gateway

    async def handle_drop(self, source_id: CategoryId, target_id: CategoryId) -> MutationRequest | None:
        """Validate a drop against the current records and push the mutation.

        Returns the applied request, or ``None`` when the drop changes nothing.
        """
        if self.gateway.is_in_flight(source_id):
            raise MutationInFlightError(source_id)

        try:
            request = check_drag(source_id, target_id, self.store.records)
        except ValidationFailure as e:
            logger.info("category_drag_rejected", source_id=source_id, target_id=target_id, reason=e.detail)
            raise
        if request is None:
            return None

        try:
            await self.gateway.apply(request)
        except HTTPException:
            logger.warning("category_drag_not_applied", **request.to_dict())
            raise
        return request
