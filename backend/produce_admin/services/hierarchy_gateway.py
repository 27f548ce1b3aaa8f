"""Hierarchy mutation gateway.

Pushes reorder/reparent writes to the marketplace and refetches the whole
category list afterwards. The remote collection is authoritative after any
write: sibling renumbering happens server-side and can touch records that were
not part of the move, so nothing is merged locally.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum

import structlog

from produce_admin.core.exceptions import MutationFailure, MutationInFlightError
from produce_admin.schemas.category import CategoryId
from produce_admin.services.category_client import CategoryAPIClient
from produce_admin.services.category_store import CategoryStore

logger = structlog.get_logger()


class MutationKind(str, Enum):
    REORDER = "reorder"
    REPARENT = "reparent"


@dataclass(frozen=True)
class MutationRequest:
    """A single structural change resolved from a drag gesture."""
    kind: MutationKind
    category_id: CategoryId
    new_sort_order: int
    new_parent_id: CategoryId | None = None  # reparent only; None = root

    def to_dict(self) -> dict:
        d: dict = {
            "kind": self.kind.value,
            "category_id": self.category_id,
            "new_sort_order": self.new_sort_order,
        }
        if self.kind is MutationKind.REPARENT:
            d["new_parent_id"] = self.new_parent_id
        return d


class HierarchyMutationGateway:
    def __init__(self, client: CategoryAPIClient, store: CategoryStore):
        self.client = client
        self.store = store
        self._in_flight: set[CategoryId] = set()

    @property
    def in_flight(self) -> frozenset[CategoryId]:
        return frozenset(self._in_flight)

    def is_in_flight(self, category_id: CategoryId) -> bool:
        return category_id in self._in_flight

    async def reorder(self, category_id: CategoryId, new_sort_order: int) -> None:
        """Move a category among its current siblings."""
        async with self._claim(category_id):
            await self.client.reorder_category(category_id, new_sort_order)
            logger.info("category_reordered", category_id=category_id, sort_order=new_sort_order)
            await self.store.refresh_after_write()

    async def reparent(
        self, category_id: CategoryId, new_parent_id: CategoryId | None, new_sort_order: int
    ) -> None:
        """Move a category under another parent (``None`` makes it a root)."""
        async with self._claim(category_id):
            await self.client.update_category_hierarchy(category_id, new_parent_id, new_sort_order)
            logger.info(
                "category_reparented",
                category_id=category_id,
                parent_id=new_parent_id,
                sort_order=new_sort_order,
            )
            await self.store.refresh_after_write()

    async def apply(self, request: MutationRequest) -> None:
        if request.kind is MutationKind.REORDER:
            await self.reorder(request.category_id, request.new_sort_order)
        else:
            await self.reparent(request.category_id, request.new_parent_id, request.new_sort_order)

    @asynccontextmanager
    async def _claim(self, category_id: CategoryId):
        """Hold the in-flight mark for a category until its write resolves."""
        if category_id in self._in_flight:
            logger.warning("category_mutation_in_flight", category_id=category_id)
            raise MutationInFlightError(category_id)
        self._in_flight.add(category_id)
        try:
            yield
        except MutationFailure as e:
            logger.warning(
                "category_mutation_failed",
                category_id=category_id,
                upstream_status=e.upstream_status,
            )
            raise
        finally:
            self._in_flight.discard(category_id)

