"""Per-view state of the category management page.

A ``TreeView`` lives from the moment the page mounts until it unmounts. It
owns its expansion state; the category records themselves always come from
the shared store, so every view renders the same structure.
"""

import uuid
from collections.abc import Collection, Iterable
from enum import Enum

import structlog

from produce_admin.core.exceptions import NotFoundError
from produce_admin.schemas.category import (
    CategoryId,
    FlatCategoryResponse,
    TreeNodeResponse,
    TreeViewResponse,
)
from produce_admin.services.category_store import CategoryStore
from produce_admin.services.category_tree import (
    CategoryNode,
    FlatCategory,
    flatten,
    search_categories,
)
from produce_admin.services.expansion import ExpansionState, visible_nodes

logger = structlog.get_logger()


class ViewMode(str, Enum):
    TREE = "tree"
    LIST = "list"


class TreeView:
    def __init__(self, store: CategoryStore, view_id: str | None = None):
        self.view_id = view_id or uuid.uuid4().hex
        self.store = store
        self.expansion = ExpansionState()

    def toggle(self, category_id: CategoryId) -> bool:
        """Flip a node's expanded flag and return the new value."""
        self.expansion = self.expansion.toggle(category_id)
        return self.expansion.is_expanded(category_id)

    def is_expanded(self, category_id: CategoryId) -> bool:
        return self.expansion.is_expanded(category_id)

    def tree(self) -> list[CategoryNode]:
        return self.store.tree()

    def visible(self) -> list[FlatCategory]:
        """Rows shown in tree mode: roots plus children of expanded nodes."""
        return list(visible_nodes(self.tree(), self.expansion))

    def rows(self, search: str | None = None) -> list[FlatCategory]:
        """Rows for the list mode.

        Without a search term this is the whole forest flattened with depth.
        With one, matching categories keep their forest order and depth.
        """
        flat = list(flatten(self.tree()))
        if not search:
            return flat
        matches = {record.id for record in search_categories(self.store.records, search)}
        return [row for row in flat if row.id in matches]

    def render(
        self,
        mode: ViewMode = ViewMode.TREE,
        search: str | None = None,
        in_flight: Collection[CategoryId] = (),
    ) -> TreeViewResponse:
        """Payload for the shell: nested tree in tree mode, rows in list mode."""
        response = TreeViewResponse(
            view_id=self.view_id,
            mode=mode.value,
            search=search,
            expanded=sorted(self.expansion.expanded, key=str),
        )
        if mode is ViewMode.TREE and not search:
            response.tree = serialize_tree(self.tree(), self.expansion, in_flight)
            response.rows = serialize_rows(self.visible(), self.expansion, in_flight)
        else:
            response.rows = serialize_rows(self.rows(search), self.expansion, in_flight)
        return response


class TreeViewRegistry:
    """Tracks the mounted views. Expansion state dies with its view."""

    def __init__(self, store: CategoryStore):
        self.store = store
        self._views: dict[str, TreeView] = {}

    def __len__(self) -> int:
        return len(self._views)

    def mount(self) -> TreeView:
        view = TreeView(self.store)
        self._views[view.view_id] = view
        logger.debug("category_view_mounted", view_id=view.view_id)
        return view

    def get(self, view_id: str) -> TreeView:
        view = self._views.get(view_id)
        if view is None:
            raise NotFoundError("Category view")
        return view

    def unmount(self, view_id: str) -> None:
        if self._views.pop(view_id, None) is None:
            raise NotFoundError("Category view")
        logger.debug("category_view_unmounted", view_id=view_id)


def serialize_tree(
    forest: Iterable[CategoryNode],
    expansion: ExpansionState | None = None,
    in_flight: Collection[CategoryId] = (),
) -> list[TreeNodeResponse]:
    if expansion is None:
        expansion = ExpansionState()
    return [
        TreeNodeResponse(
            category=node.record.model_dump(by_alias=True) | {"level": node.level},
            depth=node.depth,
            expanded=expansion.is_expanded(node.id),
            in_flight=node.id in in_flight,
            children=serialize_tree(node.children, expansion, in_flight),
        )
        for node in forest
    ]


def serialize_rows(
    rows: Iterable[FlatCategory],
    expansion: ExpansionState | None = None,
    in_flight: Collection[CategoryId] = (),
) -> list[FlatCategoryResponse]:
    if expansion is None:
        expansion = ExpansionState()
    return [
        FlatCategoryResponse(
            category=row.record.model_dump(by_alias=True) | {"level": row.depth},
            depth=row.depth,
            has_children=row.has_children,
            expanded=expansion.is_expanded(row.id),
            in_flight=row.id in in_flight,
        )
        for row in rows
    ]
