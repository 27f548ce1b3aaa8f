"""Expanded/collapsed state of the nodes in one tree view."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from produce_admin.schemas.category import CategoryId
from produce_admin.services.category_tree import CategoryNode, FlatCategory


@dataclass(frozen=True)
class ExpansionState:
    """Set of expanded node ids. Toggling returns a new state."""

    expanded: frozenset[CategoryId] = field(default_factory=frozenset)

    def toggle(self, node_id: CategoryId) -> ExpansionState:
        if node_id in self.expanded:
            return ExpansionState(self.expanded - {node_id})
        return ExpansionState(self.expanded | {node_id})

    def is_expanded(self, node_id: CategoryId) -> bool:
        return node_id in self.expanded

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.expanded

    def __len__(self) -> int:
        return len(self.expanded)


def visible_nodes(
    forest: Iterable[CategoryNode], state: ExpansionState, depth: int = 0
) -> Iterator[FlatCategory]:
    """Yield the rows a tree view shows: children only under expanded nodes."""
    for node in forest:
        yield FlatCategory(node=node, depth=depth)
        if node.has_children and state.is_expanded(node.id):
            yield from visible_nodes(node.children, state, depth + 1)
