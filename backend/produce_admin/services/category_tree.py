"""Category hierarchy helpers: tree construction, flattening and search.

The flat list of records fetched from the marketplace is the only persisted
structure. The forest is rebuilt from it on every read and never patched in
place; structural changes go through the mutation gateway and a refetch.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass

import structlog

from produce_admin.schemas.category import CategoryId, CategoryRecord

logger = structlog.get_logger()


@dataclass(frozen=True)
class CategoryNode:
    """A category record with its materialised, ordered children."""

    record: CategoryRecord
    depth: int
    children: tuple[CategoryNode, ...] = ()

    @property
    def id(self) -> CategoryId:
        return self.record.id

    @property
    def level(self) -> int:
        # Structural depth wins over the denormalised ``level`` on the record
        return self.depth

    @property
    def has_children(self) -> bool:
        return bool(self.children)


@dataclass(frozen=True)
class FlatCategory:
    """One row of a flattened forest."""

    node: CategoryNode
    depth: int

    @property
    def id(self) -> CategoryId:
        return self.node.id

    @property
    def record(self) -> CategoryRecord:
        return self.node.record

    @property
    def has_children(self) -> bool:
        return self.node.has_children


def index_records(records: Iterable[CategoryRecord]) -> dict[CategoryId, CategoryRecord]:
    """Map ids to records, keeping the first occurrence of a duplicated id."""
    by_id: dict[CategoryId, CategoryRecord] = {}
    for record in records:
        if record.id in by_id:
            logger.warning("category_duplicate_id", category_id=record.id)
            continue
        by_id[record.id] = record
    return by_id


def ancestor_ids(
    by_id: Mapping[CategoryId, CategoryRecord], category_id: CategoryId
) -> list[CategoryId]:
    """Return the parent chain of ``category_id``, nearest parent first.

    The walk stops at a root, at a parent that does not resolve, or when an id
    repeats (a cycle already present in the data).
    """
    chain: list[CategoryId] = []
    seen = {category_id}
    record = by_id.get(category_id)
    while record is not None and record.parent_id is not None:
        parent_id = record.parent_id
        if parent_id in seen or parent_id not in by_id:
            break
        chain.append(parent_id)
        seen.add(parent_id)
        record = by_id[parent_id]
    return chain


def build_tree(records: Iterable[CategoryRecord]) -> list[CategoryNode]:
    """Build the category forest from the flat record list.

    Records whose parent is absent or does not resolve become roots. Sibling
    groups are ordered by ``sort_order``; the sort is stable so ties keep the
    input order. Records caught in a parent cycle are promoted to root where
    the cycle is first entered, so every record appears exactly once.
    """
    by_id = index_records(records)
    position = {record_id: index for index, record_id in enumerate(by_id)}

    children: dict[CategoryId, list[CategoryRecord]] = defaultdict(list)
    roots: list[CategoryRecord] = []
    for record in by_id.values():
        parent_id = record.parent_id
        if parent_id is not None and parent_id in by_id and parent_id != record.id:
            children[parent_id].append(record)
        else:
            if parent_id is not None:
                logger.debug("category_promoted_to_root", category_id=record.id, parent_id=parent_id)
            roots.append(record)

    for group in children.values():
        group.sort(key=lambda item: item.sort_order)

    reachable = _reachable_ids(roots, children)
    for record in by_id.values():
        if record.id in reachable:
            continue
        # Unreachable records sit on a parent cycle or hang below one; promote
        # the cycle member so the records below it stay under their parents
        entry = by_id[_cycle_entry(by_id, record.id)]
        logger.debug("category_cycle_broken", category_id=entry.id, parent_id=entry.parent_id)
        roots.append(entry)
        reachable |= _reachable_ids([entry], children)

    roots.sort(key=lambda item: (item.sort_order, position[item.id]))

    visited: set[CategoryId] = set()
    return [_build_node(record, 0, children, visited) for record in roots]


def flatten(forest: Iterable[CategoryNode], depth: int = 0) -> Iterator[FlatCategory]:
    """Yield the forest in pre-order with depth metadata for list rendering."""
    for node in forest:
        yield FlatCategory(node=node, depth=depth)
        yield from flatten(node.children, depth + 1)


def search_categories(records: Iterable[CategoryRecord], term: str | None) -> list[CategoryRecord]:
    """Case-insensitive match on name or description, in input order."""
    records = list(records)
    needle = (term or "").strip().lower()
    if not needle:
        return records
    return [
        record
        for record in records
        if needle in record.name.lower() or needle in (record.description or "").lower()
    ]


def _cycle_entry(by_id: Mapping[CategoryId, CategoryRecord], category_id: CategoryId) -> CategoryId:
    """First id that repeats when walking up from ``category_id``."""
    seen: set[CategoryId] = set()
    current = category_id
    while current not in seen:
        seen.add(current)
        parent_id = by_id[current].parent_id
        if parent_id is None or parent_id not in by_id:
            break
        current = parent_id
    return current


def _reachable_ids(
    start: Iterable[CategoryRecord], children: Mapping[CategoryId, list[CategoryRecord]]
) -> set[CategoryId]:
    seen: set[CategoryId] = set()
    stack = [record.id for record in start]
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        stack.extend(child.id for child in children.get(current, ()))
    return seen


def _build_node(
    record: CategoryRecord,
    depth: int,
    children: Mapping[CategoryId, list[CategoryRecord]],
    visited: set[CategoryId],
) -> CategoryNode:
    visited.add(record.id)
    built = []
    for child in children.get(record.id, ()):
        if child.id in visited:
            # Back edge of a cycle; the child already has its place in the forest
            continue
        built.append(_build_node(child, depth + 1, children, visited))
    return CategoryNode(record=record, depth=depth, children=tuple(built))
