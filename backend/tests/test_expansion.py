"""Expansion state and tree view tests."""

import pytest

from produce_admin.core.exceptions import NotFoundError
from produce_admin.schemas.category import CategoryRecord
from produce_admin.services.category_tree import build_tree
from produce_admin.services.expansion import ExpansionState, visible_nodes
from produce_admin.services.tree_view import TreeViewRegistry, ViewMode


def test_toggle_inserts_then_removes():
    state = ExpansionState()
    assert not state.is_expanded(1)

    opened = state.toggle(1)
    assert opened.is_expanded(1)
    assert 1 in opened
    # The previous value is untouched
    assert not state.is_expanded(1)

    closed = opened.toggle(1)
    assert not closed.is_expanded(1)
    assert len(closed) == 0


def test_toggles_are_independent():
    state = ExpansionState().toggle(1).toggle("64f0a").toggle(2).toggle(1)
    assert state.expanded == frozenset({"64f0a", 2})


def test_visible_nodes_only_descend_into_expanded():
    records = [
        CategoryRecord.model_validate({"id": 1, "name": "Vegetables"}),
        CategoryRecord.model_validate({"id": 2, "name": "Leafy", "parentId": 1}),
        CategoryRecord.model_validate({"id": 3, "name": "Kale", "parentId": 2}),
        CategoryRecord.model_validate({"id": 4, "name": "Fruit", "sortOrder": 1}),
    ]
    forest = build_tree(records)

    collapsed = [row.record.name for row in visible_nodes(forest, ExpansionState())]
    assert collapsed == ["Vegetables", "Fruit"]

    state = ExpansionState().toggle(1)
    assert [(r.record.name, r.depth) for r in visible_nodes(forest, state)] == [
        ("Vegetables", 0),
        ("Leafy", 1),
        ("Fruit", 0),
    ]

    # Expanding a child of a collapsed node does not reveal it
    assert [r.record.name for r in visible_nodes(forest, ExpansionState().toggle(2))] == [
        "Vegetables",
        "Fruit",
    ]


@pytest.mark.asyncio
async def test_views_keep_their_own_expansion(store):
    views = TreeViewRegistry(store)
    first = views.mount()
    second = views.mount()

    assert first.toggle(1) is True
    assert first.is_expanded(1)
    assert not second.is_expanded(1)

    rows = [row.record.name for row in first.visible()]
    assert rows == ["Vegetables", "Leafy", "Root", "Fruit"]
    assert [row.record.name for row in second.visible()] == ["Vegetables", "Fruit"]


@pytest.mark.asyncio
async def test_unmount_discards_state(store):
    views = TreeViewRegistry(store)
    view = views.mount()
    view.toggle(4)
    views.unmount(view.view_id)

    assert len(views) == 0
    with pytest.raises(NotFoundError):
        views.get(view.view_id)
    with pytest.raises(NotFoundError):
        views.unmount(view.view_id)

    # A new mount starts collapsed
    assert not views.mount().is_expanded(4)


@pytest.mark.asyncio
async def test_list_rows_search_keeps_forest_order_and_depth(store):
    view = TreeViewRegistry(store).mount()
    rows = view.rows("lemon")
    assert [(row.record.name, row.depth) for row in rows] == [("Lemons", 2)]

    everything = view.rows()
    assert [row.record.name for row in everything] == [
        "Vegetables", "Leafy", "Root", "Fruit", "Citrus", "Lemons",
    ]


@pytest.mark.asyncio
async def test_render_marks_expanded_and_in_flight(store):
    view = TreeViewRegistry(store).mount()
    view.toggle(4)

    payload = view.render(in_flight={5})
    assert payload.mode == ViewMode.TREE.value
    assert payload.expanded == [4]
    fruit = payload.tree[1]
    assert fruit.category["name"] == "Fruit"
    assert fruit.expanded is True
    assert fruit.children[0].in_flight is True
    assert [row.category["name"] for row in payload.rows] == ["Vegetables", "Fruit", "Citrus"]

    listing = view.render(mode=ViewMode.LIST, search="citrus")
    assert listing.tree is None
    assert [row.category["name"] for row in listing.rows] == ["Citrus"]
