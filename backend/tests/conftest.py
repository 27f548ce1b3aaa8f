"""Shared test fixtures."""

import asyncio
import json

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from produce_admin.main import app, init_category_state
from produce_admin.services.category_client import CategoryAPIClient
from produce_admin.services.category_store import CategoryStore
from produce_admin.services.hierarchy_gateway import HierarchyMutationGateway

MARKETPLACE_URL = "http://marketplace.test/api/v1/admin"
ADMIN_PREFIX = "/api/v1/admin/categories"


def wire_category(_id, name, parent=None, sort_order=0, level=0, **extra):
    """A category as the marketplace list endpoint returns it."""
    return {
        "_id": _id,
        "name": name,
        "parentCategory": {"_id": parent, "name": f"parent {parent}"} if parent is not None else None,
        "level": level,
        "sortOrder": sort_order,
        "isActive": True,
        "isAvailable": True,
        "totalProducts": 0,
        **extra,
    }


def produce_catalog():
    return [
        wire_category(1, "Vegetables", sort_order=0),
        wire_category(2, "Leafy", parent=1, sort_order=0, level=1, description="Spinach, kale, lettuce"),
        wire_category(3, "Root", parent=1, sort_order=1, level=1),
        wire_category(4, "Fruit", sort_order=1),
        wire_category(5, "Citrus", parent=4, sort_order=0, level=1, metaTitle="Fresh citrus"),
        wire_category(6, "Lemons", parent=5, sort_order=0, level=2),
    ]


class FakeMarketplace:
    """In-memory stand-in for the marketplace admin category endpoints."""

    def __init__(self, categories):
        self.categories = [dict(c) for c in categories]
        self.requests: list[httpx.Request] = []
        self.fail_writes: int | None = None  # status code to answer writes with
        self.fail_reads: int | None = None
        self.gate: asyncio.Event | None = None  # when set, writes wait for it

    def writes(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method != "GET"]

    def reads(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "GET"]

    def find(self, category_id):
        for category in self.categories:
            if str(category["_id"]) == str(category_id):
                return category
        return None

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix(ADMIN_PREFIX).strip("/")
        parts = path.split("/") if path else []

        if request.method == "GET":
            if self.fail_reads:
                return httpx.Response(self.fail_reads, json={"message": "list unavailable"})
            if not parts:
                return httpx.Response(200, json={
                    "success": True,
                    "data": self.categories,
                    "total": len(self.categories),
                    "page": 1,
                    "pages": 1,
                    "stats": {"active": len(self.categories)},
                })
            category = self.find(parts[0])
            if category is None:
                return httpx.Response(404, json={"message": "Category not found"})
            if len(parts) == 2 and parts[1] == "usage":
                return httpx.Response(200, json={"success": True, "data": {"productCount": 12}})
            return httpx.Response(200, json={"success": True, "data": category})

        if self.gate is not None:
            await self.gate.wait()
        if self.fail_writes:
            return httpx.Response(self.fail_writes, json={"message": "rejected by marketplace"})

        body = json.loads(request.content) if request.content else {}
        if request.method == "POST" and not parts:
            created = {"_id": 100 + len(self.categories), "sortOrder": 0, **body}
            self.categories.append(created)
            return httpx.Response(201, json={"success": True, "data": created})

        category = self.find(parts[0])
        if category is None:
            return httpx.Response(404, json={"message": "Category not found"})
        action = parts[1] if len(parts) > 1 else None

        if action == "reorder":
            self._place(category, self._parent_of(category), body["newSortOrder"])
        elif action == "hierarchy":
            self._place(category, body["newParentId"], body["newSortOrder"])
        elif action == "availability":
            category["isAvailable"] = body["isAvailable"]
        elif action == "safe-delete":
            self.categories.remove(category)
            return httpx.Response(200, json={"success": True, "data": {"deleted": True}})
        elif action is None and request.method == "PUT":
            category.update(body)
        return httpx.Response(200, json={"success": True, "data": category})

    def _parent_of(self, category):
        parent = category.get("parentCategory")
        return parent["_id"] if isinstance(parent, dict) else parent

    def _place(self, category, parent_id, sort_order):
        # Shift the new siblings at or after the slot, like the real backend
        for sibling in self.categories:
            if sibling is category or self._parent_of(sibling) != parent_id:
                continue
            if sibling["sortOrder"] >= sort_order:
                sibling["sortOrder"] += 1
        category["parentCategory"] = {"_id": parent_id} if parent_id is not None else None
        category["sortOrder"] = sort_order


@pytest.fixture
def marketplace():
    return FakeMarketplace(produce_catalog())


@pytest.fixture
async def marketplace_http(marketplace):
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(marketplace.handle),
        base_url=MARKETPLACE_URL,
    ) as http:
        yield http


@pytest.fixture
def category_client(marketplace_http):
    return CategoryAPIClient(marketplace_http)


@pytest.fixture
async def store(category_client):
    store = CategoryStore(category_client)
    await store.refresh()
    return store


@pytest.fixture
def gateway(category_client, store):
    return HierarchyMutationGateway(category_client, store)


@pytest.fixture
async def client(category_client):
    """Async test client for the FastAPI app, backed by the fake marketplace."""
    init_category_state(app, category_client)
    await app.state.category_store.refresh()
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
