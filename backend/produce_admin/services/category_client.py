"""Marketplace admin API client for categories.

Thin async wrappers over the backend's ``/admin/categories`` endpoints. Read
failures surface as ``StoreUnavailableError`` (or ``NotFoundError`` for a
missing record), write failures as ``MutationFailure``; nothing here retries.
"""

from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from produce_admin.config import Settings
from produce_admin.core.exceptions import MutationFailure, NotFoundError, StoreUnavailableError
from produce_admin.schemas.category import CategoryFilters, CategoryId, CategoryPage, CategoryRecord

logger = structlog.get_logger()


def build_http_client(config: Settings) -> httpx.AsyncClient:
    """Create the shared HTTP client pointed at the marketplace admin API."""
    headers = {"Accept": "application/json"}
    if config.marketplace_api_token:
        headers["Authorization"] = f"Bearer {config.marketplace_api_token}"
    return httpx.AsyncClient(
        base_url=config.admin_api_url,
        headers=headers,
        timeout=httpx.Timeout(config.marketplace_timeout, connect=5.0),
    )


def _payload(response: httpx.Response) -> Any:
    if response.status_code == 204 or not response.content:
        return {}
    return response.json()


def _unwrap(body: Any) -> Any:
    """Strip the ``{"success": ..., "data": ...}`` envelope when present."""
    if isinstance(body, dict) and "success" in body and "data" in body:
        return body["data"]
    return body


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("detail") or body.get("error") or body)
    return str(body)


class CategoryAPIClient:
    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    # ── Reads ─────────────────────────────────────

    async def list_categories(self, filters: CategoryFilters | None = None) -> CategoryPage:
        """Fetch one page of categories with the list statistics."""
        filters = filters or CategoryFilters()
        try:
            response = await self.http.get("categories", params=filters.to_params())
        except httpx.HTTPError as e:
            logger.warning("category_list_unreachable", error=str(e))
            raise StoreUnavailableError(f"Marketplace unreachable: {e}") from e

        if response.is_error:
            logger.warning("category_list_error", status=response.status_code)
            raise StoreUnavailableError(_error_message(response))

        body = _payload(response)
        if isinstance(body, list):
            body = {"data": body, "total": len(body)}
        try:
            return CategoryPage.model_validate(body)
        except ValidationError as e:
            logger.warning("category_list_invalid", errors=e.error_count(), error=str(e))
            raise StoreUnavailableError("Marketplace returned malformed categories") from e

    async def get_category(self, category_id: CategoryId) -> CategoryRecord:
        body = await self._read(f"categories/{category_id}")
        if isinstance(body, dict) and "category" in body:
            body = body["category"]
        return CategoryRecord.model_validate(body)

    async def get_usage_stats(self, category_id: CategoryId) -> dict:
        return await self._read(f"categories/{category_id}/usage")

    # ── Hierarchy mutations ───────────────────────

    async def reorder_category(self, category_id: CategoryId, new_sort_order: int) -> None:
        await self._write(
            "PUT",
            f"categories/{category_id}/reorder",
            json={"newSortOrder": new_sort_order},
        )

    async def update_category_hierarchy(
        self,
        category_id: CategoryId,
        new_parent_id: CategoryId | None,
        new_sort_order: int,
    ) -> None:
        await self._write(
            "PUT",
            f"categories/{category_id}/hierarchy",
            json={"newParentId": new_parent_id, "newSortOrder": new_sort_order},
        )

    # ── Record lifecycle ──────────────────────────

    async def create_category(self, data: dict) -> CategoryRecord:
        body = await self._write("POST", "categories", json=data)
        return CategoryRecord.model_validate(body)

    async def update_category(self, category_id: CategoryId, data: dict) -> CategoryRecord:
        body = await self._write("PUT", f"categories/{category_id}", json=data)
        return CategoryRecord.model_validate(body)

    async def toggle_availability(
        self, category_id: CategoryId, is_available: bool, flag_reason: str | None = None
    ) -> dict:
        return await self._write(
            "PUT",
            f"categories/{category_id}/availability",
            json={"isAvailable": is_available, "flagReason": flag_reason},
        )

    async def safe_delete_category(self, category_id: CategoryId, reason: str | None = None) -> dict:
        return await self._write(
            "DELETE",
            f"categories/{category_id}/safe-delete",
            json={"reason": reason},
        )

    # ── Internals ─────────────────────────────────

    async def _read(self, path: str) -> Any:
        try:
            response = await self.http.get(path)
        except httpx.HTTPError as e:
            logger.warning("category_read_unreachable", path=path, error=str(e))
            raise StoreUnavailableError(f"Marketplace unreachable: {e}") from e
        if response.status_code == 404:
            raise NotFoundError("Category")
        if response.is_error:
            logger.warning("category_read_error", path=path, status=response.status_code)
            raise StoreUnavailableError(_error_message(response))
        return _unwrap(_payload(response))

    async def _write(self, method: str, path: str, json: dict | None = None) -> Any:
        try:
            response = await self.http.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.error("category_write_unreachable", method=method, path=path, error=str(e))
            raise MutationFailure(f"Marketplace unreachable: {e}") from e
        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "category_write_rejected",
                method=method,
                path=path,
                status=response.status_code,
                message=message,
            )
            raise MutationFailure(message, upstream_status=response.status_code)
        return _unwrap(_payload(response))
