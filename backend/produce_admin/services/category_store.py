"""Flat record store: the console's copy of the marketplace category list."""

import structlog

from produce_admin.config import settings
from produce_admin.core.exceptions import StoreUnavailableError
from produce_admin.schemas.category import CategoryFilters, CategoryId, CategoryPage, CategoryRecord
from produce_admin.services.category_client import CategoryAPIClient
from produce_admin.services.category_tree import CategoryNode, build_tree, index_records

logger = structlog.get_logger()


def default_filters() -> CategoryFilters:
    return CategoryFilters(limit=settings.category_page_size, sort_by=settings.category_sort_by)


class CategoryStore:
    """Holds the last successfully fetched category list.

    The collection is only ever replaced as a whole by ``refresh``; a failed
    fetch leaves the previous records in place.
    """

    def __init__(self, client: CategoryAPIClient, filters: CategoryFilters | None = None):
        self.client = client
        self.filters = filters or default_filters()
        self.page: CategoryPage | None = None
        self._records: tuple[CategoryRecord, ...] = ()
        self._by_id: dict[CategoryId, CategoryRecord] = {}

    @property
    def loaded(self) -> bool:
        return self.page is not None

    @property
    def records(self) -> tuple[CategoryRecord, ...]:
        return self._records

    @property
    def stats(self) -> dict | None:
        return self.page.stats if self.page else None

    def get(self, category_id: CategoryId) -> CategoryRecord | None:
        return self._by_id.get(category_id)

    def tree(self) -> list[CategoryNode]:
        """Rebuild the forest from the current records."""
        return build_tree(self._records)

    async def refresh(self, filters: CategoryFilters | None = None) -> tuple[CategoryRecord, ...]:
        """Refetch the whole collection from the marketplace."""
        filters = filters or self.filters
        try:
            page = await self.client.list_categories(filters)
        except StoreUnavailableError:
            logger.warning("category_store_refresh_failed", kept=len(self._records))
            raise

        self.page = page
        self.filters = filters
        self._records = tuple(page.data)
        self._by_id = index_records(self._records)
        logger.info("category_store_refreshed", count=len(self._records), total=page.total)
        return self._records

    async def refresh_after_write(self) -> None:
        """Refetch after a successful write; a failure only leaves the view stale."""
        try:
            await self.refresh()
        except StoreUnavailableError:
            logger.warning("category_refetch_after_write_failed")
