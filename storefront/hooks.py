# storefront/hooks.py
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Type, TypeVar

from .cache import QueryCache
from .errors import describe_error
from .keys import Key
from .models import Page
from .query import Query, page_window, total_pages
from .remote import DataClient

logger = logging.getLogger(__name__)

M = TypeVar("M")


class Hooks:
    """Shared plumbing for the per-resource read/write operations."""

    resource: str = ""

    def __init__(self, client: DataClient, cache: QueryCache):
        self.client = client
        self.cache = cache

    async def _read(self, key: Key, loader: Callable[[], Awaitable[Any]]) -> Any:
        return await self.cache.fetch(key, loader)

    async def _page(self, table: str, query: Query, page: int, per_page: int, model: Type[M]) -> Page[M]:
        start, end = page_window(page, per_page)
        result = await self.client.select(table, query.range(start, end).with_count())
        count = result.count or 0
        return Page[model](
            items=[model.model_validate(r) for r in result.rows],
            total_count=count,
            total_pages=total_pages(count, per_page),
            current_page=page,
        )

    async def _mutate(self, action: str, fn: Callable[[], Awaitable[Any]], resource: Optional[str] = None) -> Any:
        """Run a write; on success invalidate dependents of every returned row."""
        try:
            rows = await fn()
        except Exception as e:
            logger.error("Error %s %s: %s", action, resource or self.resource, describe_error(e))
            raise
        for row in rows or [{}]:
            self.cache.invalidate_for(resource or self.resource, row)
        return rows

    def _invalidate(self, row: Dict[str, Any], resource: Optional[str] = None) -> None:
        self.cache.invalidate_for(resource or self.resource, row)
