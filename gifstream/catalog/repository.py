"""
Catalogue repository.

``CatalogRepository`` composes the page fetcher with the bounded cache
and is the only owner of that cache. Every item that flows out of a
page load is cached before the page is returned, so the detail lookup
``get_item()`` can usually answer without a network call.

Page streams returned by ``page_stream()`` are async iterators that
load pages 0, 1, 2, ... on demand until a page comes back empty. A
stream can be cancelled at any time; a load that completes after the
cancellation is discarded instead of being delivered.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from .cache import BoundedCache
from .errors import CatalogError, ItemNotFound
from .paging import PageFetcher, refresh_key
from .schemas import CatalogItem, PageResult

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


class PageStream:
    """Ordered, cancellable sequence of pages for one query."""

    def __init__(self, repository: "CatalogRepository", query: str, page_size: int) -> None:
        self._repository = repository
        self.query = query
        self.page_size = page_size
        self.pages: List[PageResult] = []
        self._next_key: Optional[int] = 0
        self._cancelled = False
        self._lock = asyncio.Lock()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def exhausted(self) -> bool:
        return self._next_key is None

    def cancel(self) -> None:
        """Stop delivering pages. In-flight loads finish but are dropped."""
        self._cancelled = True

    def __aiter__(self) -> "PageStream":
        return self

    async def __anext__(self) -> PageResult:
        async with self._lock:
            if self._cancelled or self._next_key is None:
                raise StopAsyncIteration
            page_index = self._next_key
            try:
                page = await self._repository.load_page(self.query, page_index, self.page_size)
            except CatalogError:
                if self._cancelled:
                    raise StopAsyncIteration
                raise
            if self._cancelled:
                logger.debug("Dropping stale page %d for %r", page_index, self.query)
                raise StopAsyncIteration
            self._next_key = page.next_key
            self.pages.append(page)
            return page

    async def reload(self, page_index: int) -> Optional[PageResult]:
        """Load ``page_index`` again, e.g. for a refresh or backward scroll.

        Returns ``None`` when the stream was cancelled meanwhile.
        """
        page = await self._repository.load_page(self.query, page_index, self.page_size)
        if self._cancelled:
            return None
        return page

    def refresh_key(self, anchor_position: Optional[int]) -> Optional[int]:
        return refresh_key(self.pages, anchor_position)


class CatalogRepository:
    """Entry point of the catalogue core for UI layers."""

    def __init__(
        self,
        client,
        cache: Optional[BoundedCache] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._client = client
        self._fetcher = PageFetcher(client)
        self._cache = cache if cache is not None else BoundedCache()
        self.page_size = page_size

    def page_stream(self, query: str) -> PageStream:
        """Start a fresh stream of pages for ``query`` (blank = trending)."""
        return PageStream(self, query, self.page_size)

    async def load_page(
        self, query: str, page_index: int, page_size: Optional[int] = None
    ) -> PageResult:
        """Fetch one page and cache its items.

        Errors propagate before the cache is touched, so a failed load
        leaves the cache as it was and can simply be retried.
        """
        if page_size is None:
            page_size = self.page_size
        page = await self._fetcher.fetch(query, page_index, page_size)
        for item in page.items:
            self._cache.put(item)
        return page

    async def get_item(self, item_id: str) -> CatalogItem:
        """Return one item, from the cache when possible."""
        cached = self._cache.get(item_id)
        if cached is not None:
            return cached
        item = await self._client.get_by_id(item_id)
        if not item.has_image:
            raise ItemNotFound(item_id, status_code=None)
        self._cache.put(item)
        return item

    def seed(self, item: CatalogItem) -> bool:
        """Cache ``item`` right away, e.g. when the user taps it.

        Synchronous; shares the cache lock with the page loads.
        """
        return self._cache.put(item)
