"""
Offset pagination over the trending and search endpoints.

A page index is turned into an offset with ``page_index * page_size``,
so the page size must stay the same for every page of one scroll
session. The end of a feed is detected from the data itself: a page
with no usable items has no ``next_key``. The ``total_count`` reported
by the API is not trusted for this.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from .schemas import CatalogItem, PageRequest, PageResult

logger = logging.getLogger(__name__)


def usable_items(items: Iterable[CatalogItem]) -> List[CatalogItem]:
    """Drop items without a displayable image and repeated identities.

    The first occurrence of an identity wins and the server order is
    kept.
    """
    seen = set()
    kept: List[CatalogItem] = []
    for item in items:
        if not item.has_image or item.id in seen:
            continue
        seen.add(item.id)
        kept.append(item)
    return kept


class PageFetcher:
    """Loads one page of trending or search results."""

    def __init__(self, client) -> None:
        self._client = client

    async def fetch(self, query: str, page_index: int, page_size: int) -> PageResult:
        """Fetch page ``page_index`` for ``query``.

        A blank query reads the trending feed. Transport and protocol
        errors from the client propagate unchanged; nothing is retried.
        """
        request = PageRequest(query=query, page_index=page_index, page_size=page_size)
        if request.is_trending:
            response = await self._client.trending(limit=request.page_size, offset=request.offset)
        else:
            response = await self._client.search(
                query=request.query, limit=request.page_size, offset=request.offset
            )
        items = usable_items(response.data)
        dropped = len(response.data) - len(items)
        if dropped:
            logger.debug("Dropped %d unusable or duplicate GIFs from page %d", dropped, page_index)
        return PageResult.for_page(page_index, items)


def refresh_key(pages: Sequence[PageResult], anchor_position: Optional[int]) -> Optional[int]:
    """Return the index of the page holding item ``anchor_position``.

    Positions count items across ``pages`` in load order. An anchor
    outside the loaded items is clamped to the first or last page. Used
    to pick the page to reload first when a list is refreshed while
    scrolled.
    """
    if anchor_position is None or not pages:
        return None
    closest = pages[-1]
    if anchor_position < 0:
        closest = pages[0]
    else:
        start = 0
        for page in pages:
            end = start + len(page.items)
            if anchor_position < end:
                closest = page
                break
            start = end
    if closest.prev_key is not None:
        return closest.prev_key + 1
    if closest.next_key is not None:
        return closest.next_key - 1
    return closest.page_index
