"""
Bounded in-memory cache of catalogue items.

The cache maps an item identity to the item and is bounded twice: by
entry count and by the cumulative estimated size of the cached items.
When either bound would be exceeded, least-recently-used entries are
evicted first. Both ``get`` and ``put`` count as a use.

Sizes are estimates taken from the byte size the API declares for the
larger renditions. They are a proxy for memory pressure and are not
expected to match what the image loader actually holds.

Every read and write goes through one lock, so pages loaded
concurrently and a synchronous seed from the UI thread never corrupt
the count or size accounting. The lock is never held across I/O.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

from .schemas import CatalogItem

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 100
DEFAULT_MAX_BYTES = 100 * 1024 * 1024
# Used when no rendition declares a size.
FALLBACK_SIZE_BYTES = 2_000_000

SIZE_PREFERENCE = ("original", "downsized", "downsized_medium")


def estimate_size(item: CatalogItem) -> int:
    """Estimate the memory footprint of ``item`` in bytes."""
    for name in SIZE_PREFERENCE:
        variant = item.images.variant(name)
        if variant is not None and variant.size is not None:
            return variant.size
    return FALLBACK_SIZE_BYTES


@dataclass
class _Entry:
    item: CatalogItem
    size: int


class BoundedCache:
    """LRU cache bounded by entry count and cumulative estimated size."""

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        max_bytes: int = DEFAULT_MAX_BYTES,
        estimator: Callable[[CatalogItem], int] = estimate_size,
    ) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        if max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        self.max_entries = max_entries
        self.max_bytes = max_bytes
        self._estimate = estimator
        # Oldest first; the last key is the most recently used.
        self._entries: "OrderedDict[str, _Entry]" = OrderedDict()
        self._total_bytes = 0
        self._lock = threading.Lock()

    def get(self, item_id: str) -> Optional[CatalogItem]:
        with self._lock:
            entry = self._entries.get(item_id)
            if entry is None:
                return None
            self._entries.move_to_end(item_id)
            return entry.item

    def put(self, item: CatalogItem) -> bool:
        """Insert or refresh ``item``; return whether it is now cached.

        Items without a displayable image are refused, as are items
        whose estimate alone exceeds ``max_bytes``; a refusal also drops
        any older version of the same GIF. Safe to call from any thread
        or coroutine.
        """
        size = max(0, int(self._estimate(item))) if item.has_image else 0
        with self._lock:
            # A refused re-insert still drops the stale version.
            previous = self._entries.pop(item.id, None)
            if previous is not None:
                self._total_bytes -= previous.size
            if not item.has_image:
                logger.debug("Refusing to cache GIF %s without an image URL", item.id)
                return False
            if size > self.max_bytes:
                logger.debug("GIF %s (%d bytes) is larger than the whole cache", item.id, size)
                return False
            while self._entries and (
                len(self._entries) >= self.max_entries
                or self._total_bytes + size > self.max_bytes
            ):
                evicted_id, evicted = self._entries.popitem(last=False)
                self._total_bytes -= evicted.size
                logger.debug("Evicted GIF %s (%d bytes)", evicted_id, evicted.size)
            self._entries[item.id] = _Entry(item=item, size=size)
            self._total_bytes += size
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._total_bytes = 0

    @property
    def total_bytes(self) -> int:
        with self._lock:
            return self._total_bytes

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, item_id: object) -> bool:
        with self._lock:
            return item_id in self._entries
