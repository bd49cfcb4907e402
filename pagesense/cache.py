"""
In-memory page cache with expiry and LRU eviction.

A cache is created by the caller and passed in; nothing here is global.
"""

import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple

from .models import LoadedPage

logger = logging.getLogger(__name__)


class PageCache:
    """Keeps recently loaded pages keyed by URL."""

    def __init__(
        self,
        ttl_seconds: float = 300,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, LoadedPage]]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, url: str) -> bool:
        return self.lookup(url, count=False) is not None

    def lookup(self, url: str, count: bool = True) -> Optional[LoadedPage]:
        """Return the cached page for ``url`` if it has not expired."""
        entry = self._entries.get(url)
        if entry is None:
            if count:
                self.misses += 1
            return None

        expires_at, page = entry
        if self._clock() >= expires_at:
            del self._entries[url]
            if count:
                self.misses += 1
            return None

        self._entries.move_to_end(url)
        if count:
            self.hits += 1
        return page

    def store(self, page: LoadedPage) -> None:
        """Cache ``page``. Failed loads are not cached."""
        if not page.ok:
            return
        self._entries[page.url] = (self._clock() + self.ttl_seconds, page)
        self._entries.move_to_end(page.url)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted %s from page cache", evicted)

    def invalidate(self, url: str) -> bool:
        return self._entries.pop(url, None) is not None

    def cleanup_expired(self) -> int:
        now = self._clock()
        expired = [url for url, (expires_at, _) in self._entries.items() if now >= expires_at]
        for url in expired:
            del self._entries[url]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def get_stats(self) -> Dict[str, Any]:
        return {
            "entries": len(self._entries),
            "max_entries": self.max_entries,
            "ttl_seconds": self.ttl_seconds,
            "hits": self.hits,
            "misses": self.misses,
        }
