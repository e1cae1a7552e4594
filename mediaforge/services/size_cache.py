"""Image size cache.

Memoizes ``{"width", "height"}`` by resource identity. Sizes are a pure
function of immutable resource bytes, so concurrent writers can only ever
store the same value and last-writer-wins is fine.
"""

import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..utils.logging import get_logger

logger = get_logger("mediaforge.size_cache")


@dataclass
class CacheStats:
    """Cache performance statistics."""
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    entry_count: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'hits': self.hits,
            'misses': self.misses,
            'hit_rate': f"{self.hit_rate:.2%}",
            'evictions': self.evictions,
            'entry_count': self.entry_count
        }


class ImageSizeCache:
    """Thread-safe LRU cache of image dimensions keyed by resource identity."""

    def __init__(self, max_entries: int = 10000):
        self.max_entries = max(1, int(max_entries))
        self._cache: "OrderedDict[str, Dict[str, int]]" = OrderedDict()
        self._lock = threading.RLock()
        self._stats = CacheStats()

    def get(self, identity: str) -> Optional[Dict[str, int]]:
        """Return a copy of the cached size or None on a miss."""
        with self._lock:
            entry = self._cache.get(identity)
            if entry is None:
                self._stats.misses += 1
                return None
            self._cache.move_to_end(identity)
            self._stats.hits += 1
            return dict(entry)

    def set(self, identity: str, size: Dict[str, int]) -> None:
        """Insert or overwrite the size stored for ``identity``."""
        value = {'width': int(size['width']), 'height': int(size['height'])}
        with self._lock:
            if identity in self._cache:
                self._cache.move_to_end(identity)
            else:
                while len(self._cache) >= self.max_entries:
                    evicted, _ = self._cache.popitem(last=False)
                    self._stats.evictions += 1
                    logger.debug(f"Evicted size entry {evicted}")
            self._cache[identity] = value
            self._stats.entry_count = len(self._cache)

    def delete(self, identity: str) -> bool:
        with self._lock:
            removed = self._cache.pop(identity, None) is not None
            self._stats.entry_count = len(self._cache)
            return removed

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._stats.entry_count = 0

    def __contains__(self, identity: object) -> bool:
        with self._lock:
            return identity in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def get_stats(self) -> CacheStats:
        return self._stats
