"""
Query cache - Process-wide read cache with explicit invalidation.

A mapping from query key to cached value. Nothing is invalidated
automatically when data changes: after a successful mutation the caller
must invalidate the keys the mutation affects. The cache is never a
source of truth; a miss always falls through to the loader.

Keys are tuples of strings joined with "-". invalidate(("reviews",)) drops
"reviews-mine-1" and "reviews-pending" alike, but a prefix only matches
whole key parts: invalidate(("walker-stats", "u1")) leaves
"walker-stats-u10" alone.
"""

import logging
import threading
from collections.abc import Callable, Hashable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")

QueryKey = tuple[Hashable, ...] | str

KEY_SEPARATOR = "-"


def _key_string(key: QueryKey) -> str:
    if isinstance(key, str):
        return key
    return KEY_SEPARATOR.join(str(part) for part in key)


def _matches(name: str, prefix: str) -> bool:
    return name == prefix or name.startswith(prefix + KEY_SEPARATOR)


class QueryCache:
    """Thread-safe key/value cache with prefix invalidation."""

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}
        # Bumped by invalidate() and clear(); loads that straddle a bump are not stored
        self._generation = 0
        self._lock = threading.Lock()

    def get(self, key: QueryKey) -> Any | None:
        with self._lock:
            return self._entries.get(_key_string(key))

    def set(self, key: QueryKey, value: Any) -> None:
        with self._lock:
            self._entries[_key_string(key)] = value

    def get_or_load(self, key: QueryKey, loader: Callable[[], V]) -> V:
        """
        Return the cached value for key, loading and storing it on a miss.

        The loader runs outside the lock; exceptions propagate and nothing
        is cached. If an invalidation happens while the loader runs, the
        loaded value is returned to this caller but not stored, since it
        may predate the mutation that triggered the invalidation.
        """
        name = _key_string(key)
        with self._lock:
            if name in self._entries:
                return self._entries[name]
            generation = self._generation
        value = loader()
        with self._lock:
            if self._generation == generation:
                self._entries[name] = value
        return value

    def invalidate(self, key_prefix: QueryKey) -> int:
        """
        Drop the entry for key_prefix and every entry nested under it.

        Returns:
            Number of entries removed
        """
        prefix = _key_string(key_prefix)
        with self._lock:
            self._generation += 1
            doomed = [name for name in self._entries if _matches(name, prefix)]
            for name in doomed:
                del self._entries[name]
        if doomed:
            logger.debug("Invalidated %d cache entries for prefix %s", len(doomed), prefix)
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# Module-level singleton - shared by every request in the process
query_cache = QueryCache()
