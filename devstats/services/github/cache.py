"""
TTL caching for GitHub API responses and derived stats.

Provides a bounded in-memory store with time-to-live, used at two boundaries:
- Proxy cache: raw GitHub payloads keyed by endpoint path
- Presentation cache: the aggregated stats record under a fixed key

Staleness is evaluated lazily on read. Housekeeping (expired-entry removal and
oldest-first eviction down to capacity) runs at most once per cleanup interval,
triggered from get/set rather than a background job.
"""

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from devstats.services.github.exceptions import PayloadTooLargeError

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A cached value with its write time and serialized size."""

    key: str
    data: Any
    last_updated: float  # Seconds since epoch (clock units)
    size_bytes: int


def estimate_size(data: Any, max_bytes: int | None = None) -> int:
    """
    Estimate the storage size of a value as its UTF-8 encoded JSON length.

    Raises:
        PayloadTooLargeError: If max_bytes is given and the size exceeds it
        TypeError: If the value is not JSON serializable
    """
    size = len(json.dumps(data, separators=(",", ":")).encode("utf-8"))
    if max_bytes is not None and size > max_bytes:
        raise PayloadTooLargeError(size, max_bytes)
    return size


class CacheStore:
    """
    Keyed TTL store with bounded capacity and a per-item size cap.

    Writes are last-writer-wins; no locking is needed on a single event loop.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int = 100,
        max_item_bytes: int = 1024 * 1024,
        cleanup_interval_seconds: float = 3600,
        clock: Callable[[], float] = time.time,
        name: str = "cache",
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.max_item_bytes = max_item_bytes
        self.cleanup_interval_seconds = cleanup_interval_seconds
        self.name = name
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._last_cleanup = clock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key) if isinstance(key, str) else None
        return entry is not None and not self._is_expired(entry, self._clock())

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.last_updated > self.ttl_seconds

    def get(self, key: str) -> Any | None:
        """Return cached data for key, or None on miss or expiry."""
        self.cleanup()

        entry = self._entries.get(key)
        if entry is None:
            logger.debug(f"Cache MISS [{self.name}]: {key}")
            return None

        if self._is_expired(entry, self._clock()):
            del self._entries[key]
            logger.debug(f"Cache EXPIRED [{self.name}]: {key}")
            return None

        logger.debug(f"Cache HIT [{self.name}]: {key}")
        return entry.data

    def set(self, key: str, data: Any) -> bool:
        """
        Store data under key.

        Returns:
            False if the value is too large or not serializable (store unchanged),
            True otherwise
        """
        self.cleanup()

        try:
            size = estimate_size(data, self.max_item_bytes)
        except PayloadTooLargeError as e:
            logger.warning(f"Cache write rejected [{self.name}] for {key}: {e}")
            return False
        except (TypeError, ValueError) as e:
            logger.warning(f"Cache write rejected [{self.name}] for {key}: not serializable ({e})")
            return False

        self._entries[key] = CacheEntry(
            key=key,
            data=data,
            last_updated=self._clock(),
            size_bytes=size,
        )
        return True

    def delete(self, key: str) -> bool:
        """Remove key. Returns True if an entry was present."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()
        logger.debug(f"Cleared cache [{self.name}]")

    def cleanup(self, force: bool = False) -> int:
        """
        Remove expired entries, then evict oldest entries down to capacity.

        Runs at most once per cleanup interval unless force is set.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        if not force and now - self._last_cleanup < self.cleanup_interval_seconds:
            return 0

        expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
        for key in expired:
            del self._entries[key]
        removed = len(expired)

        overflow = len(self._entries) - self.max_entries
        if overflow > 0:
            oldest = sorted(self._entries.values(), key=lambda e: e.last_updated)
            for entry in oldest[:overflow]:
                del self._entries[entry.key]
            removed += overflow

        self._last_cleanup = now
        if removed:
            logger.debug(f"Cache cleanup [{self.name}] removed {removed} entries")
        return removed

    def stats(self) -> dict[str, int]:
        """Get current cache statistics for monitoring."""
        return {
            "size": len(self._entries),
            "maxsize": self.max_entries,
            "bytes": sum(e.size_bytes for e in self._entries.values()),
        }
