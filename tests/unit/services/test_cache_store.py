"""Unit tests for the TTL cache store.

Covers lazy expiry, the per-item size cap, throttled cleanup and
oldest-first eviction, all driven by a fake clock.
"""

from __future__ import annotations

import pytest

from devstats.services.github.cache import CacheStore, estimate_size
from devstats.services.github.exceptions import PayloadTooLargeError

ONE_MIB = 1024 * 1024


# ═══════════════════════════════════════════════════════════════════════════
# estimate_size
# ═══════════════════════════════════════════════════════════════════════════


class TestEstimateSize:
    """Tests for serialized size estimation."""

    def test_compact_json_length(self):
        assert estimate_size({"a": 1}) == len('{"a":1}')

    def test_non_ascii_is_escaped(self):
        # json.dumps escapes non-ASCII characters
        assert estimate_size("é") == len('"\\u00e9"')

    def test_raises_over_cap(self):
        with pytest.raises(PayloadTooLargeError) as exc_info:
            estimate_size("x" * 100, max_bytes=10)

        assert exc_info.value.size_bytes == 102
        assert exc_info.value.max_bytes == 10

    def test_not_serializable_raises_type_error(self):
        with pytest.raises(TypeError):
            estimate_size({"when": object()})


# ═══════════════════════════════════════════════════════════════════════════
# get / set
# ═══════════════════════════════════════════════════════════════════════════


class TestGetSet:
    """Tests for basic reads and writes."""

    def test_empty_store_misses(self, clock):
        store = CacheStore(ttl_seconds=60, clock=clock)
        assert store.get("x") is None

    def test_set_then_get_returns_value(self, clock):
        store = CacheStore(ttl_seconds=60, clock=clock)

        assert store.set("x", {"a": 1}) is True
        assert store.get("x") == {"a": 1}

    def test_overwrite_is_last_writer_wins(self, clock):
        store = CacheStore(ttl_seconds=60, clock=clock)
        store.set("x", 1)
        store.set("x", 2)

        assert store.get("x") == 2
        assert len(store) == 1

    def test_oversized_value_rejected(self, clock):
        store = CacheStore(ttl_seconds=60, max_item_bytes=ONE_MIB, clock=clock)

        assert store.set("x", "y" * (2 * ONE_MIB)) is False
        assert store.get("x") is None
        assert len(store) == 0

    def test_oversized_write_keeps_previous_value(self, clock):
        store = CacheStore(ttl_seconds=60, max_item_bytes=100, clock=clock)
        store.set("x", "small")

        assert store.set("x", "y" * 500) is False
        assert store.get("x") == "small"

    def test_non_serializable_value_rejected(self, clock):
        store = CacheStore(ttl_seconds=60, clock=clock)

        assert store.set("x", {"bad": {1, 2}}) is False
        assert "x" not in store

    def test_falsy_values_are_hits(self, clock):
        store = CacheStore(ttl_seconds=60, clock=clock)
        store.set("empty", [])

        assert store.get("empty") == []


# ═══════════════════════════════════════════════════════════════════════════
# TTL
# ═══════════════════════════════════════════════════════════════════════════


class TestExpiry:
    """Tests for lazy TTL expiry."""

    def test_fresh_at_exact_ttl(self, clock):
        store = CacheStore(ttl_seconds=60, clock=clock)
        store.set("x", 1)

        clock.advance(60)
        assert store.get("x") == 1

    def test_expired_past_ttl(self, clock):
        store = CacheStore(ttl_seconds=60, clock=clock)
        store.set("x", 1)

        clock.advance(61)
        assert store.get("x") is None
        assert len(store) == 0

    def test_contains_honours_ttl(self, clock):
        store = CacheStore(ttl_seconds=60, clock=clock)
        store.set("x", 1)
        assert "x" in store

        clock.advance(61)
        assert "x" not in store

    def test_rewrite_resets_age(self, clock):
        store = CacheStore(ttl_seconds=60, clock=clock)
        store.set("x", 1)
        clock.advance(50)
        store.set("x", 2)
        clock.advance(50)

        assert store.get("x") == 2

    def test_delete_and_clear(self, clock):
        store = CacheStore(ttl_seconds=60, clock=clock)
        store.set("a", 1)
        store.set("b", 2)

        assert store.delete("a") is True
        assert store.delete("a") is False
        store.clear()
        assert len(store) == 0


# ═══════════════════════════════════════════════════════════════════════════
# Cleanup
# ═══════════════════════════════════════════════════════════════════════════


class TestCleanup:
    """Tests for throttled housekeeping."""

    def test_cleanup_throttled_by_interval(self, clock):
        store = CacheStore(ttl_seconds=10, cleanup_interval_seconds=3600, clock=clock)
        store.set("x", 1)
        clock.advance(20)

        # Expired but not yet swept: the interval has not elapsed
        assert store.cleanup() == 0
        assert len(store) == 1

    def test_cleanup_removes_expired_after_interval(self, clock):
        store = CacheStore(ttl_seconds=10, cleanup_interval_seconds=100, clock=clock)
        store.set("old", 1)
        clock.advance(95)
        store.set("new", 2)
        clock.advance(5)

        assert store.cleanup() == 1
        assert "old" not in store
        assert store.get("new") == 2

    def test_force_bypasses_interval(self, clock):
        store = CacheStore(ttl_seconds=10, cleanup_interval_seconds=3600, clock=clock)
        store.set("x", 1)
        clock.advance(20)

        assert store.cleanup(force=True) == 1
        assert len(store) == 0

    def test_evicts_oldest_down_to_capacity(self, clock):
        store = CacheStore(ttl_seconds=3600, max_entries=2, clock=clock)
        for key in ("first", "second", "third"):
            store.set(key, key)
            clock.advance(1)

        assert len(store) == 3
        assert store.cleanup(force=True) == 1
        assert "first" not in store
        assert "second" in store
        assert "third" in store

    def test_get_triggers_due_cleanup(self, clock):
        store = CacheStore(ttl_seconds=10, cleanup_interval_seconds=30, clock=clock)
        store.set("a", 1)
        store.set("b", 2)
        clock.advance(31)

        store.get("a")
        assert len(store) == 0

    def test_stats(self, clock):
        store = CacheStore(ttl_seconds=60, max_entries=5, clock=clock)
        store.set("x", {"a": 1})

        assert store.stats() == {"size": 1, "maxsize": 5, "bytes": 7}
