# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for LazyCache.

Tests lazy cache functionality including:
- Bulk population on first access, never repeated
- Per-key generation with cached ABSENT markers
- Statistics tracking
- Single computation under concurrent first access
- Sorted and inverted derived caches
"""

import threading
import time

import pytest

from type_graph.lazy_cache import (
    ABSENT,
    LazyCache,
    LazyCacheMode,
    inverted_multimap_cache,
    sorted_multimap_cache,
)


class CountingSource:
    """Callable source that records how often it runs."""

    def __init__(self, values):
        self.values = values
        self.calls = []

    def populate(self):
        self.calls.append(None)
        return dict(self.values)

    def generate(self, key):
        self.calls.append(key)
        return self.values.get(key)


class TestConstruction:
    def test_bulk_requires_populate(self):
        with pytest.raises(ValueError):
            LazyCache(LazyCacheMode.BULK, generate=lambda key: key)

    def test_per_key_requires_generate(self):
        with pytest.raises(ValueError):
            LazyCache(LazyCacheMode.PER_KEY, populate=dict)

    def test_unknown_mode(self):
        with pytest.raises(ValueError, match="Unknown LazyCache mode"):
            LazyCache("eager", populate=dict)

    def test_factories_set_mode(self):
        assert LazyCache.bulk(dict).mode == LazyCacheMode.BULK
        assert LazyCache.per_key(lambda key: None).mode == LazyCacheMode.PER_KEY

    def test_nothing_computed_before_first_access(self):
        source = CountingSource({"a": 1})
        LazyCache.bulk(source.populate)
        LazyCache.per_key(source.generate)
        assert source.calls == []


class TestBulkMode:
    def test_populates_once(self):
        source = CountingSource({"a": 1, "b": 2})
        cache = LazyCache.bulk(source.populate, name="test")

        assert cache.get("a") == 1
        assert cache.get("b") == 2
        assert cache.get("missing") is None
        assert cache.get("missing", "fallback") == "fallback"

        assert len(source.calls) == 1
        assert cache.get_statistics().computations == 1

    def test_keys_and_items_force_population(self):
        source = CountingSource({"a": 1, "b": 2})
        cache = LazyCache.bulk(source.populate)

        assert not cache.is_computed("a")
        assert cache.keys() == ["a", "b"]
        assert cache.items() == [("a", 1), ("b", 2)]
        assert cache.is_computed("anything")
        assert len(source.calls) == 1

    def test_contains(self):
        cache = LazyCache.bulk(lambda: {"a": 1})
        assert "a" in cache
        assert "b" not in cache

    def test_statistics(self):
        cache = LazyCache.bulk(lambda: {"a": 1})
        cache.get("a")
        cache.get("a")
        cache.get("b")

        stats = cache.get_statistics()
        assert stats.hits == 2
        assert stats.misses == 1
        assert stats.computations == 1


class TestPerKeyMode:
    def test_generates_each_key_once(self):
        source = CountingSource({"a": 1, "b": 2})
        cache = LazyCache.per_key(source.generate)

        assert cache.get("a") == 1
        assert cache.get("a") == 1
        assert cache.get("b") == 2

        assert source.calls == ["a", "b"]

    def test_absent_marker_is_cached(self):
        """Test that a miss is remembered and not recomputed."""
        source = CountingSource({})
        cache = LazyCache.per_key(source.generate)

        assert cache.get("missing") is None
        assert cache.get("missing") is None
        assert "missing" not in cache

        assert source.calls == ["missing"]
        stats = cache.get_statistics()
        assert stats.absent_entries == 1
        assert stats.computations == 1
        assert stats.misses == 2

    def test_absent_is_distinct_from_not_computed(self):
        cache = LazyCache.per_key(lambda key: None)

        assert not cache.is_computed("x")
        cache.get("x")
        assert cache.is_computed("x")
        assert cache._values["x"] is ABSENT

    def test_falsy_values_are_cached_not_absent(self):
        cache = LazyCache.per_key(lambda key: [])
        assert cache.get("x") == []
        assert "x" in cache
        assert cache.get_statistics().absent_entries == 0

    def test_keys_lists_computed_values_only(self):
        cache = LazyCache.per_key(lambda key: key.upper() if key != "none" else None)
        cache.get("a")
        cache.get("none")
        assert cache.keys() == ["a"]

    def test_statistics_copy_is_detached(self):
        cache = LazyCache.per_key(lambda key: 1)
        stats = cache.get_statistics()
        cache.get("a")
        assert stats.computations == 0


class TestConcurrency:
    def test_concurrent_first_access_computes_once(self):
        calls = []

        def slow_generate(key):
            calls.append(key)
            time.sleep(0.05)
            return f"value-{key}"

        cache = LazyCache.per_key(slow_generate)
        start = threading.Barrier(8)
        results = []

        def worker():
            start.wait()
            results.append(cache.get("shared"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert calls == ["shared"]
        assert results == ["value-shared"] * 8

    def test_concurrent_bulk_population_runs_once(self):
        source = CountingSource({"a": 1})

        def slow_populate():
            time.sleep(0.05)
            return source.populate()

        cache = LazyCache.bulk(slow_populate)
        start = threading.Barrier(6)

        def worker():
            start.wait()
            cache.get("a")

        threads = [threading.Thread(target=worker) for _ in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(source.calls) == 1


class TestDerivedCaches:
    def test_sorted_multimap_cache(self):
        source = LazyCache.per_key(lambda key: {"c", "a", "b"} if key == "k" else None, name="src")
        view = sorted_multimap_cache(source)

        assert view.name == "src:sorted"
        assert view.get("k") == ["a", "b", "c"]
        assert view.get("other") is None

    def test_sorted_multimap_cache_keeps_empty_sets(self):
        view = sorted_multimap_cache(LazyCache.per_key(lambda key: set()))
        assert view.get("k") == []

    def test_inverted_multimap_cache(self):
        forward = LazyCache.per_key(
            lambda key: {"Deprecated": {"Dog", "Cat"}, "Meta": {"Dog"}}.get(key)
        )
        universe_calls = []

        def universe():
            universe_calls.append(None)
            return ["Deprecated", "Meta"]

        inverse = inverted_multimap_cache(forward, universe, name="inverse")

        assert inverse.get("Dog") == {"Deprecated", "Meta"}
        assert inverse.get("Cat") == {"Deprecated"}
        assert inverse.get("Deprecated") is None
        assert len(universe_calls) == 1

    def test_inverted_cache_built_from_forward_cache(self):
        """Test that the inverse reads through the forward cache (no independent recomputation)."""
        source = CountingSource({"A": {"x"}, "B": {"x", "y"}})
        forward = LazyCache.per_key(source.generate)
        inverse = inverted_multimap_cache(forward, lambda: ["A", "B"])

        inverse.get("x")
        forward.get("A")
        forward.get("B")

        assert sorted(source.calls) == ["A", "B"]
