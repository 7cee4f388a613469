"""
Tests for the cachetools-backed repository.
"""

import threading

import pytest
from cachetools import TTLCache
from conftest import User

from modelstore.cache.cache_repository import CacheModelRepository


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def cache_repository():
    """Create a fresh cache repository for testing."""
    return CacheModelRepository(max_size=3)


class TestCacheInitialization:
    """Test cache repository initialization."""

    def test_default_initialization(self):
        """Test cache with default parameters."""
        repository = CacheModelRepository()

        assert repository.max_size == 1000
        assert repository.ttl_seconds == 0
        assert not isinstance(repository.cache, TTLCache)

    def test_ttl_selects_ttl_cache(self):
        """Test a positive TTL builds a TTLCache."""
        repository = CacheModelRepository(max_size=10, ttl_seconds=60)

        assert isinstance(repository.cache, TTLCache)

    def test_prebuilt_cache(self):
        """Test a supplied cache is used as-is."""
        cache = TTLCache(maxsize=7, ttl=1)

        repository = CacheModelRepository(cache=cache)

        assert repository.cache is cache
        assert repository.max_size == 7


class TestCacheEviction:
    """Test LRU eviction."""

    def test_evicts_least_recently_used(self, cache_repository):
        """Test the least recently used model is evicted at capacity."""
        for model_id in ("a", "b", "c"):
            cache_repository.save(User(id=model_id))
        cache_repository.find("a")

        cache_repository.save(User(id="d"))

        assert cache_repository.find("b") is None
        assert cache_repository.find("a") is not None
        assert cache_repository.evictions == 1

    def test_overwrite_does_not_evict(self, cache_repository):
        """Test updating an existing id at capacity evicts nothing."""
        for model_id in ("a", "b", "c"):
            cache_repository.save(User(id=model_id))

        cache_repository.save(User(id="a", name="updated"))

        assert cache_repository.evictions == 0
        assert sorted(cache_repository.find_ids()) == ["a", "b", "c"]


class TestCacheExpiry:
    """Test TTL expiry."""

    def test_entries_expire(self):
        """Test expired entries disappear from lookups and enumerations."""
        clock = FakeClock()
        repository = CacheModelRepository(cache=TTLCache(maxsize=10, ttl=5, timer=clock))
        repository.save(User(id="a"))

        clock.now = 10

        assert repository.find("a") is None
        assert repository.exists("a") is False
        assert repository.find_ids() == []
        assert repository.find_all() == []


class TestCacheStatistics:
    """Test hit/miss accounting."""

    def test_stats(self, cache_repository):
        """Test get_stats reports hits, misses and size."""
        cache_repository.save(User(id="a"))
        cache_repository.find("a")
        cache_repository.find("a")
        cache_repository.find("missing")

        stats = cache_repository.get_stats()

        assert stats["size"] == 1
        assert stats["max_size"] == 3
        assert stats["hits"] == 2
        assert stats["misses"] == 1
        assert stats["total_requests"] == 3
        assert stats["hit_rate_percent"] == 67

    def test_stats_empty(self, cache_repository):
        """Test hit rate is zero without requests."""
        assert cache_repository.get_stats()["hit_rate_percent"] == 0


class TestCacheThreadSafety:
    """Test concurrent access."""

    def test_concurrent_saves(self):
        """Test parallel saves from many threads are all stored."""
        repository = CacheModelRepository(max_size=1000)

        def worker(start):
            for i in range(start, start + 50):
                repository.save(User(id=f"user-{i}"))

        threads = [threading.Thread(target=worker, args=(n * 50,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(repository.find_ids()) == 200
