"""Cache module initialization."""

from modelstore.cache.cache_repository import CacheModelRepository

__all__ = ["CacheModelRepository"]
