"""
In-process cache implementation of the model repository.

Wraps a cachetools LRU (or TTL) cache so a bounded, optionally expiring
local cache can act as the fallback tier in front of a durable store.
"""

import logging
import threading
from typing import Any, Dict, Optional

from cachetools import Cache, LRUCache, TTLCache  # type: ignore[import-untyped]

from ..domain.entities import ID_FIELD, ModelT
from ..repositories.model_repository import (
    CollectionFactory,
    ModelRepository,
    PostLoadAction,
)

logger = logging.getLogger(__name__)


class CacheModelRepository(ModelRepository[ModelT]):
    """
    cachetools-backed repository holding model references.

    Cache hierarchy when used as a fallback tier:
    - fallback: this cache (bounded, may evict or expire at any time)
    - main: durable store (files, Redis, SQL)

    Attributes:
        cache: Underlying cachetools cache
        max_size: Maximum number of cached models
        ttl_seconds: Time-to-live per entry, 0 for no expiry
        hits: Number of lookups served from the cache
        misses: Number of lookups not found in the cache
        evictions: Number of entries pushed out by the size limit
    """

    backend_name = "cache"

    def __init__(
        self,
        max_size: int = 1000,
        ttl_seconds: float = 0,
        cache: Optional[Cache] = None,
    ):
        """
        Initialize cache repository.

        Args:
            max_size: Maximum number of models to cache (default: 1000)
            ttl_seconds: Entry time-to-live; 0 keeps entries until evicted
            cache: Pre-built cachetools cache, overriding max_size/ttl_seconds
        """
        if cache is None:
            if ttl_seconds > 0:
                cache = TTLCache(maxsize=max_size, ttl=ttl_seconds)
            else:
                cache = LRUCache(maxsize=max_size)
        self.cache: Cache = cache
        self.max_size = int(cache.maxsize)
        self.ttl_seconds = ttl_seconds
        self._lock = threading.RLock()

        # Statistics
        self.hits = 0
        self.misses = 0
        self.evictions = 0

        logger.info(
            f"Initialized CacheModelRepository with max_size={self.max_size}, ttl={ttl_seconds}s"
        )

    def find(self, model_id: str) -> Optional[ModelT]:
        with self._lock:
            model = self.cache.get(model_id)
            if model is None:
                self.misses += 1
                logger.debug(f"Cache MISS: {model_id}")
                return None
            self.hits += 1
        logger.debug(f"Cache HIT: {model_id}")
        return model

    def find_by_field(self, field: str, value: Any, factory: CollectionFactory = list) -> Any:
        if field == ID_FIELD:
            model = self.find(value)
            return factory([] if model is None else [model])
        models = self._snapshot()
        return factory(model for model in models if getattr(model, field, None) == value)

    def find_ids(self, factory: CollectionFactory = list) -> Any:
        with self._lock:
            self._expire()
            return factory(list(self.cache.keys()))

    def find_all(
        self,
        post_load_action: Optional[PostLoadAction] = None,
        factory: CollectionFactory = list,
    ) -> Any:
        return self._run_post_load(self._snapshot(), post_load_action, factory)

    def exists(self, model_id: str) -> bool:
        with self._lock:
            return model_id in self.cache

    def save(self, model: ModelT) -> ModelT:
        with self._lock:
            if len(self.cache) >= self.max_size and model.id not in self.cache:
                self.evictions += 1
            self.cache[model.id] = model
        logger.debug(f"Cached: {model.id}")
        return model

    def delete(self, model_id: str) -> bool:
        return self.delete_and_retrieve(model_id) is not None

    def delete_and_retrieve(self, model_id: str) -> Optional[ModelT]:
        with self._lock:
            model = self.cache.pop(model_id, None)
        if model is not None:
            logger.debug(f"Deleted from cache: {model_id}")
        return model

    def delete_all(self) -> None:
        with self._lock:
            count = len(self.cache)
            self.cache.clear()
        logger.info(f"Cleared {count} items from cache")

    def get_stats(self) -> Dict[str, int]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        with self._lock:
            self._expire()
            size = len(self.cache)
        total_requests = self.hits + self.misses
        hit_rate = (self.hits / total_requests * 100) if total_requests > 0 else 0

        return {
            "size": size,
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "total_requests": total_requests,
            "hit_rate_percent": int(round(hit_rate)),
        }

    def _snapshot(self) -> list:
        with self._lock:
            self._expire()
            keys = list(self.cache)
            return [self.cache[key] for key in keys]

    def _expire(self) -> None:
        # TTLCache keeps expired entries until the next mutation
        if isinstance(self.cache, TTLCache):
            self.cache.expire()
