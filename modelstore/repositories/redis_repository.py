"""
Redis implementation of the model repository.

Stores each model as one Redis hash at ``{table}:{id}``, encoded with the
flat codec, with optional expiry after save and after access.
"""

import logging
from typing import Any, Optional

import redis

from ..codec.base import ModelCodec
from ..codec.flat import FlatReader, FlatWriter
from ..domain.entities import ID_FIELD, ModelT
from ..domain.exceptions import BackendException, UnsupportedOperationException
from .model_repository import CollectionFactory, ModelRepository, PostLoadAction

logger = logging.getLogger(__name__)


class RedisModelRepository(ModelRepository[ModelT]):
    """
    Redis hash-per-model repository.

    Redis has no secondary index over hash fields, so ``find_by_field``
    supports the id field only. Connection and command errors raise
    ``BackendException``.
    """

    backend_name = "redis"

    def __init__(
        self,
        redis_client: redis.Redis,
        table_name: str,
        codec: ModelCodec[ModelT],
        expire_after_save: int = 0,
        expire_after_access: int = 0,
        scan_count: int = 500,
    ):
        """
        Initialize Redis repository.

        Args:
            redis_client: Synchronous Redis client
            table_name: Key prefix for this model type
            codec: Serializer/deserializer pair for the model type
            expire_after_save: TTL in seconds set on save (0 disables)
            expire_after_access: TTL in seconds refreshed on read (0 disables)
            scan_count: COUNT hint for SCAN during enumeration
        """
        self.redis = redis_client
        self.table_name = table_name
        self.codec = codec
        self.expire_after_save = max(expire_after_save, 0)
        self.expire_after_access = max(expire_after_access, 0)
        self.scan_count = scan_count

    def _build_key(self, model_id: str) -> str:
        """
        Build the hash key for a model.

        Returns:
            Key in format: {table}:{id}
        """
        return f"{self.table_name}:{model_id}"

    def _extract_id(self, key: Any) -> str:
        if isinstance(key, bytes):
            key = key.decode("utf-8")
        return key[len(self.table_name) + 1 :]

    def find(self, model_id: str) -> Optional[ModelT]:
        try:
            return self._read_model(self._build_key(model_id))
        except redis.RedisError as e:
            raise BackendException(self.backend_name, "find", str(e)) from e

    def find_by_field(self, field: str, value: Any, factory: CollectionFactory = list) -> Any:
        if field != ID_FIELD:
            raise UnsupportedOperationException(
                self.backend_name, "find_by_field", f"no index for field '{field}'"
            )
        model = self.find(value)
        return factory([] if model is None else [model])

    def find_ids(self, factory: CollectionFactory = list) -> Any:
        try:
            return factory(self._extract_id(key) for key in self._scan_keys())
        except redis.RedisError as e:
            raise BackendException(self.backend_name, "find_ids", str(e)) from e

    def find_all(
        self,
        post_load_action: Optional[PostLoadAction] = None,
        factory: CollectionFactory = list,
    ) -> Any:
        try:
            models = (self._read_model(key) for key in self._scan_keys())
            return self._run_post_load(
                (model for model in models if model is not None), post_load_action, factory
            )
        except redis.RedisError as e:
            raise BackendException(self.backend_name, "find_all", str(e)) from e

    def exists(self, model_id: str) -> bool:
        try:
            return self.redis.exists(self._build_key(model_id)) > 0
        except redis.RedisError as e:
            raise BackendException(self.backend_name, "exists", str(e)) from e

    def save(self, model: ModelT) -> ModelT:
        key = self._build_key(model.id)
        values = self.codec.encode(model, FlatWriter.create(model))
        try:
            # Fields that became null must not linger in the hash
            pipeline = self.redis.pipeline()
            pipeline.delete(key)
            pipeline.hset(key, mapping=values)
            if self.expire_after_save > 0:
                pipeline.expire(key, self.expire_after_save)
            pipeline.execute()
        except redis.RedisError as e:
            raise BackendException(self.backend_name, "save", str(e)) from e
        logger.debug(f"Saved to Redis: {key} (TTL: {self.expire_after_save}s)")
        return model

    def delete(self, model_id: str) -> bool:
        try:
            return self.redis.delete(self._build_key(model_id)) > 0
        except redis.RedisError as e:
            raise BackendException(self.backend_name, "delete", str(e)) from e

    def delete_all(self) -> None:
        try:
            keys = list(self._scan_keys())
            if keys:
                self.redis.delete(*keys)
        except redis.RedisError as e:
            raise BackendException(self.backend_name, "delete_all", str(e)) from e
        logger.info(f"Deleted {len(keys)} keys matching {self.table_name}:*")

    def _scan_keys(self) -> list:
        # SCAN may return a key more than once
        keys = self.redis.scan_iter(match=f"{self.table_name}:*", count=self.scan_count)
        return list(dict.fromkeys(keys))

    def _read_model(self, key: str) -> Optional[ModelT]:
        values = self.redis.hgetall(key)
        if not values:
            logger.debug(f"Redis MISS: {key}")
            return None
        if self.expire_after_access > 0:
            self.redis.expire(key, self.expire_after_access)
        return self.codec.decode(FlatReader.from_redis(values))
