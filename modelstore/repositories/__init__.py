"""
Repository layer - storage backends, the tiered composite and async wrappers.
"""

from modelstore.repositories.async_repository import (
    AsyncFallbackModelRepository,
    AsyncModelRepository,
)
from modelstore.repositories.fallback_repository import FallbackModelRepository
from modelstore.repositories.file_repository import FileModelRepository
from modelstore.repositories.memory_repository import MemoryModelRepository
from modelstore.repositories.model_repository import ModelRepository
from modelstore.repositories.redis_repository import RedisModelRepository
from modelstore.repositories.sql_repository import SqlModelRepository

__all__ = [
    "AsyncFallbackModelRepository",
    "AsyncModelRepository",
    "FallbackModelRepository",
    "FileModelRepository",
    "MemoryModelRepository",
    "ModelRepository",
    "RedisModelRepository",
    "SqlModelRepository",
]
