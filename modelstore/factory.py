"""
Settings-driven construction of repositories.

Backends are selected by name:

- ``memory``: dict-backed, process local
- ``cache``: cachetools LRU/TTL cache
- ``file``: one JSON file per model under ``FILE_STORAGE_PATH/<name>``
- ``redis``: one hash per model at ``<name>:<id>`` on ``REDIS_URL``
- ``sql``: JSON documents in collection ``<name>`` on ``DATABASE_URL``
"""

import logging
from pathlib import Path
from typing import Any, Optional

import redis
from sqlalchemy.orm import Session, sessionmaker

from .cache.cache_repository import CacheModelRepository
from .codec.base import ModelCodec
from .config import Settings, get_settings
from .database import create_db_engine, create_session_factory, init_db
from .domain.exceptions import ConfigurationException
from .logging_config import setup_logging
from .repositories.async_repository import AsyncFallbackModelRepository, AsyncModelRepository
from .repositories.fallback_repository import FallbackModelRepository
from .repositories.file_repository import FileModelRepository
from .repositories.memory_repository import MemoryModelRepository
from .repositories.model_repository import ModelRepository
from .repositories.redis_repository import RedisModelRepository
from .repositories.sql_repository import SqlModelRepository

logger = logging.getLogger(__name__)

BACKENDS = ("memory", "cache", "file", "redis", "sql")


def create_redis_client(settings: Settings) -> redis.Redis:
    try:
        return redis.Redis.from_url(settings.REDIS_URL)
    except ValueError as e:
        raise ConfigurationException("REDIS_URL", str(e)) from e


def create_sql_session_factory(settings: Settings) -> "sessionmaker[Session]":
    """Create an engine for ``DATABASE_URL``, ensure the table and return a session factory."""
    engine = create_db_engine(settings.DATABASE_URL)
    init_db(engine)
    return create_session_factory(engine)


def create_repository(
    backend: str,
    name: str,
    codec: Optional[ModelCodec] = None,
    settings: Optional[Settings] = None,
    redis_client: Optional[redis.Redis] = None,
    session_factory: Optional["sessionmaker[Session]"] = None,
) -> ModelRepository:
    """
    Build a repository for one model type.

    Args:
        backend: Backend name, one of ``BACKENDS``
        name: Model type name; used as folder, key prefix or collection
        codec: Serializer/deserializer pair, required by file, redis and sql
        settings: Settings to use (default: ``get_settings()``)
        redis_client: Existing Redis client to share between repositories
        session_factory: Existing SQLAlchemy session factory to share

    Returns:
        Configured repository

    Raises:
        ConfigurationException: If the backend is unknown or lacks a codec
    """
    settings = settings or get_settings()
    backend = backend.lower()

    if backend not in BACKENDS:
        raise ConfigurationException(
            "backend", f"unknown backend '{backend}', expected one of {', '.join(BACKENDS)}"
        )

    if backend == "memory":
        return MemoryModelRepository()
    if backend == "cache":
        return CacheModelRepository(
            max_size=settings.CACHE_MAX_SIZE, ttl_seconds=settings.CACHE_TTL_SECONDS
        )

    if codec is None:
        raise ConfigurationException("codec", f"backend '{backend}' needs a model codec")

    if backend == "file":
        return FileModelRepository(
            Path(settings.FILE_STORAGE_PATH) / name,
            codec,
            pretty_print=settings.FILE_PRETTY_PRINT,
        )
    if backend == "redis":
        return RedisModelRepository(
            redis_client or create_redis_client(settings),
            name,
            codec,
            expire_after_save=settings.REDIS_EXPIRE_AFTER_SAVE,
            expire_after_access=settings.REDIS_EXPIRE_AFTER_ACCESS,
        )
    return SqlModelRepository(
        session_factory or create_sql_session_factory(settings), name, codec
    )


def create_fallback_repository(
    fallback_backend: str,
    main_backend: str,
    name: str,
    codec: Optional[ModelCodec] = None,
    settings: Optional[Settings] = None,
    **kwargs: Any,
) -> FallbackModelRepository:
    """Build a tiered composite from two backend names."""
    fallback = create_repository(fallback_backend, name, codec, settings, **kwargs)
    main = create_repository(main_backend, name, codec, settings, **kwargs)
    logger.info(f"Created tiered repository '{name}': {fallback_backend} -> {main_backend}")
    return FallbackModelRepository(fallback, main)


def wrap_async(
    repository: ModelRepository, settings: Optional[Settings] = None
) -> AsyncModelRepository:
    """
    Wrap a repository in a Future-returning facade.

    A ``FallbackModelRepository`` gets the tier-aware wrapper. The wrapper
    owns a pool of ``EXECUTOR_MAX_WORKERS`` threads.
    """
    settings = settings or get_settings()
    if isinstance(repository, FallbackModelRepository):
        return AsyncFallbackModelRepository(
            repository, max_workers=settings.EXECUTOR_MAX_WORKERS
        )
    return AsyncModelRepository(repository, max_workers=settings.EXECUTOR_MAX_WORKERS)


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure logging from ``LOG_LEVEL`` and ``LOG_JSON``."""
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)
