"""
Tests for settings and settings-driven repository construction.
"""

from unittest.mock import MagicMock, patch

import pytest

from modelstore.cache.cache_repository import CacheModelRepository
from modelstore.config import Settings, get_settings
from modelstore.domain.exceptions import ConfigurationException
from modelstore.factory import (
    configure_logging,
    create_fallback_repository,
    create_repository,
    wrap_async,
)
from modelstore.repositories.async_repository import (
    AsyncFallbackModelRepository,
    AsyncModelRepository,
)
from modelstore.repositories.fallback_repository import FallbackModelRepository
from modelstore.repositories.file_repository import FileModelRepository
from modelstore.repositories.memory_repository import MemoryModelRepository
from modelstore.repositories.redis_repository import RedisModelRepository
from modelstore.repositories.sql_repository import SqlModelRepository


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at temporary storage."""
    return Settings(
        FILE_STORAGE_PATH=str(tmp_path),
        DATABASE_URL="sqlite:///:memory:",
        CACHE_MAX_SIZE=50,
        REDIS_EXPIRE_AFTER_SAVE=120,
    )


class TestSettings:
    """Test settings loading."""

    def test_defaults(self, monkeypatch):
        """Test default values."""
        monkeypatch.delenv("MODELSTORE_LOG_LEVEL", raising=False)

        settings = Settings(_env_file=None)

        assert settings.LOG_LEVEL == "INFO"
        assert settings.EXECUTOR_MAX_WORKERS == 1
        assert settings.CACHE_MAX_SIZE == 1000
        assert settings.REDIS_URL == "redis://localhost:6379/0"

    def test_env_prefix(self, monkeypatch):
        """Test MODELSTORE_-prefixed variables override defaults."""
        monkeypatch.setenv("MODELSTORE_CACHE_MAX_SIZE", "5")
        monkeypatch.setenv("MODELSTORE_FILE_PRETTY_PRINT", "true")

        settings = Settings(_env_file=None)

        assert settings.CACHE_MAX_SIZE == 5
        assert settings.FILE_PRETTY_PRINT is True

    def test_invalid_workers_rejected(self):
        """Test executor size must be positive."""
        with pytest.raises(ValueError):
            Settings(_env_file=None, EXECUTOR_MAX_WORKERS=0)

    def test_get_settings_cached(self):
        """Test get_settings returns one shared instance."""
        assert get_settings() is get_settings()


class TestCreateRepository:
    """Test building single backends."""

    def test_memory(self, settings):
        """Test the memory backend needs no codec."""
        repository = create_repository("memory", "users", settings=settings)

        assert isinstance(repository, MemoryModelRepository)

    def test_cache_uses_settings(self, settings):
        """Test the cache backend is sized from settings."""
        repository = create_repository("cache", "users", settings=settings)

        assert isinstance(repository, CacheModelRepository)
        assert repository.max_size == 50

    def test_file_folder_per_name(self, settings, user_codec, tmp_path):
        """Test the file backend stores under FILE_STORAGE_PATH/<name>."""
        repository = create_repository("file", "users", user_codec, settings)

        assert isinstance(repository, FileModelRepository)
        assert repository.folder == tmp_path / "users"

    def test_redis_with_client(self, settings, user_codec):
        """Test the redis backend uses a supplied client and expiry settings."""
        client = MagicMock()

        repository = create_repository(
            "redis", "users", user_codec, settings, redis_client=client
        )

        assert isinstance(repository, RedisModelRepository)
        assert repository.redis is client
        assert repository.expire_after_save == 120

    def test_sql_creates_schema(self, settings, user_codec, sample_user):
        """Test the sql backend is usable straight away."""
        repository = create_repository("sql", "users", user_codec, settings)

        assert isinstance(repository, SqlModelRepository)
        repository.save(sample_user)
        assert repository.find("u1") == sample_user

    def test_backend_name_case_insensitive(self, settings):
        """Test backend names ignore case."""
        repository = create_repository("MEMORY", "users", settings=settings)

        assert isinstance(repository, MemoryModelRepository)

    def test_unknown_backend(self, settings):
        """Test an unknown backend raises ConfigurationException."""
        with pytest.raises(ConfigurationException) as exc_info:
            create_repository("mongo", "users", settings=settings)

        assert "mongo" in str(exc_info.value)

    def test_codec_required(self, settings):
        """Test persistent backends require a codec."""
        with pytest.raises(ConfigurationException):
            create_repository("file", "users", settings=settings)


class TestComposition:
    """Test tiered and async construction."""

    def test_fallback_repository(self, settings, user_codec):
        """Test two backend names build a composite."""
        tiered = create_fallback_repository("cache", "file", "users", user_codec, settings)

        assert isinstance(tiered, FallbackModelRepository)
        assert isinstance(tiered.fallback, CacheModelRepository)
        assert isinstance(tiered.main, FileModelRepository)

    def test_wrap_async_plain(self, settings):
        """Test plain repositories get the plain async wrapper."""
        wrapper = wrap_async(MemoryModelRepository(), settings)

        assert type(wrapper) is AsyncModelRepository
        wrapper.shutdown()

    def test_wrap_async_tiered(self, settings):
        """Test composites get the tier-aware async wrapper."""
        tiered = FallbackModelRepository(MemoryModelRepository(), MemoryModelRepository())

        wrapper = wrap_async(tiered, settings)

        assert isinstance(wrapper, AsyncFallbackModelRepository)
        wrapper.shutdown()


class TestConfigureLogging:
    """Test settings-driven logging setup."""

    def test_uses_log_settings(self):
        """Test LOG_LEVEL and LOG_JSON reach setup_logging."""
        settings = Settings(_env_file=None, LOG_LEVEL="DEBUG", LOG_JSON=True)

        with patch("modelstore.factory.setup_logging") as mock_setup:
            configure_logging(settings)

        mock_setup.assert_called_once_with("DEBUG", True)
