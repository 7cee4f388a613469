"""
Tests for the Redis hash repository.
"""

import json
from unittest.mock import MagicMock

import pytest
import redis
from conftest import FakeRedis, User

from modelstore.domain.exceptions import BackendException, UnsupportedOperationException
from modelstore.repositories.redis_repository import RedisModelRepository


@pytest.fixture
def redis_repository(fake_redis, user_codec):
    """Create a Redis repository over the in-process client."""
    return RedisModelRepository(fake_redis, "users", user_codec)


class TestRedisLayout:
    """Test key and hash layout."""

    def test_hash_per_model(self, redis_repository, fake_redis, sample_user):
        """Test a model is one hash at {table}:{id} with JSON field values."""
        redis_repository.save(sample_user)

        stored = fake_redis.hashes["users:u1"]
        assert json.loads(stored["id"]) == "u1"
        assert json.loads(stored["age"]) == 34

    def test_null_fields_removed_on_overwrite(self, redis_repository, fake_redis):
        """Test a field that became null is not left in the hash."""
        redis_repository.save(User(id="a", email="a@example.com"))
        redis_repository.save(User(id="a"))

        assert "email" not in fake_redis.hashes["users:a"]

    def test_tables_are_isolated(self, fake_redis, user_codec):
        """Test repositories with different tables do not see each other."""
        users = RedisModelRepository(fake_redis, "users", user_codec)
        admins = RedisModelRepository(fake_redis, "admins", user_codec)
        users.save(User(id="a"))
        admins.save(User(id="b"))

        admins.delete_all()

        assert users.find_ids() == ["a"]
        assert admins.find_ids() == []


class TestRedisExpiry:
    """Test expire-after-save and expire-after-access."""

    def test_expire_after_save(self, fake_redis, user_codec):
        """Test a TTL is set when saving."""
        repository = RedisModelRepository(fake_redis, "users", user_codec, expire_after_save=60)

        repository.save(User(id="a"))

        assert fake_redis.ttls["users:a"] == 60

    def test_expire_after_access(self, fake_redis, user_codec):
        """Test the TTL is refreshed on read."""
        repository = RedisModelRepository(fake_redis, "users", user_codec, expire_after_access=30)
        repository.save(User(id="a"))
        assert "users:a" not in fake_redis.ttls

        repository.find("a")

        assert fake_redis.ttls["users:a"] == 30

    def test_no_expiry_by_default(self, redis_repository, fake_redis):
        """Test no TTL is set without configuration."""
        redis_repository.save(User(id="a"))
        redis_repository.find("a")

        assert "expire" not in fake_redis.commands


class TestRedisFieldLookup:
    """Test field lookups."""

    def test_non_id_field_unsupported(self, redis_repository):
        """Test lookups on other fields raise UnsupportedOperationException."""
        with pytest.raises(UnsupportedOperationException) as exc_info:
            redis_repository.find_by_field("name", "Alice")

        assert exc_info.value.details["backend"] == "redis"
        assert "name" in str(exc_info.value)


class TestRedisErrors:
    """Test error wrapping."""

    @pytest.mark.parametrize(
        "operation, args",
        [
            ("find", ("a",)),
            ("exists", ("a",)),
            ("delete", ("a",)),
            ("find_ids", ()),
            ("delete_all", ()),
        ],
    )
    def test_redis_errors_wrapped(self, user_codec, operation, args):
        """Test client errors surface as BackendException."""
        client = MagicMock()
        client.hgetall.side_effect = redis.ConnectionError("connection refused")
        client.exists.side_effect = redis.ConnectionError("connection refused")
        client.delete.side_effect = redis.ConnectionError("connection refused")
        client.scan_iter.side_effect = redis.ConnectionError("connection refused")
        repository = RedisModelRepository(client, "users", user_codec)

        with pytest.raises(BackendException) as exc_info:
            getattr(repository, operation)(*args)

        assert exc_info.value.details["operation"] == operation
        assert isinstance(exc_info.value.__cause__, redis.ConnectionError)

    def test_save_error_wrapped(self, user_codec):
        """Test pipeline failures on save surface as BackendException."""
        client = MagicMock()
        client.pipeline.return_value.execute.side_effect = redis.TimeoutError("timeout")
        repository = RedisModelRepository(client, "users", user_codec)

        with pytest.raises(BackendException):
            repository.save(User(id="a"))


class RepeatingScanRedis(FakeRedis):
    """Client whose SCAN returns every key twice, as Redis is allowed to."""

    def scan_iter(self, match=None, count=None):
        for key in list(super().scan_iter(match, count)):
            yield key
            yield key


class TestRedisEnumeration:
    """Test enumeration over SCAN."""

    def test_repeated_scan_keys_listed_once(self, user_codec):
        """Test keys returned twice by SCAN appear once in results."""
        repository = RedisModelRepository(RepeatingScanRedis(), "users", user_codec)
        repository.save(User(id="a"))
        repository.save(User(id="b"))

        assert sorted(repository.find_ids()) == ["a", "b"]
        assert sorted(user.id for user in repository.find_all()) == ["a", "b"]
