"""
Shared fixtures for modelstore tests.

Provides sample model types with their serializer/deserializer pairs and an
in-process stand-in for the subset of the Redis client API the Redis
repository uses.
"""

import fnmatch
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID

import pytest

from modelstore.codec.base import ModelCodec
from modelstore.database import create_db_engine, create_session_factory, init_db
from modelstore.domain.entities import ID_FIELD


@dataclass
class Address:
    street: str
    city: str


@dataclass
class Role:
    name: str
    level: int


@dataclass
class User:
    id: str
    name: Optional[str] = None
    age: int = 0
    score: float = 0.0
    active: bool = False
    email: Optional[str] = None
    address: Optional[Address] = None
    tags: Optional[List[str]] = None
    external_id: Optional[UUID] = None
    session_id: Optional[UUID] = None
    device_ids: Optional[List[UUID]] = None
    created_at: Optional[datetime] = None
    roles: Optional[Dict[str, Role]] = None
    contacts: Optional[List[Address]] = field(default=None)


def serialize_address(address, writer):
    return writer.write_string("street", address.street).write_string("city", address.city)


def deserialize_address(reader):
    return Address(street=reader.read_string("street"), city=reader.read_string("city"))


def serialize_role(role, writer):
    return writer.write_string("name", role.name).write_number("level", role.level)


def deserialize_role(reader):
    return Role(name=reader.read_string("name"), level=reader.read_int("level"))


def serialize_user(user, writer):
    return (
        writer.write_string("name", user.name)
        .write_number("age", user.age)
        .write_number("score", user.score)
        .write_boolean("active", user.active)
        .write_string("email", user.email)
        .write_object("address", user.address, serialize_address)
        .write_raw_collection("tags", user.tags)
        .write_uuid("external_id", user.external_id)
        .write_detailed_uuid("session_id", user.session_id)
        .write_detailed_uuids("device_ids", user.device_ids)
        .write_date("created_at", user.created_at)
        .write_map("roles", user.roles, serialize_role)
        .write_collection("contacts", user.contacts, serialize_address)
    )


def deserialize_user(reader):
    return User(
        id=reader.read_string(ID_FIELD),
        name=reader.read_string("name"),
        age=reader.read_int("age"),
        score=reader.read_float("score"),
        active=reader.read_boolean("active"),
        email=reader.read_string("email"),
        address=reader.read_object("address", deserialize_address),
        tags=reader.read_raw_collection("tags"),
        external_id=reader.read_uuid("external_id"),
        session_id=reader.read_detailed_uuid("session_id"),
        device_ids=reader.read_detailed_uuids("device_ids"),
        created_at=reader.read_date("created_at"),
        roles=reader.read_map("roles", lambda role: role.name, deserialize_role),
        contacts=reader.read_collection("contacts", deserialize_address),
    )


USER_CODEC = ModelCodec(serialize_user, deserialize_user)


class FakeRedis:
    """
    Dict-backed stand-in for the ``redis.Redis`` calls used by the repository.

    Replies mimic a client created without ``decode_responses``: keys and
    hash contents come back as bytes.
    """

    def __init__(self):
        self.hashes: Dict[str, Dict[str, str]] = {}
        self.ttls: Dict[str, int] = {}
        self.commands: List[str] = []

    def hgetall(self, key):
        self.commands.append("hgetall")
        if isinstance(key, bytes):
            key = key.decode("utf-8")
        values = self.hashes.get(key, {})
        return {k.encode("utf-8"): v.encode("utf-8") for k, v in values.items()}

    def hset(self, key, mapping):
        self.commands.append("hset")
        self.hashes.setdefault(key, {}).update(mapping)
        return len(mapping)

    def delete(self, *keys):
        self.commands.append("delete")
        removed = 0
        for key in keys:
            if isinstance(key, bytes):
                key = key.decode("utf-8")
            if self.hashes.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def exists(self, key):
        self.commands.append("exists")
        return 1 if key in self.hashes else 0

    def expire(self, key, seconds):
        self.commands.append("expire")
        if isinstance(key, bytes):
            key = key.decode("utf-8")
        self.ttls[key] = seconds
        return key in self.hashes

    def scan_iter(self, match=None, count=None):
        self.commands.append("scan")
        for key in sorted(self.hashes):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key.encode("utf-8")

    def pipeline(self):
        return FakePipeline(self)


class FakePipeline:
    """Queues commands and runs them against the owning FakeRedis on execute."""

    def __init__(self, client):
        self.client = client
        self.queued = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self.queued.append((name, args, kwargs))
            return self

        return queue

    def execute(self):
        results = [
            getattr(self.client, name)(*args, **kwargs) for name, args, kwargs in self.queued
        ]
        self.queued = []
        return results


@pytest.fixture
def user_codec():
    """Codec for the sample User model."""
    return USER_CODEC


@pytest.fixture
def sample_user():
    """Fully populated user."""
    return User(
        id="u1",
        name="Alice",
        age=34,
        score=97.5,
        active=True,
        email="alice@example.com",
        address=Address(street="1 Main St", city="Springfield"),
        tags=["admin", "beta"],
        external_id=UUID("123e4567-e89b-12d3-a456-426614174000"),
        session_id=UUID("f47ac10b-58cc-4372-a567-0e02b2c3d479"),
        device_ids=[
            UUID("00000000-0000-0000-0000-000000000001"),
            UUID("ffffffff-ffff-ffff-ffff-ffffffffffff"),
        ],
        created_at=datetime(2024, 1, 2, 3, 4, 5, 123000, tzinfo=timezone.utc),
        roles={"owner": Role(name="owner", level=10), "viewer": Role(name="viewer", level=1)},
        contacts=[Address(street="2 Side St", city="Shelbyville")],
    )


@pytest.fixture
def minimal_user():
    """User with only an id; every optional field is null."""
    return User(id="u2")


@pytest.fixture
def fake_redis():
    """Fresh in-process Redis stand-in."""
    return FakeRedis()


@pytest.fixture(scope="function")
def session_factory():
    """Session factory over a fresh in-memory SQLite database."""
    engine = create_db_engine("sqlite:///:memory:")
    init_db(engine, drop_existing=True)
    yield create_session_factory(engine)
    engine.dispose()
