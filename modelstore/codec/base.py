"""
Field-level codec protocol.

A ``ModelWriter`` builds one opaque representation value (a document tree,
a flat string hash, ...) by appending named, typed fields; a ``ModelReader``
extracts the same fields back out of one representation value. Neither ever
inspects the model type: each model supplies one serializer and one
deserializer function that drive the writer/reader, so one writer/reader
pair per representation serves every model type.

Serializer shape::

    def serialize_user(user: User, writer: ModelWriter) -> ModelWriter:
        return writer.write_string("name", user.name).write_number("age", user.age)

Deserializer shape::

    def deserialize_user(reader: ModelReader) -> User:
        return User(id=reader.read_string(ID_FIELD), name=reader.read_string("name"))
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Generic, Iterable, Optional, TypeVar, Union
from uuid import UUID

from ..domain.exceptions import CodecException

R = TypeVar("R")
T = TypeVar("T")

Number = Union[int, float]

ModelSerializer = Callable[[Any, "ModelWriter"], Any]
ModelDeserializer = Callable[["ModelReader"], Any]

_UINT64_MASK = (1 << 64) - 1
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)
_INT64_SIGN = 1 << 63


def _to_signed64(value: int) -> int:
    return value - (1 << 64) if value >= _INT64_SIGN else value


def uuid_to_halves(value: UUID) -> tuple[int, int]:
    """
    Split a UUID into its most and least significant 64-bit halves.

    Halves are signed two's-complement integers so they fit int64 columns.
    """
    return _to_signed64(value.int >> 64), _to_signed64(value.int & _UINT64_MASK)


def uuid_from_halves(most: int, least: int) -> UUID:
    """Rebuild a UUID from the halves produced by ``uuid_to_halves``."""
    return UUID(int=((most & _UINT64_MASK) << 64) | (least & _UINT64_MASK))


class ModelWriter(ABC, Generic[R]):
    """
    Incremental builder of one representation value.

    Every ``write_*`` operation returns the writer itself so calls chain.
    """

    @abstractmethod
    def child(self) -> "ModelWriter[R]":
        """Create an empty writer of the same kind for a nested value."""

    @abstractmethod
    def write_this(self, field: str, raw: Optional[R]) -> "ModelWriter[R]":
        """Embed an already-built representation under ``field``."""

    @abstractmethod
    def write_string(self, field: str, value: Optional[str]) -> "ModelWriter[R]":
        pass

    @abstractmethod
    def write_number(self, field: str, value: Optional[Number]) -> "ModelWriter[R]":
        pass

    @abstractmethod
    def write_boolean(self, field: str, value: Optional[bool]) -> "ModelWriter[R]":
        pass

    @abstractmethod
    def write_uuid(self, field: str, value: Optional[UUID]) -> "ModelWriter[R]":
        """Write a UUID in its canonical string form."""

    @abstractmethod
    def write_detailed_uuid(self, field: str, value: Optional[UUID]) -> "ModelWriter[R]":
        """Write a UUID as a nested ``{"most": ..., "least": ...}`` value."""

    @abstractmethod
    def write_detailed_uuids(
        self, field: str, values: Optional[Iterable[UUID]]
    ) -> "ModelWriter[R]":
        pass

    @abstractmethod
    def write_object(
        self, field: str, child: Optional[T], serializer: ModelSerializer
    ) -> "ModelWriter[R]":
        """Write ``child`` through ``serializer``; a None child writes null."""

    @abstractmethod
    def write_raw_collection(
        self, field: str, items: Optional[Iterable[Any]]
    ) -> "ModelWriter[R]":
        """Write a sequence of primitive values as they are."""

    @abstractmethod
    def write_collection(
        self, field: str, items: Optional[Iterable[T]], serializer: ModelSerializer
    ) -> "ModelWriter[R]":
        """
        Write every item through ``serializer`` as an ordered sequence.

        A None collection writes null, never an empty sequence.
        """

    @abstractmethod
    def current(self) -> R:
        """Return the representation under construction."""

    @abstractmethod
    def end(self) -> R:
        """Finalize and return the representation."""

    def write_date(self, field: str, value: Optional[datetime]) -> "ModelWriter[R]":
        """Write a datetime as epoch milliseconds (naive values are taken as UTC)."""
        if value is None:
            return self.write_number(field, None)
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return self.write_number(field, (value - _EPOCH) // _MILLISECOND)

    def write_map(
        self, field: str, mapping: Optional[Mapping[Any, T]], serializer: ModelSerializer
    ) -> "ModelWriter[R]":
        """
        Write the values of ``mapping`` as a collection.

        Keys are NOT written. ``ModelReader.read_map`` rebuilds them with a
        key extractor applied to each decoded value, so keys that cannot be
        recovered from the value itself are lost.
        """
        if mapping is None:
            return self.write_collection(field, None, serializer)
        return self.write_collection(field, mapping.values(), serializer)

    def serialize(self, model: T, serializer: ModelSerializer) -> R:
        """Run ``serializer`` against a fresh child writer and return its result."""
        writer = self.child()
        serializer(model, writer)
        return writer.end()


class AbstractObjectModelWriter(ModelWriter[R]):
    """
    Writer for representations that can hold arbitrary values per field.

    Every typed write funnels into ``write_value``; null values are passed
    through as ``None`` and the concrete writer decides whether to store or
    omit them.
    """

    @abstractmethod
    def write_value(self, field: str, value: Any) -> "AbstractObjectModelWriter[R]":
        pass

    def write_this(self, field: str, raw: Optional[R]) -> "AbstractObjectModelWriter[R]":
        return self.write_value(field, raw)

    def write_string(self, field: str, value: Optional[str]) -> "AbstractObjectModelWriter[R]":
        return self.write_value(field, value)

    def write_number(
        self, field: str, value: Optional[Number]
    ) -> "AbstractObjectModelWriter[R]":
        return self.write_value(field, value)

    def write_boolean(
        self, field: str, value: Optional[bool]
    ) -> "AbstractObjectModelWriter[R]":
        return self.write_value(field, value)

    def write_uuid(self, field: str, value: Optional[UUID]) -> "AbstractObjectModelWriter[R]":
        if value is None:
            return self.write_value(field, None)
        return self.write_value(field, str(value))

    def write_detailed_uuid(
        self, field: str, value: Optional[UUID]
    ) -> "AbstractObjectModelWriter[R]":
        if value is None:
            return self.write_value(field, None)
        return self.write_value(field, self.detailed_uuid(value))

    def write_detailed_uuids(
        self, field: str, values: Optional[Iterable[UUID]]
    ) -> "AbstractObjectModelWriter[R]":
        if values is None:
            return self.write_value(field, None)
        return self.write_value(
            field, [self.detailed_uuid(value) for value in values if value is not None]
        )

    def detailed_uuid(self, value: UUID) -> R:
        most, least = uuid_to_halves(value)
        return self.child().write_number("most", most).write_number("least", least).end()

    def write_object(
        self, field: str, child: Optional[T], serializer: ModelSerializer
    ) -> "AbstractObjectModelWriter[R]":
        if child is None:
            return self.write_value(field, None)
        return self.write_value(field, self.serialize(child, serializer))

    def write_raw_collection(
        self, field: str, items: Optional[Iterable[Any]]
    ) -> "AbstractObjectModelWriter[R]":
        if items is None:
            return self.write_value(field, None)
        return self.write_value(field, [item for item in items if item is not None])

    def write_collection(
        self, field: str, items: Optional[Iterable[T]], serializer: ModelSerializer
    ) -> "AbstractObjectModelWriter[R]":
        if items is None:
            return self.write_value(field, None)
        return self.write_value(field, [self.serialize(item, serializer) for item in items])


class ModelReader(ABC, Generic[R]):
    """
    Typed field access over one representation value.

    Reads are total over missing fields: strings, objects and collections
    come back as None, numbers as 0 and booleans as False. A stored zero and
    a missing number are therefore indistinguishable through ``read_int`` /
    ``read_float``; use ``read_number`` when the difference matters.
    """

    @abstractmethod
    def raw(self) -> R:
        """Return the representation this reader wraps."""

    @abstractmethod
    def child(self, raw: R) -> "ModelReader[R]":
        """Wrap a nested representation in a reader of the same kind."""

    @abstractmethod
    def read_this(self, field: str) -> Optional[R]:
        """Return the nested representation under ``field`` without decoding it."""

    @abstractmethod
    def read_string(self, field: str) -> Optional[str]:
        pass

    @abstractmethod
    def read_number(self, field: str) -> Optional[Number]:
        pass

    @abstractmethod
    def read_boolean(self, field: str) -> bool:
        pass

    @abstractmethod
    def read_detailed_uuid(self, field: str) -> Optional[UUID]:
        pass

    @abstractmethod
    def read_detailed_uuids(
        self, field: str, factory: Callable[[Iterable[UUID]], Any] = list
    ) -> Optional[Any]:
        pass

    @abstractmethod
    def read_object(self, field: str, deserializer: ModelDeserializer) -> Optional[Any]:
        pass

    @abstractmethod
    def read_raw_collection(
        self, field: str, factory: Callable[[Iterable[Any]], Any] = list
    ) -> Optional[Any]:
        pass

    @abstractmethod
    def read_collection(
        self,
        field: str,
        deserializer: ModelDeserializer,
        factory: Callable[[Iterable[Any]], Any] = list,
    ) -> Optional[Any]:
        pass

    @abstractmethod
    def read_map(
        self,
        field: str,
        key_extractor: Callable[[Any], Any],
        deserializer: ModelDeserializer,
    ) -> Optional[dict]:
        pass

    def read_int(self, field: str) -> int:
        value = self.read_number(field)
        if value is None:
            return 0
        return int(value)

    def read_float(self, field: str) -> float:
        value = self.read_number(field)
        if value is None:
            return 0.0
        return float(value)

    def read_uuid(self, field: str) -> Optional[UUID]:
        """
        Parse a canonical UUID string.

        Raises:
            ValueError: If the stored string is not a valid UUID
        """
        value = self.read_string(field)
        if value is None:
            return None
        return UUID(value)

    def read_date(self, field: str) -> Optional[datetime]:
        value = self.read_number(field)
        if value is None:
            return None
        return _EPOCH + timedelta(milliseconds=value)


class AbstractObjectModelReader(ModelReader[R]):
    """
    Reader for representations that expose one decoded value per field.

    Concrete readers only implement ``read_value``; an explicit stored None
    is handled exactly like an absent field.
    """

    @abstractmethod
    def read_value(self, field: str) -> Any:
        """Return the decoded value under ``field``, or None when absent."""

    def read_this(self, field: str) -> Optional[R]:
        value = self.read_value(field)
        if value is None:
            return None
        if not isinstance(value, Mapping):
            raise CodecException(field, "expected a nested object", value)
        return value

    def read_string(self, field: str) -> Optional[str]:
        value = self.read_value(field)
        if value is None:
            return None
        if not isinstance(value, str):
            raise CodecException(field, "expected a string", value)
        return value

    def read_number(self, field: str) -> Optional[Number]:
        value = self.read_value(field)
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise CodecException(field, "expected a number", value)
        return value

    def read_boolean(self, field: str) -> bool:
        value = self.read_value(field)
        if value is None:
            return False
        if not isinstance(value, bool):
            raise CodecException(field, "expected a boolean", value)
        return value

    def read_detailed_uuid(self, field: str) -> Optional[UUID]:
        return self._detailed_uuid(self.read_this(field))

    def read_detailed_uuids(
        self, field: str, factory: Callable[[Iterable[UUID]], Any] = list
    ) -> Optional[Any]:
        items = self._read_list(field)
        if items is None:
            return None
        uuids = (self._detailed_uuid(item) for item in items if isinstance(item, Mapping))
        return factory(uuid for uuid in uuids if uuid is not None)

    def read_object(self, field: str, deserializer: ModelDeserializer) -> Optional[Any]:
        raw = self.read_this(field)
        if raw is None:
            return None
        return deserializer(self.child(raw))

    def read_raw_collection(
        self, field: str, factory: Callable[[Iterable[Any]], Any] = list
    ) -> Optional[Any]:
        items = self._read_list(field)
        if items is None:
            return None
        return factory(items)

    def read_collection(
        self,
        field: str,
        deserializer: ModelDeserializer,
        factory: Callable[[Iterable[Any]], Any] = list,
    ) -> Optional[Any]:
        items = self._read_list(field)
        if items is None:
            return None
        return factory(deserializer(self.child(item)) for item in items)

    def read_map(
        self,
        field: str,
        key_extractor: Callable[[Any], Any],
        deserializer: ModelDeserializer,
    ) -> Optional[dict]:
        values = self.read_collection(field, deserializer)
        if values is None:
            return None
        return {key_extractor(value): value for value in values}

    def _read_list(self, field: str) -> Optional[list]:
        value = self.read_value(field)
        if value is None:
            return None
        if not isinstance(value, list):
            raise CodecException(field, "expected a collection", value)
        return value

    def _detailed_uuid(self, raw: Optional[R]) -> Optional[UUID]:
        if raw is None:
            return None
        reader = self.child(raw)
        most = reader.read_number("most")
        least = reader.read_number("least")
        if most is None or least is None:
            return None
        return uuid_from_halves(int(most), int(least))


@dataclass(frozen=True)
class ModelCodec(Generic[T]):
    """
    Serializer/deserializer pair for one model type.

    Repositories that persist a representation (files, Redis, SQL) take a
    codec; the same codec works with every writer/reader kind.
    """

    serializer: ModelSerializer
    deserializer: ModelDeserializer

    def encode(self, model: T, writer: ModelWriter[R]) -> R:
        self.serializer(model, writer)
        return writer.end()

    def decode(self, reader: ModelReader[R]) -> T:
        return self.deserializer(reader)
