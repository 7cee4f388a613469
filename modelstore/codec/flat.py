"""
Codec over a flat string hash.

The representation is a ``dict[str, str]``: every field value is stored as
its JSON text, and nested objects are JSON-encoded flat hashes themselves.
A hash cannot hold a null, so null fields are omitted. Used by the Redis
repository, where each model is one Redis hash.
"""

import json
from typing import Any, Dict, Optional

from ..domain.entities import ID_FIELD, Model
from ..domain.exceptions import CodecException
from .base import AbstractObjectModelReader, AbstractObjectModelWriter

FlatHash = Dict[str, str]


class FlatWriter(AbstractObjectModelWriter[FlatHash]):
    """Builds a flat hash of JSON-encoded field values."""

    def __init__(self, values: Optional[FlatHash] = None):
        self.values: FlatHash = values if values is not None else {}

    @classmethod
    def create(cls, model: Optional[Model] = None) -> "FlatWriter":
        writer = cls()
        if model is not None:
            writer.write_string(ID_FIELD, model.id)
        return writer

    def child(self) -> "FlatWriter":
        return FlatWriter()

    def write_value(self, field: str, value: Any) -> "FlatWriter":
        if value is None:
            self.values.pop(field, None)
            return self
        self.values[field] = json.dumps(value, separators=(",", ":"))
        return self

    def current(self) -> FlatHash:
        return self.values

    def end(self) -> FlatHash:
        return self.values


class FlatReader(AbstractObjectModelReader[FlatHash]):
    """Reads typed fields from a flat hash, decoding each value's JSON text."""

    def __init__(self, values: FlatHash):
        self.values = values

    @classmethod
    def from_redis(cls, values: Dict[Any, Any]) -> "FlatReader":
        """Build a reader from a raw ``HGETALL`` reply, decoding bytes keys/values."""
        return cls({_text(key): _text(value) for key, value in values.items()})

    def raw(self) -> FlatHash:
        return self.values

    def child(self, raw: FlatHash) -> "FlatReader":
        return FlatReader(raw)

    def read_value(self, field: str) -> Any:
        text = self.values.get(field)
        if text is None:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise CodecException(field, f"invalid JSON text ({e.msg})", text) from e


def _text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value
