"""
Model identity contract.

The storage layer never constructs or destroys models; it only needs a
stable, unique, immutable string identifier from each of them.
"""

from typing import Protocol, TypeVar, runtime_checkable

# Field name under which every codec-backed repository stores the model id
ID_FIELD = "id"


@runtime_checkable
class Model(Protocol):
    """
    Any entity exposing a unique, immutable string ``id``.

    Dataclasses, pydantic models and plain classes all qualify as long as
    they carry an ``id`` attribute.
    """

    @property
    def id(self) -> str: ...


ModelT = TypeVar("ModelT", bound=Model)
