"""
Codec layer - reflection-free field encoding for any representation type.
"""

from modelstore.codec.base import (
    AbstractObjectModelReader,
    AbstractObjectModelWriter,
    ModelCodec,
    ModelDeserializer,
    ModelReader,
    ModelSerializer,
    ModelWriter,
)
from modelstore.codec.document import DocumentReader, DocumentWriter
from modelstore.codec.flat import FlatReader, FlatWriter

__all__ = [
    "AbstractObjectModelReader",
    "AbstractObjectModelWriter",
    "DocumentReader",
    "DocumentWriter",
    "FlatReader",
    "FlatWriter",
    "ModelCodec",
    "ModelDeserializer",
    "ModelReader",
    "ModelSerializer",
    "ModelWriter",
]
