"""
Codec over a JSON-like document tree.

The representation is a plain ``dict`` whose values are strings, numbers,
booleans, None, nested dicts and lists. Null values are stored explicitly.
Used by the file and SQL repositories.
"""

from typing import Any, Dict, Optional

from ..domain.entities import ID_FIELD, Model
from .base import AbstractObjectModelReader, AbstractObjectModelWriter

Document = Dict[str, Any]


class DocumentWriter(AbstractObjectModelWriter[Document]):
    """Builds a document tree, storing None for null fields."""

    def __init__(self, document: Optional[Document] = None):
        self.document: Document = document if document is not None else {}

    @classmethod
    def create(cls, model: Optional[Model] = None) -> "DocumentWriter":
        """
        Start a new document.

        Args:
            model: When given, its id is written under ``ID_FIELD`` first

        Returns:
            A writer over an empty (or id-only) document
        """
        writer = cls()
        if model is not None:
            writer.write_string(ID_FIELD, model.id)
        return writer

    def child(self) -> "DocumentWriter":
        return DocumentWriter()

    def write_value(self, field: str, value: Any) -> "DocumentWriter":
        self.document[field] = value
        return self

    def current(self) -> Document:
        return self.document

    def end(self) -> Document:
        return self.document


class DocumentReader(AbstractObjectModelReader[Document]):
    """Reads typed fields from a document tree."""

    def __init__(self, document: Document):
        self.document = document

    def raw(self) -> Document:
        return self.document

    def child(self, raw: Document) -> "DocumentReader":
        return DocumentReader(raw)

    def read_value(self, field: str) -> Any:
        return self.document.get(field)
