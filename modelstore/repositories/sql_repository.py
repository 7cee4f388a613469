"""
SQL document-store implementation of the model repository.

Persists each model as a JSON document row in ``model_documents`` through
SQLAlchemy, one logical collection per model type.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..codec.base import ModelCodec
from ..codec.document import DocumentReader, DocumentWriter
from ..domain.entities import ID_FIELD, ModelT
from ..domain.exceptions import BackendException
from ..models import ModelDocument
from .model_repository import CollectionFactory, ModelRepository, PostLoadAction

logger = logging.getLogger(__name__)


class SqlModelRepository(ModelRepository[ModelT]):
    """
    SQLAlchemy document repository.

    A new session is opened per operation, so one instance is safe to share
    across executor threads. Non-id field lookups compare the stored
    document field and scan the collection.
    """

    backend_name = "sql"

    def __init__(
        self,
        session_factory: "sessionmaker[Session]",
        collection: str,
        codec: ModelCodec[ModelT],
    ):
        """
        Initialize repository.

        Args:
            session_factory: SQLAlchemy session factory
            collection: Collection name for this model type
            codec: Serializer/deserializer pair for the model type
        """
        self.session_factory = session_factory
        self.collection = collection
        self.codec = codec

    def _decode(self, payload: dict) -> ModelT:
        return self.codec.decode(DocumentReader(payload))

    def find(self, model_id: str) -> Optional[ModelT]:
        try:
            with self.session_factory() as session:
                row = session.get(ModelDocument, (self.collection, model_id))
                if row is None:
                    return None
                payload = row.payload
        except SQLAlchemyError as e:
            logger.error(f"Error finding {self.collection}/{model_id}: {e}")
            raise BackendException(self.backend_name, "find", str(e)) from e
        return self._decode(payload)

    def find_by_field(self, field: str, value: Any, factory: CollectionFactory = list) -> Any:
        if field == ID_FIELD:
            model = self.find(value)
            return factory([] if model is None else [model])
        payloads = self._payloads("find_by_field")
        return factory(
            self._decode(payload) for payload in payloads if payload.get(field) == value
        )

    def find_ids(self, factory: CollectionFactory = list) -> Any:
        stmt = (
            select(ModelDocument.id)
            .where(ModelDocument.collection == self.collection)
            .order_by(ModelDocument.id)
        )
        try:
            with self.session_factory() as session:
                ids = session.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            raise BackendException(self.backend_name, "find_ids", str(e)) from e
        return factory(ids)

    def find_all(
        self,
        post_load_action: Optional[PostLoadAction] = None,
        factory: CollectionFactory = list,
    ) -> Any:
        payloads = self._payloads("find_all")
        return self._run_post_load(
            (self._decode(payload) for payload in payloads), post_load_action, factory
        )

    def exists(self, model_id: str) -> bool:
        stmt = (
            select(ModelDocument.id)
            .where(ModelDocument.collection == self.collection, ModelDocument.id == model_id)
            .limit(1)
        )
        try:
            with self.session_factory() as session:
                return session.execute(stmt).first() is not None
        except SQLAlchemyError as e:
            raise BackendException(self.backend_name, "exists", str(e)) from e

    def save(self, model: ModelT) -> ModelT:
        payload = self.codec.encode(model, DocumentWriter.create(model))
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        try:
            with self.session_factory() as session:
                row = session.get(ModelDocument, (self.collection, model.id))
                if row is None:
                    session.add(
                        ModelDocument(
                            collection=self.collection,
                            id=model.id,
                            payload=payload,
                            created_at=now,
                            updated_at=now,
                        )
                    )
                else:
                    row.payload = payload
                    row.updated_at = now
                session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error saving {self.collection}/{model.id}: {e}")
            raise BackendException(self.backend_name, "save", str(e)) from e
        logger.debug(f"Saved to SQL: {self.collection}/{model.id}")
        return model

    def delete(self, model_id: str) -> bool:
        stmt = delete(ModelDocument).where(
            ModelDocument.collection == self.collection, ModelDocument.id == model_id
        )
        try:
            with self.session_factory() as session:
                result = session.execute(stmt)
                session.commit()
        except SQLAlchemyError as e:
            raise BackendException(self.backend_name, "delete", str(e)) from e
        return result.rowcount > 0

    def delete_all(self) -> None:
        stmt = delete(ModelDocument).where(ModelDocument.collection == self.collection)
        try:
            with self.session_factory() as session:
                result = session.execute(stmt)
                session.commit()
        except SQLAlchemyError as e:
            raise BackendException(self.backend_name, "delete_all", str(e)) from e
        logger.info(f"Deleted {result.rowcount} documents from {self.collection}")

    def _payloads(self, operation: str) -> list:
        stmt = (
            select(ModelDocument.payload)
            .where(ModelDocument.collection == self.collection)
            .order_by(ModelDocument.id)
        )
        try:
            with self.session_factory() as session:
                return list(session.execute(stmt).scalars().all())
        except SQLAlchemyError as e:
            raise BackendException(self.backend_name, operation, str(e)) from e
