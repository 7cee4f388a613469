"""
Database models for the SQL document store.

Every model type shares one table; rows are partitioned by ``collection``
and hold the encoded document as JSON.
"""

from typing import Any

from sqlalchemy import JSON, Column, DateTime, Index, String
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base: Any = declarative_base()


class ModelDocument(Base):
    """
    One stored model.

    Attributes:
        collection: Logical collection (one per model type)
        id: Model identifier, unique within its collection
        payload: Document produced by ``DocumentWriter``
        created_at: Timestamp of first save
        updated_at: Timestamp of last save
    """

    __tablename__ = "model_documents"

    collection = Column(String(100), primary_key=True)
    id = Column(String(255), primary_key=True)
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (Index("idx_model_documents_collection", "collection"),)

    def __repr__(self) -> str:
        return f"<ModelDocument(collection='{self.collection}', id='{self.id}')>"
