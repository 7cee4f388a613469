"""
modelstore - backend-agnostic model persistence.

Uniform find/save/delete over uniquely identified models, a reflection-free
field codec, and a tiered fallback/main repository composite.
"""

from modelstore.codec.base import ModelCodec, ModelReader, ModelWriter
from modelstore.domain.entities import ID_FIELD, Model
from modelstore.repositories.async_repository import (
    AsyncFallbackModelRepository,
    AsyncModelRepository,
)
from modelstore.repositories.fallback_repository import FallbackModelRepository
from modelstore.repositories.model_repository import ModelRepository

__version__ = "1.0.0"

__all__ = [
    "ID_FIELD",
    "AsyncFallbackModelRepository",
    "AsyncModelRepository",
    "FallbackModelRepository",
    "Model",
    "ModelCodec",
    "ModelReader",
    "ModelRepository",
    "ModelWriter",
]
