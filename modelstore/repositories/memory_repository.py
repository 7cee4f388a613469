"""
In-memory implementation of the model repository.

Holds model references in a dict guarded by a re-entrant lock, so one
instance can be shared by the worker threads of an async wrapper.
"""

import logging
import threading
from typing import Any, Dict, Optional

from ..domain.entities import ID_FIELD, ModelT
from .model_repository import CollectionFactory, ModelRepository, PostLoadAction

logger = logging.getLogger(__name__)


class MemoryModelRepository(ModelRepository[ModelT]):
    """
    Dict-backed repository, typically the fallback tier of a composite.

    Data is lost when the process exits.
    """

    backend_name = "memory"

    def __init__(self, storage: Optional[Dict[str, ModelT]] = None):
        """
        Initialize memory repository.

        Args:
            storage: Optional pre-populated dict to use as the backing map
        """
        self.storage: Dict[str, ModelT] = storage if storage is not None else {}
        self._lock = threading.RLock()

    def find(self, model_id: str) -> Optional[ModelT]:
        with self._lock:
            return self.storage.get(model_id)

    def find_by_field(self, field: str, value: Any, factory: CollectionFactory = list) -> Any:
        if field == ID_FIELD:
            model = self.find(value)
            return factory([] if model is None else [model])
        with self._lock:
            models = list(self.storage.values())
        return factory(model for model in models if getattr(model, field, None) == value)

    def find_ids(self, factory: CollectionFactory = list) -> Any:
        with self._lock:
            return factory(list(self.storage.keys()))

    def find_all(
        self,
        post_load_action: Optional[PostLoadAction] = None,
        factory: CollectionFactory = list,
    ) -> Any:
        with self._lock:
            models = list(self.storage.values())
        return self._run_post_load(models, post_load_action, factory)

    def exists(self, model_id: str) -> bool:
        with self._lock:
            return model_id in self.storage

    def save(self, model: ModelT) -> ModelT:
        with self._lock:
            self.storage[model.id] = model
        logger.debug(f"Saved to memory: {model.id}")
        return model

    def delete(self, model_id: str) -> bool:
        return self.delete_and_retrieve(model_id) is not None

    def delete_and_retrieve(self, model_id: str) -> Optional[ModelT]:
        with self._lock:
            return self.storage.pop(model_id, None)

    def delete_all(self) -> None:
        with self._lock:
            count = len(self.storage)
            self.storage.clear()
        logger.info(f"Cleared {count} models from memory")
