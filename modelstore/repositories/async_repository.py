"""
Executor-backed asynchronous repository wrappers.

Every operation of the wrapped repository is submitted to a
``concurrent.futures`` executor and returns a ``Future`` for the
synchronous result. Wrappers add no locking or ordering of their own:
with a single-worker executor, submissions run in submission order;
with more workers, ordering between operations is not guaranteed.
"""

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Generic, Optional

from ..domain.entities import ModelT
from .fallback_repository import FallbackModelRepository
from .model_repository import CollectionFactory, ModelRepository, PostLoadAction

logger = logging.getLogger(__name__)


class AsyncModelRepository(Generic[ModelT]):
    """
    Future-returning facade over a synchronous repository.

    When no executor is given, a private pool of ``max_workers`` threads
    (one by default, which keeps submissions in order) is created and
    shut down by ``shutdown()`` or on leaving a ``with`` block. A caller
    supplied executor is never shut down here.
    """

    def __init__(
        self,
        repository: ModelRepository[ModelT],
        executor: Optional[Executor] = None,
        max_workers: int = 1,
    ):
        self.repository = repository
        self._owns_executor = executor is None
        self.executor: Executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=f"modelstore-{repository.backend_name}"
        )

    def _submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        return self.executor.submit(fn, *args)

    def find(self, model_id: str) -> "Future[Optional[ModelT]]":
        return self._submit(self.repository.find, model_id)

    def find_by_field(self, field: str, value: Any, factory: CollectionFactory = list) -> Future:
        return self._submit(self.repository.find_by_field, field, value, factory)

    def find_ids(self, factory: CollectionFactory = list) -> Future:
        return self._submit(self.repository.find_ids, factory)

    def find_all(
        self,
        post_load_action: Optional[PostLoadAction] = None,
        factory: CollectionFactory = list,
    ) -> Future:
        return self._submit(self.repository.find_all, post_load_action, factory)

    def exists(self, model_id: str) -> "Future[bool]":
        return self._submit(self.repository.exists, model_id)

    def save(self, model: ModelT) -> "Future[ModelT]":
        return self._submit(self.repository.save, model)

    def delete(self, model_id: str) -> "Future[bool]":
        return self._submit(self.repository.delete, model_id)

    def delete_all(self) -> "Future[None]":
        return self._submit(self.repository.delete_all)

    def delete_and_retrieve(self, model_id: str) -> "Future[Optional[ModelT]]":
        return self._submit(self.repository.delete_and_retrieve, model_id)

    def for_each(self, action: Callable[[ModelT], None]) -> "Future[None]":
        return self._submit(self.repository.for_each, action)

    def for_each_id(self, action: Callable[[str], None]) -> "Future[None]":
        return self._submit(self.repository.for_each_id, action)

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the executor if this wrapper created it."""
        if self._owns_executor:
            logger.debug(f"Shutting down executor for {self.repository.backend_name}")
            self.executor.shutdown(wait=wait)

    def __enter__(self) -> "AsyncModelRepository[ModelT]":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()


class AsyncFallbackModelRepository(AsyncModelRepository[ModelT]):
    """Future-returning facade over a ``FallbackModelRepository``."""

    repository: FallbackModelRepository[ModelT]

    def __init__(
        self,
        repository: FallbackModelRepository[ModelT],
        executor: Optional[Executor] = None,
        max_workers: int = 1,
    ):
        super().__init__(repository, executor, max_workers)

    @classmethod
    def of(
        cls,
        fallback: ModelRepository[ModelT],
        main: ModelRepository[ModelT],
        executor: Optional[Executor] = None,
    ) -> "AsyncFallbackModelRepository[ModelT]":
        return cls(FallbackModelRepository(fallback, main), executor)

    def find_and_promote(self, model_id: str) -> "Future[Optional[ModelT]]":
        return self._submit(self.repository.find_and_promote, model_id)

    def find_in_fallback(self, model_id: str) -> "Future[Optional[ModelT]]":
        return self._submit(self.repository.find_in_fallback, model_id)

    def find_in_either(self, model_id: str) -> "Future[Optional[ModelT]]":
        return self._submit(self.repository.find_in_either, model_id)

    def find_in_either_and_promote(self, model_id: str) -> "Future[Optional[ModelT]]":
        return self._submit(self.repository.find_in_either_and_promote, model_id)

    get_or_find_and_cache = find_in_either_and_promote

    def find_ids_in_fallback(self, factory: CollectionFactory = list) -> Future:
        return self._submit(self.repository.find_ids_in_fallback, factory)

    def find_all_in_fallback(
        self,
        post_load_action: Optional[PostLoadAction] = None,
        factory: CollectionFactory = list,
    ) -> Future:
        return self._submit(self.repository.find_all_in_fallback, post_load_action, factory)

    def exists_in_fallback(self, model_id: str) -> "Future[bool]":
        return self._submit(self.repository.exists_in_fallback, model_id)

    def exists_in_either(self, model_id: str) -> "Future[bool]":
        return self._submit(self.repository.exists_in_either, model_id)

    def exists_in_both(self, model_id: str) -> "Future[bool]":
        return self._submit(self.repository.exists_in_both, model_id)

    def save_in_fallback(self, model: ModelT) -> "Future[ModelT]":
        return self._submit(self.repository.save_in_fallback, model)

    def save_in_both(self, model: ModelT) -> "Future[ModelT]":
        return self._submit(self.repository.save_in_both, model)

    def delete_in_fallback(self, model_id: str) -> "Future[bool]":
        return self._submit(self.repository.delete_in_fallback, model_id)

    def delete_in_both(self, model_id: str) -> "Future[bool]":
        return self._submit(self.repository.delete_in_both, model_id)

    def delete_and_retrieve_in_fallback(self, model_id: str) -> "Future[Optional[ModelT]]":
        return self._submit(self.repository.delete_and_retrieve_in_fallback, model_id)

    def delete_all_in_fallback(self) -> "Future[None]":
        return self._submit(self.repository.delete_all_in_fallback)

    def for_each_in_fallback(self, action: Callable[[ModelT], None]) -> "Future[None]":
        return self._submit(self.repository.for_each_in_fallback, action)

    def for_each_id_in_fallback(self, action: Callable[[str], None]) -> "Future[None]":
        return self._submit(self.repository.for_each_id_in_fallback, action)

    def promote(self, model_id: str) -> "Future[Optional[ModelT]]":
        return self._submit(self.repository.promote, model_id)

    def promote_all(
        self, pre_upload_hook: Optional[Callable[[ModelT], None]] = None
    ) -> "Future[None]":
        return self._submit(self.repository.promote_all, pre_upload_hook)

    def save_all(self, pre_save_hook: Optional[Callable[[ModelT], None]] = None) -> "Future[None]":
        return self._submit(self.repository.save_all, pre_save_hook)

    def load_all(
        self,
        post_load_hook: Optional[PostLoadAction] = None,
        factory: CollectionFactory = list,
    ) -> Future:
        return self._submit(self.repository.load_all, post_load_hook, factory)
