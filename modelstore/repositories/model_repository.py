"""
Model repository interface (Abstract Base Class).

Defines the minimal synchronous contract every storage backend implements,
independent of the underlying medium.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Iterable, Iterator, Optional, TYPE_CHECKING

from ..domain.entities import ModelT

if TYPE_CHECKING:
    from .fallback_repository import FallbackModelRepository

CollectionFactory = Callable[[Iterable[Any]], Any]
PostLoadAction = Callable[[Any], None]


class ModelRepository(ABC, Generic[ModelT]):
    """
    Abstract repository over models keyed by their id.

    Absence is represented by None (single lookups) or an empty collection
    (enumerations), never by an exception. Backend failures propagate to the
    caller and are not retried here.
    """

    backend_name = "repository"

    @abstractmethod
    def find(self, model_id: str) -> Optional[ModelT]:
        """
        Find a model by id.

        Args:
            model_id: Model identifier

        Returns:
            The model if stored, None otherwise
        """
        pass

    @abstractmethod
    def find_by_field(
        self, field: str, value: Any, factory: CollectionFactory = list
    ) -> Any:
        """
        Find every model whose ``field`` equals ``value``.

        Args:
            field: Field name to match
            value: Value to compare with
            factory: Collection constructor for the result

        Returns:
            Collection of matching models (empty when none match)

        Raises:
            UnsupportedOperationException: If the backend cannot look up
                arbitrary fields
        """
        pass

    @abstractmethod
    def find_ids(self, factory: CollectionFactory = list) -> Any:
        """
        Enumerate stored ids.

        Args:
            factory: Collection constructor for the result

        Returns:
            Collection of ids
        """
        pass

    @abstractmethod
    def find_all(
        self,
        post_load_action: Optional[PostLoadAction] = None,
        factory: CollectionFactory = list,
    ) -> Any:
        """
        Load every stored model.

        ``post_load_action`` is called once per model before that model is
        added to the result.

        Args:
            post_load_action: Optional per-model hook
            factory: Collection constructor for the result

        Returns:
            Collection of models
        """
        pass

    @abstractmethod
    def exists(self, model_id: str) -> bool:
        pass

    @abstractmethod
    def save(self, model: ModelT) -> ModelT:
        """
        Insert or replace a model by its id.

        Returns:
            The saved model, for chaining
        """
        pass

    @abstractmethod
    def delete(self, model_id: str) -> bool:
        """
        Delete a model by id.

        Returns:
            True if an entry existed and was removed
        """
        pass

    @abstractmethod
    def delete_all(self) -> None:
        pass

    def delete_and_retrieve(self, model_id: str) -> Optional[ModelT]:
        """Delete a model and return what was stored, or None."""
        model = self.find(model_id)
        if model is not None:
            self.delete(model_id)
        return model

    def for_each(self, action: Callable[[ModelT], None]) -> None:
        for model in self:
            action(model)

    def for_each_id(self, action: Callable[[str], None]) -> None:
        for model_id in self.iter_ids():
            action(model_id)

    def iter_ids(self) -> Iterator[str]:
        return iter(self.find_ids())

    def __iter__(self) -> Iterator[ModelT]:
        return iter(self.find_all())

    def with_fallback(
        self, fallback: "ModelRepository[ModelT]"
    ) -> "FallbackModelRepository[ModelT]":
        """Compose this repository as the main tier behind ``fallback``."""
        from .fallback_repository import FallbackModelRepository

        return FallbackModelRepository(fallback, self)

    @staticmethod
    def _run_post_load(
        models: Iterable[ModelT],
        post_load_action: Optional[PostLoadAction],
        factory: CollectionFactory,
    ) -> Any:
        """Apply the hook to each model, then add it to the result collection."""

        def loaded() -> Iterator[ModelT]:
            for model in models:
                if post_load_action is not None:
                    post_load_action(model)
                yield model

        return factory(loaded())
