"""
Tiered fallback/main repository.

Composes a fast, possibly volatile fallback repository (in-process map,
local cache, Redis) with a durable main repository (files, SQL, Redis).
The main tier is authoritative; the fallback may be empty, stale or
partially populated at any time, and callers synchronize the two
explicitly through the tier operations below.

Read/write map of every tier operation:

======================================  ==================  ============================
operation                               reads               writes
======================================  ==================  ============================
find                                    main                -
find_and_promote                        main                fallback (on hit)
find_in_fallback                        fallback            -
find_in_either                          fallback, main      -
find_in_either_and_promote              fallback, main      fallback (on main hit)
save                                    -                   main
save_in_fallback                        -                   fallback
save_in_both                            -                   fallback, then main
delete_in_fallback                      -                   fallback
delete_in_both                          -                   fallback, then main
promote_all                             fallback            main, then clear fallback
load_all                                main                fallback
======================================  ==================  ============================

The order inside each operation is fixed and determines what is left stale
after a partial failure. Nothing here retries, locks across tiers or
rolls back: an error from either tier propagates unchanged, and a dual
operation interrupted half way leaves the tiers out of step.
"""

import logging
from typing import Any, Callable, Generic, Optional

from ..domain.entities import ModelT
from ..metrics import (
    dual_write_partial_total,
    fallback_hits_total,
    fallback_misses_total,
    promotions_total,
)
from .model_repository import CollectionFactory, ModelRepository, PostLoadAction

logger = logging.getLogger(__name__)


class FallbackModelRepository(ModelRepository[ModelT], Generic[ModelT]):
    """
    Repository that holds a fallback tier and a main tier.

    Plain repository operations act on the main tier only, so the composite
    can stand wherever a ``ModelRepository`` is expected.
    """

    backend_name = "fallback"

    def __init__(
        self,
        fallback: ModelRepository[ModelT],
        main: ModelRepository[ModelT],
    ):
        """
        Initialize the composite.

        Args:
            fallback: Fast, non-authoritative tier
            main: Durable, authoritative tier
        """
        self.fallback = fallback
        self.main = main

    # ----------------------------- main tier -----------------------------
    def find(self, model_id: str) -> Optional[ModelT]:
        return self.main.find(model_id)

    def find_by_field(self, field: str, value: Any, factory: CollectionFactory = list) -> Any:
        return self.main.find_by_field(field, value, factory)

    def find_ids(self, factory: CollectionFactory = list) -> Any:
        return self.main.find_ids(factory)

    def find_all(
        self,
        post_load_action: Optional[PostLoadAction] = None,
        factory: CollectionFactory = list,
    ) -> Any:
        return self.main.find_all(post_load_action, factory)

    def exists(self, model_id: str) -> bool:
        return self.main.exists(model_id)

    def save(self, model: ModelT) -> ModelT:
        return self.main.save(model)

    def delete(self, model_id: str) -> bool:
        return self.main.delete(model_id)

    def delete_all(self) -> None:
        self.main.delete_all()

    def delete_and_retrieve(self, model_id: str) -> Optional[ModelT]:
        return self.main.delete_and_retrieve(model_id)

    # --------------------------- fallback tier ---------------------------
    def find_in_fallback(self, model_id: str) -> Optional[ModelT]:
        return self.fallback.find(model_id)

    def find_ids_in_fallback(self, factory: CollectionFactory = list) -> Any:
        return self.fallback.find_ids(factory)

    def find_all_in_fallback(
        self,
        post_load_action: Optional[PostLoadAction] = None,
        factory: CollectionFactory = list,
    ) -> Any:
        return self.fallback.find_all(post_load_action, factory)

    def exists_in_fallback(self, model_id: str) -> bool:
        return self.fallback.exists(model_id)

    def save_in_fallback(self, model: ModelT) -> ModelT:
        self.fallback.save(model)
        return model

    def delete_in_fallback(self, model_id: str) -> bool:
        return self.fallback.delete(model_id)

    def delete_and_retrieve_in_fallback(self, model_id: str) -> Optional[ModelT]:
        return self.fallback.delete_and_retrieve(model_id)

    def delete_all_in_fallback(self) -> None:
        self.fallback.delete_all()

    def for_each_in_fallback(self, action: Callable[[ModelT], None]) -> None:
        self.fallback.for_each(action)

    def for_each_id_in_fallback(self, action: Callable[[str], None]) -> None:
        self.fallback.for_each_id(action)

    # ---------------------------- both tiers -----------------------------
    def find_and_promote(self, model_id: str) -> Optional[ModelT]:
        """Fetch from main and, when found, copy the model into the fallback."""
        model = self.main.find(model_id)
        if model is None:
            return None
        self.fallback.save(model)
        promotions_total.labels(operation="find_and_promote").inc()
        return model

    def find_in_either(self, model_id: str) -> Optional[ModelT]:
        """Fallback first; main only on a fallback miss."""
        model = self.fallback.find(model_id)
        if model is not None:
            fallback_hits_total.labels(operation="find_in_either").inc()
            return model
        fallback_misses_total.labels(operation="find_in_either").inc()
        return self.main.find(model_id)

    def find_in_either_and_promote(self, model_id: str) -> Optional[ModelT]:
        """
        Fallback first; on a miss fetch from main and cache the result.

        After a main hit, the next call for the same id is served by the
        fallback without touching main.
        """
        model = self.fallback.find(model_id)
        if model is not None:
            fallback_hits_total.labels(operation="find_in_either_and_promote").inc()
            return model
        fallback_misses_total.labels(operation="find_in_either_and_promote").inc()
        model = self.main.find(model_id)
        if model is None:
            return None
        self.fallback.save(model)
        promotions_total.labels(operation="find_in_either_and_promote").inc()
        logger.debug(f"Cached {model_id} in fallback after main hit")
        return model

    get_or_find_and_cache = find_in_either_and_promote

    def exists_in_either(self, model_id: str) -> bool:
        return self.fallback.exists(model_id) or self.main.exists(model_id)

    def exists_in_both(self, model_id: str) -> bool:
        return self.fallback.exists(model_id) and self.main.exists(model_id)

    def save_in_both(self, model: ModelT) -> ModelT:
        """
        Write to the fallback, then to main.

        Not atomic: a failure on main leaves the fallback updated and main
        stale.
        """
        self.fallback.save(model)
        self.main.save(model)
        return model

    def delete_in_both(self, model_id: str) -> bool:
        """
        Delete from the fallback, then from main.

        Both deletes always run. Returns True only if the id existed in both
        tiers; an id present in one tier is still removed from it, and the
        call returns False.
        """
        deleted_in_fallback = self.fallback.delete(model_id)
        deleted_in_main = self.main.delete(model_id)
        if deleted_in_fallback != deleted_in_main:
            dual_write_partial_total.labels(operation="delete_in_both").inc()
            logger.debug(
                f"delete_in_both {model_id}: fallback={deleted_in_fallback}, main={deleted_in_main}"
            )
        return deleted_in_fallback and deleted_in_main

    def promote(self, model_id: str) -> Optional[ModelT]:
        """Move one model from the fallback into main."""
        model = self.fallback.delete_and_retrieve(model_id)
        if model is None:
            return None
        self.main.save(model)
        promotions_total.labels(operation="promote").inc()
        return model

    def promote_all(self, pre_upload_hook: Optional[Callable[[ModelT], None]] = None) -> None:
        """
        Write every fallback model to main, then remove the uploaded ones
        from the fallback.

        Removal starts only after the whole batch reached main, so an
        interrupted run loses nothing and a retry just re-upserts. Models
        saved into the fallback after the listing stay there for the next
        promotion.

        Args:
            pre_upload_hook: Called with each model before it is written
        """
        models = self.fallback.find_all()
        for model in models:
            if pre_upload_hook is not None:
                pre_upload_hook(model)
            self.main.save(model)
        for model in models:
            self.fallback.delete(model.id)
        promotions_total.labels(operation="promote_all").inc(len(models))
        logger.info(f"Promoted {len(models)} models from fallback to main")

    def save_all(self, pre_save_hook: Optional[Callable[[ModelT], None]] = None) -> None:
        """Write every fallback model to main, keeping the fallback intact."""
        models = self.fallback.find_all()
        for model in models:
            if pre_save_hook is not None:
                pre_save_hook(model)
            self.main.save(model)
        logger.info(f"Saved {len(models)} fallback models to main")

    def load_all(
        self,
        post_load_hook: Optional[PostLoadAction] = None,
        factory: CollectionFactory = list,
    ) -> Any:
        """
        Load every model from main and populate the fallback with it.

        Returns:
            Collection of loaded models
        """
        models = self.main.find_all(post_load_hook, factory)
        count = 0
        for model in models:
            self.fallback.save(model)
            count += 1
        promotions_total.labels(operation="load_all").inc(count)
        logger.info(f"Loaded {count} models from main into fallback")
        return models
