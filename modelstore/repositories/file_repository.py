"""
Flat-file implementation of the model repository.

Stores one ``<id>.json`` document per model in a single folder.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterator, Optional, Union

from ..codec.base import ModelCodec
from ..codec.document import Document, DocumentReader, DocumentWriter
from ..domain.entities import ID_FIELD, ModelT
from ..domain.exceptions import BackendException
from .model_repository import CollectionFactory, ModelRepository, PostLoadAction

logger = logging.getLogger(__name__)

FILE_SUFFIX = ".json"


class FileModelRepository(ModelRepository[ModelT]):
    """
    JSON-file repository.

    Documents are encoded with ``DocumentWriter``; the folder is created on
    construction. I/O and decode failures raise ``BackendException``.
    """

    backend_name = "file"

    def __init__(
        self,
        folder: Union[str, Path],
        codec: ModelCodec[ModelT],
        pretty_print: bool = False,
    ):
        """
        Initialize file repository.

        Args:
            folder: Directory holding one JSON file per model
            codec: Serializer/deserializer pair for the model type
            pretty_print: Indent written JSON
        """
        self.folder = Path(folder)
        self.codec = codec
        self.pretty_print = pretty_print
        try:
            self.folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BackendException(self.backend_name, "init", str(e)) from e

    def resolve_child(self, model_id: str) -> Path:
        """
        Map an id to its file inside the folder.

        Raises:
            BackendException: If the id would name a file outside the folder
        """
        path = self.folder / f"{model_id}{FILE_SUFFIX}"
        if "/" in model_id or "\\" in model_id or path.parent != self.folder:
            raise BackendException(
                self.backend_name, "resolve", f"id {model_id!r} is not a valid file name"
            )
        return path

    @staticmethod
    def extract_id(path: Path) -> str:
        return path.name[: -len(FILE_SUFFIX)]

    def find(self, model_id: str) -> Optional[ModelT]:
        return self._read(self.resolve_child(model_id))

    def find_by_field(self, field: str, value: Any, factory: CollectionFactory = list) -> Any:
        if field == ID_FIELD:
            model = self.find(value)
            return factory([] if model is None else [model])

        def matching() -> Iterator[ModelT]:
            for path in self._paths():
                document = self._load_document(path)
                if document is not None and document.get(field) == value:
                    yield self.codec.decode(DocumentReader(document))

        return factory(matching())

    def find_ids(self, factory: CollectionFactory = list) -> Any:
        return factory(self.extract_id(path) for path in self._paths())

    def find_all(
        self,
        post_load_action: Optional[PostLoadAction] = None,
        factory: CollectionFactory = list,
    ) -> Any:
        models = (self._read(path) for path in self._paths())
        return self._run_post_load(
            (model for model in models if model is not None), post_load_action, factory
        )

    def exists(self, model_id: str) -> bool:
        return self.resolve_child(model_id).is_file()

    def save(self, model: ModelT) -> ModelT:
        path = self.resolve_child(model.id)
        document = self.codec.encode(model, DocumentWriter.create(model))
        # Readers must never see a partial file
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(document, f, ensure_ascii=False, indent=2 if self.pretty_print else None)
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError) as e:
            tmp_path.unlink(missing_ok=True)
            raise BackendException(self.backend_name, "save", f"{path}: {e}") from e
        logger.debug(f"Saved to file: {path}")
        return model

    def delete(self, model_id: str) -> bool:
        path = self.resolve_child(model_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise BackendException(self.backend_name, "delete", f"{path}: {e}") from e
        logger.debug(f"Deleted file: {path}")
        return True

    def delete_all(self) -> None:
        count = 0
        for path in self._paths():
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                raise BackendException(self.backend_name, "delete_all", f"{path}: {e}") from e
            count += 1
        logger.info(f"Deleted {count} files from {self.folder}")

    def _paths(self) -> list:
        try:
            return sorted(
                path
                for path in self.folder.iterdir()
                if path.is_file() and path.name.endswith(FILE_SUFFIX)
            )
        except OSError as e:
            raise BackendException(self.backend_name, "list", f"{self.folder}: {e}") from e

    def _load_document(self, path: Path) -> Optional[Document]:
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            raise BackendException(self.backend_name, "read", f"{path}: {e}") from e

    def _read(self, path: Path) -> Optional[ModelT]:
        document = self._load_document(path)
        if document is None:
            return None
        return self.codec.decode(DocumentReader(document))
