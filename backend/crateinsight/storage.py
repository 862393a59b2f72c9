"""Single-slot library persistence.

There is exactly one stored library, under :data:`LIBRARY_STORAGE_KEY`. A new
parse replaces it wholesale; there are no partial updates and no history.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, MutableMapping, Optional

import pydantic

from .constants import LIBRARY_STORAGE_KEY
from .errors import StorageError, ValidationError
from .models import Library, LibraryMetadata
from .validation import validate_library

logger = logging.getLogger(__name__)


class LibraryStore:
    """Key-value backed store.

    ``backend`` is any mutable mapping (a dict, a ``shelve`` shelf, a cache
    client adapter). Libraries are kept as plain JSON-compatible dicts and
    validated again on the way out.
    """

    def __init__(self, backend: Optional[MutableMapping[str, Any]] = None, key: str = LIBRARY_STORAGE_KEY):
        self.backend: MutableMapping[str, Any] = backend if backend is not None else {}
        self.key = key

    def save(self, library: Library) -> None:
        try:
            self.backend[self.key] = library.model_dump(mode="json", by_alias=True)
        except (OSError, TypeError) as e:
            raise StorageError(f"Failed to save library: {e}") from e
        logger.info("Stored library with %d tracks", len(library.tracks))

    def _raw(self) -> Optional[Dict[str, Any]]:
        try:
            return self.backend.get(self.key)
        except OSError as e:
            raise StorageError(f"Failed to retrieve library: {e}") from e

    def load(self) -> Optional[Library]:
        raw = self._raw()
        if raw is None:
            return None
        try:
            return validate_library(raw)
        except ValidationError as e:
            raise StorageError(f"Stored library is invalid: {e}") from e

    def clear(self) -> None:
        try:
            self.backend.pop(self.key, None)
        except OSError as e:
            raise StorageError(f"Failed to clear library: {e}") from e

    def exists(self) -> bool:
        try:
            return self._raw() is not None
        except StorageError as e:
            logger.warning("%s", e)
            return False

    def load_metadata(self) -> Optional[LibraryMetadata]:
        """Metadata of the stored library without validating every track."""
        try:
            raw = self._raw()
        except StorageError:
            return None
        if raw is None:
            return None
        try:
            return LibraryMetadata.model_validate(raw.get("metadata", {}))
        except pydantic.ValidationError as e:
            logger.warning("Stored library metadata is invalid: %s", e)
            return None
