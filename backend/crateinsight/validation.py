"""Schema validation for library-shaped values.

This pass does not care where a value came from: a freshly parsed library, a
JSON document read back from storage, or a hand-built dict. Whatever it
accepts satisfies every model invariant, and validating its own output again
changes nothing.
"""
from __future__ import annotations
import logging
from typing import Any, Optional, Tuple

import pydantic

from .errors import ValidationError
from .models import Library

logger = logging.getLogger(__name__)


def _format_loc(loc: Tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc)


def validate_library(candidate: Any) -> Library:
    """Return a :class:`Library` built from ``candidate`` or raise :class:`ValidationError`."""
    if isinstance(candidate, Library):
        candidate = candidate.model_dump()
    try:
        library = Library.model_validate(candidate)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        path = _format_loc(first.get("loc", ()))
        logger.debug("Library rejected with %d error(s): %s", e.error_count(), e)
        raise ValidationError(path, first.get("msg", "invalid value")) from e
    logger.debug(
        "Validated library: %d tracks, %d playlists",
        len(library.tracks), len(library.playlists),
    )
    return library


def safe_validate_library(candidate: Any) -> Tuple[Optional[Library], Optional[ValidationError]]:
    try:
        return validate_library(candidate), None
    except ValidationError as e:
        return None, e
