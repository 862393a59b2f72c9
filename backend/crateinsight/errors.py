from __future__ import annotations


class CrateInsightError(Exception):
    """Base class for every error raised by the ingestion pipeline."""


class StructuralError(CrateInsightError):
    """Malformed XML, or a mandatory top-level section is missing."""


class ValidationError(CrateInsightError):
    """A required field is absent or has the wrong fundamental kind.

    ``path`` is a dotted field path (``tracks.3.id``) or, for raw XML, an
    element path (``COLLECTION/TRACK[3]/@TrackID``).
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}" if path else reason)


class StorageError(CrateInsightError):
    """The library store could not save, load or delete a library."""
