"""Parse job: raw export in, validated library out.

The job is meant to run off the request/UI thread. It reports a fixed set of
coarse stages through a callback and finishes with exactly one success or
error message. Nothing is retried and nothing survives between runs.
"""
from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Callable, Literal, Optional, Union

import pydantic
from pydantic import BaseModel

from .constants import PROGRESS_STAGES
from .errors import CrateInsightError
from .models import Library
from .parsers import decode_rekordbox, extract_metadata, parse_playlist_section, parse_tracks
from .playlists import IdFactory, new_playlist_id
from .validation import validate_library

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]


class ParseFileMessage(BaseModel):
    type: Literal["PARSE_FILE"] = "PARSE_FILE"
    file_name: Optional[str] = None
    path: Optional[str] = None
    content: Optional[bytes] = None


class ProgressMessage(BaseModel):
    type: Literal["PARSE_PROGRESS"] = "PARSE_PROGRESS"
    percent: int
    message: str


class SuccessMessage(BaseModel):
    type: Literal["PARSE_SUCCESS"] = "PARSE_SUCCESS"
    library: Library


class ErrorMessage(BaseModel):
    type: Literal["PARSE_ERROR"] = "PARSE_ERROR"
    error: str


WorkerResponse = Union[ProgressMessage, SuccessMessage, ErrorMessage]


def report_stage(on_progress: Optional[ProgressCallback], stage: str) -> None:
    percent, message = PROGRESS_STAGES[stage]
    logger.info("%s (%d%%)", message, percent)
    if on_progress:
        on_progress(percent, message)


def parse_library_text(
    content: Union[str, bytes],
    file_name: Optional[str] = None,
    file_size: Optional[int] = None,
    on_progress: Optional[ProgressCallback] = None,
    id_factory: IdFactory = new_playlist_id,
) -> Library:
    root = decode_rekordbox(content)
    report_stage(on_progress, "XML_PARSED")

    tracks = parse_tracks(root.find("COLLECTION"))
    report_stage(on_progress, "TRACKS_PARSED")

    playlists = parse_playlist_section(root, id_factory)
    report_stage(on_progress, "PLAYLISTS_PARSED")

    metadata = extract_metadata(root, file_name, file_size)
    library = validate_library({"tracks": tracks, "playlists": playlists, "metadata": metadata})
    report_stage(on_progress, "VALIDATION_COMPLETE")
    return library


def parse_library_file(
    path: Union[str, Path],
    on_progress: Optional[ProgressCallback] = None,
    id_factory: IdFactory = new_playlist_id,
) -> Library:
    """Read and parse an export from disk. ``OSError`` propagates unchanged."""
    path = Path(path)
    content = path.read_bytes()
    report_stage(on_progress, "FILE_READ")
    return parse_library_text(content, path.name, len(content), on_progress, id_factory)


def run_parse_job(
    request: Any,
    emit: Callable[[WorkerResponse], None],
    id_factory: IdFactory = new_playlist_id,
) -> Optional[Library]:
    """Handle one ``PARSE_FILE`` request, posting every response through ``emit``.

    ``emit`` can be ``queue.Queue.put``, a websocket send wrapper, or
    ``list.append`` in tests. Returns the library on success, ``None`` after
    an error message was emitted.
    """
    try:
        message = ParseFileMessage.model_validate(request)
    except pydantic.ValidationError:
        emit(ErrorMessage(error="Unknown message type"))
        return None

    def progress(percent: int, text: str) -> None:
        emit(ProgressMessage(percent=percent, message=text))

    try:
        if message.content is not None:
            content = message.content
            file_name = message.file_name
        elif message.path:
            path = Path(message.path)
            content = path.read_bytes()
            file_name = message.file_name or path.name
        else:
            emit(ErrorMessage(error="Request carries no file"))
            return None
        report_stage(progress, "FILE_READ")
        library = parse_library_text(content, file_name, len(content), progress, id_factory)
    except (CrateInsightError, OSError) as e:
        logger.warning("Parse job failed: %s", e)
        emit(ErrorMessage(error=str(e) or type(e).__name__))
        return None

    emit(SuccessMessage(library=library))
    return library
