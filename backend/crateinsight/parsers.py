from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Callable, List, Optional, Union

from .coercion import (
    bounded_int,
    non_empty_str,
    non_negative_int,
    parse_date,
    positive_float,
    positive_int,
    text_or_unknown,
)
from .constants import MAX_RATING, MAX_YEAR, MIN_YEAR
from .errors import StructuralError, ValidationError
from .genres import parse_genres
from .models import Library, LibraryMetadata, Playlist, Track
from .playlists import IdFactory, build_playlists, new_playlist_id
from .xmltree import Element, decode_document

logger = logging.getLogger(__name__)

ROOT_TAG = "DJ_PLAYLISTS"


def detect_format(filename: str, content: bytes) -> str:
    """Return ``"rekordbox"`` for a Rekordbox XML export, ``"unknown"`` otherwise."""
    lower = (filename or "").lower()
    text = content.decode(errors="ignore")
    if lower.endswith(".nml") or "<NML" in text:
        return "unknown"
    if f"<{ROOT_TAG}" in text:
        return "rekordbox"
    return "unknown"


def _field(track_id: str, name: str, raw: Optional[str], coerce: Callable[[Any], Any]) -> Any:
    value = coerce(raw)
    if value is None and raw not in (None, ""):
        logger.debug("Track %s: %s=%r replaced by default", track_id, name, raw)
    return value


def parse_track(el: Element, position: Optional[int] = None) -> Track:
    """Map one ``COLLECTION/TRACK`` element to a :class:`Track`.

    Bad values in individual fields fall back to their defaults. Only a
    missing ``TrackID`` is an error.
    """
    track_id = el.get("TrackID")
    if not track_id:
        where = f"COLLECTION/TRACK[{position}]" if position is not None else "TRACK"
        raise ValidationError(f"{where}/@TrackID", "track has no TrackID")

    duration = _field(track_id, "TotalTime", el.get("TotalTime"), non_negative_int) or 0
    date_added = _field(track_id, "DateAdded", el.get("DateAdded"), parse_date) or datetime.now()

    return Track(
        id=track_id,
        title=text_or_unknown(el.get("Name")),
        artist=text_or_unknown(el.get("Artist")),
        album=non_empty_str(el.get("Album")),
        genre=parse_genres(el.get("Genre")),
        bpm=_field(track_id, "AverageBpm", el.get("AverageBpm"), positive_float),
        key=non_empty_str(el.get("Tonality")),
        rating=_field(track_id, "Rating", el.get("Rating"), lambda v: bounded_int(v, 0, MAX_RATING)),
        play_count=_field(track_id, "PlayCount", el.get("PlayCount"), non_negative_int),
        duration=duration,
        date_added=date_added,
        location=el.get("Location") or "",
        track_number=_field(track_id, "TrackNumber", el.get("TrackNumber"), positive_int),
        year=_field(track_id, "Year", el.get("Year"), lambda v: bounded_int(v, MIN_YEAR, MAX_YEAR)),
        comments=non_empty_str(el.get("Comments")),
        tonality=non_empty_str(el.get("Tonality")),
        bit_rate=_field(track_id, "BitRate", el.get("BitRate"), positive_int),
        sample_rate=_field(track_id, "SampleRate", el.get("SampleRate"), positive_int),
        label=non_empty_str(el.get("Label")),
        remixer=non_empty_str(el.get("Remixer")),
        composer=non_empty_str(el.get("Composer")),
        grouping=non_empty_str(el.get("Grouping")),
    )


def parse_tracks(collection: Element) -> List[Track]:
    return [parse_track(el, i) for i, el in enumerate(collection.find_all("TRACK"))]


def extract_metadata(
    root: Element,
    file_name: Optional[str] = None,
    file_size: Optional[int] = None,
) -> LibraryMetadata:
    product = root.find("PRODUCT")
    if product is None:
        logger.warning("No PRODUCT element; version and company unknown")
        product = Element(tag="PRODUCT")
    collection = root.find("COLLECTION")
    entries = collection.get("Entries") if collection is not None else None
    return LibraryMetadata(
        version=non_empty_str(product.get("Version")),
        company=non_empty_str(product.get("Company")),
        total_tracks=non_negative_int(entries) or 0,
        parsed_at=datetime.now(),
        file_name=file_name,
        file_size=file_size,
    )


def decode_rekordbox(content: Union[str, bytes]) -> Element:
    """Decode and check the mandatory top-level structure."""
    root = decode_document(content)
    if root.tag != ROOT_TAG:
        raise StructuralError(f"Invalid Rekordbox XML: Missing {ROOT_TAG} root element")
    if root.find("COLLECTION") is None:
        raise StructuralError("Invalid Rekordbox XML: Missing COLLECTION element")
    return root


def parse_playlist_section(root: Element, id_factory: IdFactory = new_playlist_id) -> List[Playlist]:
    container = root.find("PLAYLISTS")
    if container is None:
        logger.warning("No PLAYLISTS section; library has no playlists")
    return build_playlists(container, id_factory)


def parse_rekordbox_xml(
    content: Union[str, bytes],
    file_name: Optional[str] = None,
    file_size: Optional[int] = None,
    id_factory: IdFactory = new_playlist_id,
) -> Library:
    """Parse a Rekordbox XML export into a :class:`Library`.

    Raises :class:`StructuralError` when the document is not well-formed or
    lacks ``DJ_PLAYLISTS``/``COLLECTION``, and :class:`ValidationError` when a
    track has no identity.
    """
    root = decode_rekordbox(content)
    tracks = parse_tracks(root.find("COLLECTION"))
    playlists = parse_playlist_section(root, id_factory)
    metadata = extract_metadata(root, file_name, file_size)
    logger.info(
        "Parsed %s: %d tracks (%d reported), %d playlist nodes",
        file_name or "library", len(tracks), metadata.total_tracks, len(playlists),
    )
    return Library(tracks=tracks, playlists=playlists, metadata=metadata)


def is_valid_rekordbox_xml(content: Union[str, bytes]) -> bool:
    """Cheap structural check: root, collection and product are present."""
    try:
        root = decode_rekordbox(content)
    except StructuralError:
        return False
    return root.find("PRODUCT") is not None
