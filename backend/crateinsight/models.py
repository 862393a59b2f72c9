from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .coercion import (
    bounded_int,
    date_or_now,
    non_empty_str,
    non_negative_int,
    positive_float,
    positive_int,
)
from .constants import MAX_RATING, MAX_YEAR, MIN_YEAR, UNKNOWN, UNNAMED_PLAYLIST
from .errors import ValidationError

# Every model accepts snake_case or camelCase input, serializes as camelCase,
# and is re-checked even when handed an existing instance.
MODEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    revalidate_instances="always",
    frozen=True,
)


def _scalar(value: Any, coerce: Callable[[Any], Any]) -> Any:
    """Apply ``coerce`` to a scalar; containers and booleans are the wrong kind."""
    if value is None or value == "":
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"expected a number, got {type(value).__name__}")
    return coerce(value)


def _text(value: Any) -> Any:
    if value is None or isinstance(value, str):
        return non_empty_str(value)
    # let pydantic reject it with a proper type error
    return value


class Track(BaseModel):
    model_config = MODEL_CONFIG

    id: str = Field(min_length=1)
    title: str = UNKNOWN
    artist: str = UNKNOWN
    album: Optional[str] = None
    genre: Optional[List[str]] = None
    bpm: Optional[float] = None
    key: Optional[str] = None
    rating: Optional[int] = None
    play_count: Optional[int] = None
    duration: int = 0
    date_added: datetime = Field(default_factory=datetime.now)
    location: str = ""
    track_number: Optional[int] = None
    year: Optional[int] = None
    comments: Optional[str] = None
    tonality: Optional[str] = None
    bit_rate: Optional[int] = None
    sample_rate: Optional[int] = None
    label: Optional[str] = None
    remixer: Optional[str] = None
    composer: Optional[str] = None
    grouping: Optional[str] = None

    @field_validator("title", "artist", mode="before")
    @classmethod
    def unknown_if_empty(cls, v):
        if v is None or v == "":
            return UNKNOWN
        return v

    @field_validator(
        "album", "key", "comments", "tonality", "label", "remixer", "composer", "grouping",
        mode="before",
    )
    @classmethod
    def empty_to_none(cls, v):
        return _text(v)

    @field_validator("genre", mode="before")
    @classmethod
    def clean_genres(cls, v):
        if v is None:
            return None
        if isinstance(v, str):
            v = v.split(";")
        if isinstance(v, (list, tuple)):
            cleaned = [g.strip() if isinstance(g, str) else g for g in v]
            cleaned = [g for g in cleaned if g != ""]
            return cleaned or None
        return v

    @field_validator("bpm", mode="before")
    @classmethod
    def positive_bpm(cls, v):
        return _scalar(v, positive_float)

    @field_validator("rating", mode="before")
    @classmethod
    def rating_in_range(cls, v):
        return _scalar(v, lambda x: bounded_int(x, 0, MAX_RATING))

    @field_validator("play_count", mode="before")
    @classmethod
    def non_negative_play_count(cls, v):
        return _scalar(v, non_negative_int)

    @field_validator("duration", mode="before")
    @classmethod
    def duration_or_zero(cls, v):
        return _scalar(v, non_negative_int) or 0

    @field_validator("date_added", mode="before")
    @classmethod
    def date_added_or_now(cls, v):
        if v is None or isinstance(v, (str, datetime)):
            return date_or_now(v)
        return v

    @field_validator("location", mode="before")
    @classmethod
    def location_or_empty(cls, v):
        return "" if v is None else v

    @field_validator("track_number", "bit_rate", "sample_rate", mode="before")
    @classmethod
    def positive_ints(cls, v):
        return _scalar(v, positive_int)

    @field_validator("year", mode="before")
    @classmethod
    def year_in_range(cls, v):
        return _scalar(v, lambda x: bounded_int(x, MIN_YEAR, MAX_YEAR))


class PlaylistKind(str, Enum):
    FOLDER = "folder"
    PLAYLIST = "playlist"


class Playlist(BaseModel):
    """A folder or playlist node, flattened with a reference to its parent.

    ``count`` is the value the source reported (children for folders, tracks
    for playlists) and is never recomputed from ``tracks``.
    """

    model_config = MODEL_CONFIG

    id: str = Field(min_length=1)
    name: str = UNNAMED_PLAYLIST
    kind: PlaylistKind = Field(alias="type")
    parent_id: Optional[str] = None
    tracks: List[str] = Field(default_factory=list)
    count: Optional[int] = None

    @field_validator("name", mode="before")
    @classmethod
    def name_or_unnamed(cls, v):
        if v is None or v == "":
            return UNNAMED_PLAYLIST
        return v

    @field_validator("parent_id", mode="before")
    @classmethod
    def empty_parent_to_none(cls, v):
        return _text(v)

    @field_validator("tracks", mode="after")
    @classmethod
    def folders_hold_no_tracks(cls, v: List[str], info: ValidationInfo):
        if info.data.get("kind") == PlaylistKind.FOLDER:
            return []
        return v

    @field_validator("count", mode="before")
    @classmethod
    def reported_count(cls, v):
        return _scalar(v, non_negative_int)

    @property
    def is_folder(self) -> bool:
        return self.kind == PlaylistKind.FOLDER


class LibraryMetadata(BaseModel):
    model_config = MODEL_CONFIG

    version: str = UNKNOWN
    # producer of the export, "AlphaTheta" / "Pioneer DJ" for Rekordbox
    company: str = UNKNOWN
    # as reported by COLLECTION/@Entries, not len(tracks)
    total_tracks: int = 0
    parsed_at: datetime = Field(default_factory=datetime.now)
    file_name: Optional[str] = None
    file_size: Optional[int] = None

    @field_validator("version", "company", mode="before")
    @classmethod
    def unknown_if_empty(cls, v):
        if v is None or v == "":
            return UNKNOWN
        return v

    @field_validator("total_tracks", mode="before")
    @classmethod
    def total_or_zero(cls, v):
        return _scalar(v, non_negative_int) or 0

    @field_validator("parsed_at", mode="before")
    @classmethod
    def parsed_at_or_now(cls, v):
        if v is None or isinstance(v, (str, datetime)):
            return date_or_now(v)
        return v

    @field_validator("file_name", mode="before")
    @classmethod
    def empty_file_name_to_none(cls, v):
        return _text(v)

    @field_validator("file_size", mode="before")
    @classmethod
    def positive_file_size(cls, v):
        return _scalar(v, positive_int)


def check_forest(playlists: List[Playlist]) -> None:
    """Raise :class:`ValidationError` unless the parent references form a forest."""
    index: Dict[str, int] = {}
    for i, pl in enumerate(playlists):
        if pl.id in index:
            raise ValidationError(f"playlists.{i}.id", f"duplicate playlist id {pl.id!r}")
        index[pl.id] = i

    for i, pl in enumerate(playlists):
        if pl.parent_id is not None and pl.parent_id not in index:
            raise ValidationError(f"playlists.{i}.parentId", f"unknown parent {pl.parent_id!r}")

    settled: Set[str] = set()
    for pl in playlists:
        path: List[str] = []
        on_path: Set[str] = set()
        current: Optional[str] = pl.id
        while current is not None and current not in settled:
            if current in on_path:
                i = index[current]
                raise ValidationError(f"playlists.{i}.parentId", f"cycle through playlist {current!r}")
            path.append(current)
            on_path.add(current)
            current = playlists[index[current]].parent_id
        settled.update(path)


class Library(BaseModel):
    model_config = MODEL_CONFIG

    tracks: List[Track] = Field(default_factory=list)
    playlists: List[Playlist] = Field(default_factory=list)
    metadata: LibraryMetadata

    @model_validator(mode="after")
    def check_identities(self):
        seen: Set[str] = set()
        for i, t in enumerate(self.tracks):
            if t.id in seen:
                raise ValidationError(f"tracks.{i}.id", f"duplicate track id {t.id!r}")
            seen.add(t.id)
        check_forest(self.playlists)
        return self

    def get_playlist(self, playlist_id: str) -> Optional[Playlist]:
        for pl in self.playlists:
            if pl.id == playlist_id:
                return pl
        return None


class GenreCount(BaseModel):
    model_config = MODEL_CONFIG

    genre: str
    count: int


class BpmBucket(BaseModel):
    model_config = MODEL_CONFIG

    range: str
    count: int
    range_start: float


class KeyCount(BaseModel):
    model_config = MODEL_CONFIG

    key: str
    count: int


class RatingCount(BaseModel):
    model_config = MODEL_CONFIG

    rating: int
    count: int


class GrowthPoint(BaseModel):
    model_config = MODEL_CONFIG

    month: str
    # cumulative number of tracks added up to and including this month
    count: int
    date: datetime


class ArtistCount(BaseModel):
    model_config = MODEL_CONFIG

    artist: str
    count: int


class LibraryStats(BaseModel):
    model_config = MODEL_CONFIG

    total_tracks: int
    total_artists: int
    total_genres: int
    total_playlists: int
    average_bpm: float
    total_duration: float  # hours
    genre_distribution: List[GenreCount]
    bpm_distribution: List[BpmBucket]
    key_distribution: List[KeyCount]
    rating_distribution: List[RatingCount]
    library_growth: List[GrowthPoint]
