"""Aggregate statistics over a validated library.

All reducers are pure and ignore the order of their input apart from the
documented tie-breaks (equal counts keep first-seen order).
"""
from __future__ import annotations
import math
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Sequence, Tuple

from .constants import BPM_BUCKET_SIZE, DUPLICATE_KEY_SEPARATOR, UNKNOWN
from .models import (
    ArtistCount,
    BpmBucket,
    GenreCount,
    GrowthPoint,
    KeyCount,
    Library,
    LibraryStats,
    Playlist,
    PlaylistKind,
    RatingCount,
    Track,
)


def compute_analytics(library: Library, bpm_bucket_size: float = BPM_BUCKET_SIZE) -> LibraryStats:
    tracks = library.tracks
    return LibraryStats(
        total_tracks=len(tracks),
        total_artists=total_artists(tracks),
        total_genres=total_genres(tracks),
        total_playlists=playlist_count(library.playlists),
        average_bpm=average_bpm(tracks),
        total_duration=total_duration_hours(tracks),
        genre_distribution=genre_distribution(tracks),
        bpm_distribution=bpm_distribution(tracks, bpm_bucket_size),
        key_distribution=key_distribution(tracks),
        rating_distribution=rating_distribution(tracks),
        library_growth=library_growth(tracks),
    )


def total_artists(tracks: Iterable[Track]) -> int:
    artists = set()
    for t in tracks:
        if t.artist and t.artist != UNKNOWN:
            artists.add(t.artist.lower())
    return len(artists)


def total_genres(tracks: Iterable[Track]) -> int:
    genres = set()
    for t in tracks:
        if t.genre:
            genres.update(t.genre)
    return len(genres)


def average_bpm(tracks: Iterable[Track]) -> float:
    bpms = [t.bpm for t in tracks if t.bpm is not None]
    if not bpms:
        return 0
    return sum(bpms) / len(bpms)


def total_duration_hours(tracks: Iterable[Track]) -> float:
    return sum(t.duration for t in tracks) / 3600


def playlist_count(playlists: Iterable[Playlist]) -> int:
    return sum(1 for p in playlists if p.kind == PlaylistKind.PLAYLIST)


def _by_count_desc(counts: Dict) -> List[Tuple]:
    return sorted(counts.items(), key=lambda item: -item[1])


def genre_distribution(tracks: Iterable[Track]) -> List[GenreCount]:
    """One count per (track, genre) pair, most frequent first."""
    counts: Dict[str, int] = {}
    for t in tracks:
        for genre in t.genre or []:
            counts[genre] = counts.get(genre, 0) + 1
    return [GenreCount(genre=g, count=c) for g, c in _by_count_desc(counts)]


def _format_bound(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def bpm_distribution(tracks: Iterable[Track], bucket_size: float = BPM_BUCKET_SIZE) -> List[BpmBucket]:
    """Histogram of BPM in ``[start, start + bucket_size)`` buckets, ascending.

    Tracks without a BPM are left out.
    """
    if bucket_size <= 0:
        raise ValueError("bucket_size must be positive")
    buckets: Dict[float, int] = {}
    for t in tracks:
        if t.bpm is None:
            continue
        # strip float noise left by fractional bucket sizes
        start = round(math.floor(t.bpm / bucket_size) * bucket_size, 6)
        buckets[start] = buckets.get(start, 0) + 1
    return [
        BpmBucket(
            range=f"{_format_bound(start)}-{_format_bound(round(start + bucket_size, 6))}",
            count=count,
            range_start=start,
        )
        for start, count in sorted(buckets.items())
    ]


def key_distribution(tracks: Iterable[Track]) -> List[KeyCount]:
    # verbatim key strings; "8A" and "8a" are different keys here
    counts: Dict[str, int] = {}
    for t in tracks:
        if t.key:
            counts[t.key] = counts.get(t.key, 0) + 1
    return [KeyCount(key=k, count=c) for k, c in _by_count_desc(counts)]


def rating_distribution(tracks: Iterable[Track]) -> List[RatingCount]:
    counts: Dict[int, int] = {}
    for t in tracks:
        rating = t.rating or 0
        counts[rating] = counts.get(rating, 0) + 1
    return [RatingCount(rating=r, count=c) for r, c in sorted(counts.items())]


def library_growth(tracks: Iterable[Track]) -> List[GrowthPoint]:
    """Cumulative track count per month of ``date_added``, oldest month first."""
    months: Dict[Tuple[int, int], int] = {}
    for t in tracks:
        ym = (t.date_added.year, t.date_added.month)
        months[ym] = months.get(ym, 0) + 1

    points: List[GrowthPoint] = []
    cumulative = 0
    for (year, month), count in sorted(months.items()):
        cumulative += count
        points.append(GrowthPoint(
            month=f"{year:04d}-{month:02d}",
            count=cumulative,
            date=datetime(year, month, 1),
        ))
    return points


def duplicate_key(track: Track) -> str:
    return f"{track.artist.lower().strip()}{DUPLICATE_KEY_SEPARATOR}{track.title.lower().strip()}"


def find_duplicate_tracks(tracks: Iterable[Track]) -> List[List[Track]]:
    """Groups of two or more tracks sharing artist and title, largest first.

    Matching ignores case and surrounding whitespace. Tracks whose artist or
    title is missing or ``"Unknown"`` never match anything.
    """
    groups: Dict[str, List[Track]] = defaultdict(list)
    for t in tracks:
        if not t.artist or not t.title or t.artist == UNKNOWN or t.title == UNKNOWN:
            continue
        groups[duplicate_key(t)].append(t)
    duplicates = [g for g in groups.values() if len(g) > 1]
    return sorted(duplicates, key=len, reverse=True)


def top_tracks(tracks: Sequence[Track], limit: int = 10) -> List[Track]:
    played = [t for t in tracks if t.play_count]
    return sorted(played, key=lambda t: -t.play_count)[:limit]


def top_artists(tracks: Iterable[Track], limit: int = 10) -> List[ArtistCount]:
    counts: Dict[str, int] = {}
    for t in tracks:
        if t.artist and t.artist != UNKNOWN:
            counts[t.artist] = counts.get(t.artist, 0) + 1
    return [ArtistCount(artist=a, count=c) for a, c in _by_count_desc(counts)[:limit]]


def tracks_with_missing_metadata(library: Library) -> Dict[str, List[Track]]:
    tracks = library.tracks
    return {
        "missing_genre": [t for t in tracks if not t.genre],
        "missing_bpm": [t for t in tracks if not t.bpm],
        "missing_key": [t for t in tracks if not t.key],
        "missing_year": [t for t in tracks if not t.year],
        "missing_album": [t for t in tracks if not t.album],
    }
