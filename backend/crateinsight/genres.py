"""Multi-genre helpers.

Rekordbox stores several genres in one field, e.g. ``"Electro; Techno/House; Dance"``.
"""
from __future__ import annotations
from typing import Iterable, List, Optional, Set


def parse_genres(raw: Optional[str]) -> Optional[List[str]]:
    if not raw or not raw.strip():
        return None
    genres = [g.strip() for g in raw.split(";")]
    genres = [g for g in genres if g]
    return genres or None


def primary_genre(genres: Optional[List[str]]) -> Optional[str]:
    return genres[0] if genres else None


def join_genres(genres: Optional[List[str]]) -> str:
    if not genres:
        return "N/A"
    return ", ".join(genres)


def has_genre(genres: Optional[List[str]], wanted: str) -> bool:
    if not genres:
        return False
    wanted = wanted.lower()
    return any(g.lower() == wanted for g in genres)


def unique_genres(tracks: Iterable) -> Set[str]:
    found: Set[str] = set()
    for t in tracks:
        if t.genre:
            found.update(t.genre)
    return found
