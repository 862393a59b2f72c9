"""Playlist tree reconstruction for Rekordbox ``PLAYLISTS`` sections.

Rekordbox nests playlists in recursive ``NODE`` elements under a single root
node (``Name="ROOT" Type="0"``). The builder walks that tree depth first and
emits every node below the root as a flat :class:`Playlist` that points at its
parent, folders before their contents.
"""
from __future__ import annotations
import logging
import uuid
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple

from .coercion import non_negative_int
from .constants import FOLDER_TYPE_MARKER, UNNAMED_PLAYLIST
from .errors import ValidationError
from .models import Playlist, PlaylistKind
from .xmltree import Element

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def new_playlist_id() -> str:
    return str(uuid.uuid4())


def sequential_ids(prefix: str = "pl_") -> IdFactory:
    """Deterministic identities: ``pl_1``, ``pl_2``, ..."""

    def _next_id() -> Iterator[str]:
        i = 1
        while True:
            yield f"{prefix}{i}"
            i += 1

    gen = _next_id()
    return lambda: next(gen)


def _reported_count(node: Element) -> Optional[int]:
    for attr in ("Count", "Entries"):
        raw = node.get(attr)
        if raw is not None:
            return non_negative_int(raw)
    return None


def build_playlists(container: Optional[Element], id_factory: IdFactory = new_playlist_id) -> List[Playlist]:
    """Flatten the node tree under ``container`` (the ``PLAYLISTS`` element).

    The first ``NODE`` of the container is the root and is not emitted.
    Identities come from ``id_factory``; a repeated identity is rejected
    because parent references would become ambiguous.
    """
    if container is None:
        return []
    root = container.find("NODE")
    if root is None:
        return []

    playlists: List[Playlist] = []
    seen: Set[str] = set()

    # pre-order without recursion; children are pushed reversed so the
    # first child is popped first
    stack: List[Tuple[Element, Optional[str]]] = [(n, None) for n in reversed(root.find_all("NODE"))]
    while stack:
        child, parent_id = stack.pop()
        pid = id_factory()
        if pid in seen:
            raise ValidationError(
                f"playlists.{len(playlists)}.id", f"identity generator repeated {pid!r}"
            )
        seen.add(pid)

        kind = PlaylistKind.FOLDER if child.get("Type") == FOLDER_TYPE_MARKER else PlaylistKind.PLAYLIST
        tracks: List[str] = []
        if kind == PlaylistKind.PLAYLIST:
            tracks = [t.get("Key") for t in child.find_all("TRACK") if t.get("Key")]

        playlists.append(Playlist(
            id=pid,
            name=child.get("Name") or UNNAMED_PLAYLIST,
            kind=kind,
            parent_id=parent_id,
            tracks=tracks,
            count=_reported_count(child),
        ))
        stack.extend((n, pid) for n in reversed(child.find_all("NODE")))

    logger.debug("Built %d playlist nodes", len(playlists))
    return playlists


def playlists_by_kind(playlists: List[Playlist], kind: PlaylistKind) -> List[Playlist]:
    return [p for p in playlists if p.kind == kind]


def playlist_children(playlists: List[Playlist], parent_id: str) -> List[Playlist]:
    return [p for p in playlists if p.parent_id == parent_id]


def playlist_depth(playlist: Playlist, playlists: List[Playlist]) -> int:
    """Number of ancestors of ``playlist`` (0 at root level).

    Walks parent references on every call; cache the result when it is needed
    repeatedly. A cycle or a parent that is not in ``playlists`` raises
    :class:`ValidationError`.
    """
    by_id: Dict[str, Playlist] = {p.id: p for p in playlists}
    depth = 0
    visited = {playlist.id}
    current = playlist.parent_id
    while current is not None:
        if current in visited:
            raise ValidationError("parentId", f"cycle through playlist {current!r}")
        parent = by_id.get(current)
        if parent is None:
            raise ValidationError("parentId", f"unknown parent {current!r}")
        visited.add(current)
        depth += 1
        current = parent.parent_id
    return depth
