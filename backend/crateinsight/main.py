from __future__ import annotations
import logging
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from . import analytics
from .constants import BPM_BUCKET_SIZE, LOG_LEVEL, MAX_FILE_SIZE
from .errors import StorageError, StructuralError, ValidationError
from .formatting import format_duration, format_file_size
from .models import ArtistCount, Library, LibraryStats, PlaylistKind, Track
from .parsers import detect_format
from .pipeline import parse_library_text
from .playlists import playlist_depth
from .storage import LibraryStore

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Crate Insight v0.1")

STORE = LibraryStore()


def get_library_or_404() -> Library:
    try:
        lib = STORE.load()
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if lib is None:
        raise HTTPException(status_code=404, detail="Library not found")
    return lib


# Static mounting (only if frontend exists)
BASE_DIR = Path(__file__).resolve().parent
STATIC_DIR = BASE_DIR.parent.parent / "frontend"
if STATIC_DIR.is_dir():
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR), html=True), name="static")


@app.get("/")
def root():
    """Redirect root to static frontend."""
    return RedirectResponse(url="/static/", status_code=307)


class ImportResponse(BaseModel):
    source_format: str
    track_count: int
    reported_track_count: int
    playlist_count: int
    folder_count: int


@app.post("/api/import", response_model=ImportResponse)
async def import_library(file: UploadFile = File(...)):
    content = await file.read()
    if len(content) > MAX_FILE_SIZE:
        raise HTTPException(status_code=413, detail="File too large")
    if detect_format(file.filename, content) != "rekordbox":
        raise HTTPException(status_code=400, detail="Could not detect format")

    try:
        lib = await run_in_threadpool(parse_library_text, content, file.filename, len(content))
    except StructuralError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail={"path": e.path, "reason": e.reason})

    try:
        STORE.save(lib)
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return ImportResponse(
        source_format="rekordbox_xml",
        track_count=len(lib.tracks),
        reported_track_count=lib.metadata.total_tracks,
        playlist_count=analytics.playlist_count(lib.playlists),
        folder_count=sum(1 for p in lib.playlists if p.kind == PlaylistKind.FOLDER),
    )


@app.get("/api/library")
def get_library():
    lib = get_library_or_404()
    file_size = lib.metadata.file_size
    return {
        "metadata": lib.metadata.model_dump(mode="json", by_alias=True),
        "track_count": len(lib.tracks),
        "playlist_count": analytics.playlist_count(lib.playlists),
        "total_duration": format_duration(sum(t.duration for t in lib.tracks)),
        "file_size": format_file_size(file_size) if file_size else None,
    }


@app.delete("/api/library")
def delete_library():
    existed = STORE.exists()
    try:
        STORE.clear()
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"deleted": existed}


@app.get("/api/library/tracks", response_model=List[Track])
def list_tracks(
    playlist_id: Optional[str] = None,
    q: Optional[str] = None,
):
    lib = get_library_or_404()
    tracks = lib.tracks

    if playlist_id:
        pl = lib.get_playlist(playlist_id)
        if not pl:
            raise HTTPException(status_code=404, detail="Playlist not found")
        by_id = {t.id: t for t in tracks}
        # playlist order; references to tracks missing from the collection are skipped
        tracks = [by_id[tid] for tid in pl.tracks if tid in by_id]

    if q:
        ql = q.lower()
        tracks = [
            t for t in tracks
            if ql in t.title.lower()
            or ql in t.artist.lower()
            or ql in t.location.lower()
        ]
    return tracks


@app.get("/api/library/playlists")
def list_playlists():
    lib = get_library_or_404()
    depths: Dict[str, int] = {}
    result = []
    for pl in lib.playlists:
        # parents precede children, so the parent's depth is already known
        if pl.parent_id is None:
            depths[pl.id] = 0
        elif pl.parent_id in depths:
            depths[pl.id] = depths[pl.parent_id] + 1
        else:
            depths[pl.id] = playlist_depth(pl, lib.playlists)
        entry = pl.model_dump(mode="json", by_alias=True)
        entry["depth"] = depths[pl.id]
        result.append(entry)
    return result


@app.get("/api/library/stats", response_model=LibraryStats)
def get_library_stats(bpm_bucket_size: float = Query(BPM_BUCKET_SIZE, gt=0, le=100)):
    lib = get_library_or_404()
    return analytics.compute_analytics(lib, bpm_bucket_size)


@app.get("/api/library/duplicates")
def get_duplicates():
    lib = get_library_or_404()
    groups = analytics.find_duplicate_tracks(lib.tracks)
    return {
        "total_groups": len(groups),
        "duplicate_groups": [
            {
                "canonical_title": group[0].title,
                "canonical_artist": group[0].artist,
                "track_ids": [t.id for t in group],
                "count": len(group),
            }
            for group in groups
        ],
    }


@app.get("/api/library/top_tracks", response_model=List[Track])
def get_top_tracks(limit: int = Query(10, ge=1, le=100)):
    lib = get_library_or_404()
    return analytics.top_tracks(lib.tracks, limit)


@app.get("/api/library/top_artists", response_model=List[ArtistCount])
def get_top_artists(limit: int = Query(10, ge=1, le=100)):
    lib = get_library_or_404()
    return analytics.top_artists(lib.tracks, limit)


@app.get("/api/library/metadata_issues")
def get_metadata_issues():
    lib = get_library_or_404()
    missing = analytics.tracks_with_missing_metadata(lib)
    return {
        "total_tracks": len(lib.tracks),
        "issues": {name: [t.id for t in tracks] for name, tracks in missing.items()},
    }
