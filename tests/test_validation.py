"""
Tests for schema validation of library-shaped values
"""
import os
import sys
from datetime import datetime

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from backend.crateinsight.errors import ValidationError
from backend.crateinsight.models import Library, PlaylistKind, Track
from backend.crateinsight.validation import safe_validate_library, validate_library


def _candidate(**overrides):
    data = {
        "tracks": [
            {"id": "1", "title": "A", "artist": "B", "duration": 200, "dateAdded": "2023-01-01", "location": "/a.mp3"},
        ],
        "playlists": [],
        "metadata": {"version": "6.0", "company": "AlphaTheta", "totalTracks": "1", "parsedAt": "2024-01-01T00:00:00"},
    }
    data.update(overrides)
    return data


def test_camel_case_document_is_accepted():
    lib = validate_library(_candidate())
    assert lib.tracks[0].date_added == datetime(2023, 1, 1)
    assert lib.metadata.total_tracks == 1


def test_validation_is_idempotent(sample_library):
    once = validate_library(sample_library)
    twice = validate_library(once)
    assert once == twice
    assert once == sample_library


def test_json_round_trip_is_stable(sample_library):
    dumped = sample_library.model_dump(mode="json", by_alias=True)
    assert validate_library(dumped) == validate_library(validate_library(dumped))
    assert dumped["playlists"][1]["parentId"] == sample_library.playlists[0].id
    assert dumped["playlists"][0]["type"] == "folder"


def test_missing_track_id_reports_path():
    data = _candidate(tracks=[{"title": "no id"}])
    with pytest.raises(ValidationError) as exc:
        validate_library(data)
    assert exc.value.path == "tracks.0.id"


def test_non_string_id_is_wrong_kind():
    with pytest.raises(ValidationError) as exc:
        validate_library(_candidate(tracks=[{"id": 7}]))
    assert exc.value.path == "tracks.0.id"


def test_missing_metadata_is_rejected():
    data = _candidate()
    del data["metadata"]
    with pytest.raises(ValidationError) as exc:
        validate_library(data)
    assert exc.value.path == "metadata"


def test_not_a_mapping():
    with pytest.raises(ValidationError):
        validate_library(["not", "a", "library"])


def test_bounds_degrade_to_absent():
    lib = validate_library(_candidate(tracks=[{
        "id": "1",
        "title": "",
        "bpm": -3,
        "rating": 11,
        "year": 1066,
        "playCount": -1,
        "duration": -40,
        "trackNumber": 0,
        "bitRate": 0,
        "sampleRate": -1,
        "genre": [],
        "album": "",
        "dateAdded": "someday",
    }]))
    t = lib.tracks[0]
    assert t.title == "Unknown"
    assert t.artist == "Unknown"
    assert t.bpm is None
    assert t.rating is None
    assert t.year is None
    assert t.play_count is None
    assert t.duration == 0
    assert t.track_number is None
    assert t.bit_rate is None
    assert t.sample_rate is None
    assert t.genre is None
    assert t.album is None
    assert t.location == ""
    assert isinstance(t.date_added, datetime)


def test_container_where_number_expected_is_an_error():
    with pytest.raises(ValidationError) as exc:
        validate_library(_candidate(tracks=[{"id": "1", "bpm": [128]}]))
    assert exc.value.path == "tracks.0.bpm"


def test_genre_string_is_split():
    lib = validate_library(_candidate(tracks=[{"id": "1", "genre": "House; ;Techno"}]))
    assert lib.tracks[0].genre == ["House", "Techno"]


def test_unknown_playlist_kind_is_rejected():
    data = _candidate(playlists=[{"id": "p", "name": "x", "type": "smartlist"}])
    with pytest.raises(ValidationError) as exc:
        validate_library(data)
    assert exc.value.path == "playlists.0.type"


def test_folder_tracks_are_cleared():
    data = _candidate(playlists=[{"id": "f", "name": "F", "type": "folder", "tracks": ["1"]}])
    lib = validate_library(data)
    assert lib.playlists[0].kind == PlaylistKind.FOLDER
    assert lib.playlists[0].tracks == []


def test_playlist_count_coercion():
    data = _candidate(playlists=[
        {"id": "a", "type": "playlist", "count": "4"},
        {"id": "b", "type": "playlist", "count": -2},
        {"id": "c", "type": "playlist"},
    ])
    lib = validate_library(data)
    assert [p.count for p in lib.playlists] == [4, None, None]
    assert lib.playlists[0].name == "Unnamed"


def test_dangling_parent_is_rejected():
    data = _candidate(playlists=[{"id": "a", "type": "playlist", "parentId": "nope"}])
    with pytest.raises(ValidationError) as exc:
        validate_library(data)
    assert exc.value.path == "playlists.0.parentId"


def test_cycle_is_rejected():
    data = _candidate(playlists=[
        {"id": "a", "type": "folder", "parentId": "b"},
        {"id": "b", "type": "folder", "parentId": "a"},
    ])
    with pytest.raises(ValidationError) as exc:
        validate_library(data)
    assert "cycle" in exc.value.reason


def test_parent_may_appear_later():
    data = _candidate(playlists=[
        {"id": "child", "type": "playlist", "parentId": "parent"},
        {"id": "parent", "type": "folder"},
    ])
    assert len(validate_library(data).playlists) == 2


def test_duplicate_playlist_ids():
    data = _candidate(playlists=[{"id": "a", "type": "folder"}, {"id": "a", "type": "folder"}])
    with pytest.raises(ValidationError) as exc:
        validate_library(data)
    assert exc.value.path == "playlists.1.id"


def test_duplicate_track_ids():
    data = _candidate(tracks=[{"id": "1"}, {"id": "1"}])
    with pytest.raises(ValidationError) as exc:
        validate_library(data)
    assert exc.value.path == "tracks.1.id"


def test_safe_validate_library():
    lib, err = safe_validate_library(_candidate())
    assert err is None
    assert isinstance(lib, Library)
    lib, err = safe_validate_library({"tracks": [{}]})
    assert lib is None
    assert isinstance(err, ValidationError)


def test_invariants_hold_for_parsed_library(sample_library):
    for t in sample_library.tracks:
        assert t.rating is None or 0 <= t.rating <= 5
        assert t.year is None or 1900 <= t.year <= 2100
        assert t.duration >= 0
        assert t.bpm is None or t.bpm > 0
        assert t.genre is None or len(t.genre) > 0


def test_track_model_direct_construction_applies_rules():
    t = Track(id="x", bpm="0", rating="3", year="1999", genre="A;B")
    assert t.bpm is None
    assert t.rating == 3
    assert t.year == 1999
    assert t.genre == ["A", "B"]
