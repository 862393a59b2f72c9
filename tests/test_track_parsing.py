"""
Tests for Rekordbox TRACK normalization and document-level parsing.
"""
import os
import sys
from datetime import datetime

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from backend.crateinsight.errors import StructuralError, ValidationError
from backend.crateinsight.parsers import (
    detect_format,
    is_valid_rekordbox_xml,
    parse_rekordbox_xml,
    parse_track,
)
from backend.crateinsight.xmltree import Element


def _track(**attrs):
    attrs.setdefault("TrackID", "1")
    return parse_track(Element(tag="TRACK", attributes=attrs))


def test_full_track_is_mapped(sample_library):
    t = sample_library.tracks[0]
    assert t.id == "1"
    assert t.title == "One More Time"
    assert t.artist == "Daft Punk"
    assert t.album == "Discovery"
    assert t.genre == ["Electro", "House"]
    assert t.bpm == pytest.approx(122.7)
    assert t.key == "4A"
    assert t.tonality == "4A"
    assert t.rating == 5
    assert t.play_count == 12
    assert t.duration == 320
    assert t.date_added == datetime(2023, 1, 5)
    assert t.location == "file://localhost/Music/omt.mp3"
    assert t.track_number == 1
    assert t.year == 2001
    assert t.bit_rate == 320
    assert t.sample_rate == 44100
    assert t.label == "Virgin"
    assert t.remixer is None


def test_malformed_fields_fall_back_to_defaults(sample_library):
    t = sample_library.tracks[3]
    assert t.title == "Unknown"
    assert t.artist == "Unknown"
    assert t.bpm is None
    assert t.duration == 0
    assert t.rating is None
    assert t.year is None
    assert t.track_number is None
    assert t.bit_rate is None
    assert t.location == ""
    # unparseable DateAdded resolves to the parse time
    assert (datetime.now() - t.date_added).total_seconds() < 60


@pytest.mark.parametrize("raw", ["0", "abc", "-120", "NaN", ""])
def test_invalid_bpm_is_absent(raw):
    assert _track(AverageBpm=raw).bpm is None


def test_genre_scenario():
    assert _track(Genre="Electro; Techno/House; Dance").genre == ["Electro", "Techno/House", "Dance"]
    assert _track(Genre=" ; ").genre is None


def test_rating_bounds():
    assert _track(Rating="0").rating == 0
    assert _track(Rating="5").rating == 5
    assert _track(Rating="6").rating is None
    assert _track(Rating="-1").rating is None


def test_year_bounds():
    assert _track(Year="1900").year == 1900
    assert _track(Year="2100").year == 2100
    assert _track(Year="0").year is None
    assert _track(Year="3000").year is None


def test_duration_negative_or_garbage_is_zero():
    assert _track(TotalTime="-10").duration == 0
    assert _track(TotalTime="long").duration == 0
    assert _track().duration == 0


def test_positive_integer_fields():
    t = _track(TrackNumber="0", BitRate="-320", SampleRate="0")
    assert t.track_number is None
    assert t.bit_rate is None
    assert t.sample_rate is None


def test_empty_free_text_is_absent():
    t = _track(Comments="", Label="", Remixer="", Composer="", Grouping="", Album="")
    assert t.comments is None
    assert t.label is None
    assert t.remixer is None
    assert t.composer is None
    assert t.grouping is None
    assert t.album is None


def test_missing_track_id_is_fatal():
    with pytest.raises(ValidationError) as exc:
        parse_track(Element(tag="TRACK", attributes={"Name": "No id"}), 4)
    assert exc.value.path == "COLLECTION/TRACK[4]/@TrackID"


def test_metadata_is_extracted(sample_library):
    meta = sample_library.metadata
    assert meta.version == "6.7.4"
    assert meta.company == "AlphaTheta"
    # reported, not counted
    assert meta.total_tracks == 6
    assert len(sample_library.tracks) == 5
    assert meta.file_name == "rekordbox.xml"
    assert meta.file_size > 0


def test_missing_product_defaults_to_unknown():
    lib = parse_rekordbox_xml('<DJ_PLAYLISTS><COLLECTION Entries="x"/></DJ_PLAYLISTS>')
    assert lib.metadata.version == "Unknown"
    assert lib.metadata.company == "Unknown"
    assert lib.metadata.total_tracks == 0
    assert lib.tracks == []
    assert lib.playlists == []


def test_missing_root_or_collection_is_structural():
    with pytest.raises(StructuralError):
        parse_rekordbox_xml("<NML><COLLECTION/></NML>")
    with pytest.raises(StructuralError):
        parse_rekordbox_xml("<DJ_PLAYLISTS><PRODUCT/></DJ_PLAYLISTS>")
    with pytest.raises(StructuralError):
        parse_rekordbox_xml("<DJ_PLAYLISTS><COLLECTION>")


def test_duplicate_track_ids_are_rejected():
    xml = '<DJ_PLAYLISTS><COLLECTION><TRACK TrackID="1"/><TRACK TrackID="1"/></COLLECTION></DJ_PLAYLISTS>'
    with pytest.raises(ValidationError) as exc:
        parse_rekordbox_xml(xml)
    assert exc.value.path == "tracks.1.id"


def test_is_valid_rekordbox_xml(sample_xml):
    assert is_valid_rekordbox_xml(sample_xml)
    assert not is_valid_rekordbox_xml("<DJ_PLAYLISTS><COLLECTION/></DJ_PLAYLISTS>")
    assert not is_valid_rekordbox_xml("<DJ_PLAYLISTS>")


def test_detect_format(sample_xml):
    assert detect_format("lib.xml", sample_xml.encode()) == "rekordbox"
    assert detect_format("lib.nml", b'<NML VERSION="19"></NML>') == "unknown"
    assert detect_format("notes.txt", b"hello") == "unknown"
