from __future__ import annotations
import os

UNKNOWN = "Unknown"
UNNAMED_PLAYLIST = "Unnamed"

# Rekordbox NODE/@Type: "0" is a folder, "1" a playlist
FOLDER_TYPE_MARKER = "0"

# Histogram width for the BPM distribution, e.g. 120-130, 130-140
BPM_BUCKET_SIZE = 10

MAX_FILE_SIZE = 100 * 1024 * 1024

LIBRARY_STORAGE_KEY = "dj-library"

DUPLICATE_KEY_SEPARATOR = "|||"

MIN_YEAR = 1900
MAX_YEAR = 2100
MAX_RATING = 5

LOG_LEVEL = os.environ.get("CRATEINSIGHT_LOG_LEVEL", "INFO").upper()

# (percent, label) reported at each pipeline stage boundary
PROGRESS_STAGES = {
    "FILE_READ": (10, "Reading file..."),
    "XML_PARSED": (40, "Parsing XML..."),
    "TRACKS_PARSED": (70, "Processing tracks..."),
    "PLAYLISTS_PARSED": (90, "Processing playlists..."),
    "VALIDATION_COMPLETE": (100, "Complete!"),
}

