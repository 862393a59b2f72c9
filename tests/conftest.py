import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from backend.crateinsight.parsers import parse_rekordbox_xml
from backend.crateinsight.playlists import sequential_ids


SAMPLE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<DJ_PLAYLISTS Version="1.0.0">
  <PRODUCT Name="rekordbox" Version="6.7.4" Company="AlphaTheta"/>
  <COLLECTION Entries="6">
    <TRACK TrackID="1" Name="One More Time" Artist="Daft Punk" Album="Discovery"
           Genre="Electro; House" AverageBpm="122.70" TotalTime="320"
           DateAdded="2023-01-05" Tonality="4A" PlayCount="12" Rating="5"
           Location="file://localhost/Music/omt.mp3" TrackNumber="1" Year="2001"
           BitRate="320" SampleRate="44100" Label="Virgin" />
    <TRACK TrackID="2" Name=" one more time " Artist="DAFT PUNK" Genre="House"
           AverageBpm="123" TotalTime="318" DateAdded="2023-01-20" Tonality="4A"
           PlayCount="3" Rating="3" Location="file://localhost/Music/omt_copy.mp3" />
    <TRACK TrackID="3" Name="Strobe" Artist="deadmau5" Genre="Progressive House"
           AverageBpm="128.00" TotalTime="634" DateAdded="2023-02-11" Tonality="8B"
           PlayCount="7" Year="2009" Comments="" Location="file://localhost/Music/strobe.mp3" />
    <TRACK TrackID="4" Name="" Artist="" AverageBpm="0" TotalTime="-5" DateAdded="not a date"
           Rating="9" Year="1850" TrackNumber="0" BitRate="abc" />
    <TRACK TrackID="5" Name="Windowlicker" Artist="Aphex Twin" Genre="Electro; Techno/House; Dance"
           AverageBpm="abc" TotalTime="366" DateAdded="2023-03-01" Tonality="8B" Rating="0"
           Location="file://localhost/Music/windowlicker.mp3" />
  </COLLECTION>
  <PLAYLISTS>
    <NODE Type="0" Name="ROOT" Count="2">
      <NODE Type="0" Name="Folder A" Count="1">
        <NODE Type="0" Name="Folder B" Count="1">
          <NODE Type="1" Name="Playlist C" KeyType="0" Entries="2">
            <TRACK Key="1"/>
            <TRACK Key="2"/>
          </NODE>
        </NODE>
      </NODE>
      <NODE Type="1" Name="Warmup" KeyType="0" Entries="5">
        <TRACK Key="3"/>
      </NODE>
    </NODE>
  </PLAYLISTS>
</DJ_PLAYLISTS>
"""


@pytest.fixture
def sample_xml():
    return SAMPLE_XML


@pytest.fixture
def sample_library():
    return parse_rekordbox_xml(SAMPLE_XML, "rekordbox.xml", len(SAMPLE_XML), id_factory=sequential_ids())
