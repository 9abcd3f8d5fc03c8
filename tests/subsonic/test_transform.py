"""Unit tests for Subsonic to domain item transformation."""

import logging

import pytest

from metrolist_subsonic.models import AlbumID3, ArtistID3, Child, Playlist
from metrolist_subsonic.transform import (
    UNKNOWN_ARTIST,
    normalize_bitrate,
    song_metadata_map,
    transform_album,
    transform_artist,
    transform_child,
    transform_playlist,
    transform_songs,
)


def cover(cover_art_id: str) -> str:
    return f"https://music.example.com/rest/getCoverArt.view?id={cover_art_id}"


class TestNormalizeBitrate:

    @pytest.mark.parametrize(
        "reported,expected",
        [
            (None, None),
            (0, 0),
            (128, 128),
            (320, 320),
            (1000, 1000),
            (320000, 320),
            (350000, 320),
            (256000, 256),
            (265000, 256),
            (192000, 192),
            (192500, 192),
            (160000, 160),
            (128000, 128),
            (96000, 96),
            (500000, 500),
        ],
    )
    def test_buckets(self, reported, expected):
        assert normalize_bitrate(reported) == expected


class TestTransformChild:

    def test_full_song(self):
        child = Child(
            id="so-1",
            title="Bohemian Rhapsody",
            artist="Queen",
            artistId="ar-1",
            album="A Night at the Opera",
            albumId="al-1",
            coverArt="al-1",
            duration=354,
            explicitStatus="clean",
        )

        song = transform_child(child, cover)

        assert song.id == "so-1"
        assert song.title == "Bohemian Rhapsody"
        assert song.artists[0].name == "Queen"
        assert song.artists[0].id == "ar-1"
        assert song.album.name == "A Night at the Opera"
        assert song.album.id == "al-1"
        assert song.duration == 354
        assert song.thumbnail == cover("al-1")
        assert not song.explicit

    def test_unknown_artist_fallback(self):
        song = transform_child(Child(id="1", title="Untitled"), cover)
        assert [a.name for a in song.artists] == [UNKNOWN_ARTIST]
        assert song.album is None
        assert song.thumbnail == ""

    def test_display_artist_used_when_artist_missing(self):
        song = transform_child(Child(id="1", title="Duet", displayArtist="A & B"), cover)
        assert song.artists[0].name == "A & B"

    def test_explicit_flag(self):
        assert transform_child(Child(id="1", title="T", explicitStatus="explicit"), cover).explicit


def test_transform_album_without_artist():
    album = transform_album(AlbumID3(id="al-1", name="Compilation", year=2001), cover)
    assert album.artists == []
    assert album.year == 2001
    assert album.thumbnail == ""
    assert album.browse_id == album.playlist_id == "al-1"


def test_transform_artist_prefers_cover_art():
    with_cover = ArtistID3(id="1", name="Queen", coverArt="ar-1", artistImageUrl="https://img/queen.jpg")
    without_cover = ArtistID3(id="1", name="Queen", artistImageUrl="https://img/queen.jpg")
    assert transform_artist(with_cover, cover).thumbnail == cover("ar-1")
    assert transform_artist(without_cover, cover).thumbnail == "https://img/queen.jpg"
    assert transform_artist(ArtistID3(id="1", name="Queen"), cover).thumbnail is None


def test_transform_playlist():
    playlist = transform_playlist(
        Playlist(id="pl-1", name="Road Trip", owner="testuser", songCount=25, coverArt="pl-1"), cover
    )
    assert playlist.title == "Road Trip"
    assert playlist.author.name == "testuser"
    assert playlist.song_count_text == "25"
    assert playlist.thumbnail == cover("pl-1")


def test_transform_songs_skips_bad_entries(caplog):
    entries = [
        {"id": "1", "title": "Good"},
        {"title": "No id"},
        {"id": {"bad": True}, "title": "Bad id"},
        {"id": 2, "title": "Numeric id"},
    ]

    with caplog.at_level(logging.WARNING):
        songs = transform_songs(entries, cover)

    assert [s.id for s in songs] == ["1", "2"]
    assert "Skipping song" in caplog.text


def test_song_metadata_map():
    metadata = song_metadata_map(
        [
            {"id": "1", "title": "A", "bitRate": 320, "samplingRate": 44100, "suffix": "mp3"},
            {"title": "no id"},
        ]
    )
    assert list(metadata) == ["1"]
    assert metadata["1"].bit_rate == 320
    assert metadata["1"].sampling_rate == 44100
    assert metadata["1"].suffix == "mp3"


def test_non_object_entries_are_skipped(caplog):
    entries = [{"id": "1", "title": "Good"}, "garbage", 5, None, ["x"]]

    with caplog.at_level(logging.WARNING):
        songs = transform_songs(entries, cover)
        metadata = song_metadata_map(entries)

    assert [s.id for s in songs] == ["1"]
    assert list(metadata) == ["1"]
    assert "song entry is str, expected object" in caplog.text
