"""Transform Subsonic wire models into domain items."""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

from .exceptions import MalformedResponseError
from .items import (
    AlbumItem,
    AlbumRef,
    ArtistItem,
    ArtistRef,
    PlaylistItem,
    SongItem,
    SongMetadata,
)
from .models import AlbumID3, ArtistID3, Child, Playlist

logger = logging.getLogger(__name__)

CoverArtUrl = Callable[[str], str]
T = TypeVar("T")

UNKNOWN_ARTIST = "Unknown Artist"

# (low, high, kbps) buckets for bitrates reported in bits/sec
_BITRATE_BUCKETS = (
    (320000, 350000, 320),
    (256000, 270000, 256),
    (192000, 210000, 192),
    (160000, 170000, 160),
)


def normalize_bitrate(bit_rate: Optional[int]) -> Optional[int]:
    """Bring a bitrate reported in bits/sec back to kbps.

    Heuristic, not a protocol guarantee: some servers report ``bitRate`` in
    bps. Anything above 1000 is assumed to be bps and snapped to the common
    bitrate bucket it falls in, or divided by 1000 otherwise. Genuinely
    unusual bitrates outside the buckets can be misclassified.

    Examples:
        >>> normalize_bitrate(320000)
        320
        >>> normalize_bitrate(192500)
        192
        >>> normalize_bitrate(1000)
        1000
        >>> normalize_bitrate(128000)
        128
    """
    if bit_rate is None or bit_rate <= 1000:
        return bit_rate
    for low, high, kbps in _BITRATE_BUCKETS:
        if low <= bit_rate <= high:
            return kbps
    return bit_rate // 1000


def _cover(cover_art_id: Optional[str], cover_art_url: CoverArtUrl) -> str:
    return cover_art_url(cover_art_id) if cover_art_id else ""


def _primary_artist(name: Optional[str], display: Optional[str], artist_id: Optional[str]) -> Optional[ArtistRef]:
    if name:
        return ArtistRef(name=name, id=artist_id)
    if display:
        return ArtistRef(name=display, id=artist_id)
    return None


def transform_child(child: Child, cover_art_url: CoverArtUrl) -> SongItem:
    """Transform a Subsonic song entry to a SongItem.

    Songs always carry at least one artist; "Unknown Artist" is used when the
    server sends neither ``artist`` nor ``displayArtist``.

    Example:
        >>> child = Child(id="42", title="X", artist="Queen", album="Innuendo", albumId="7")
        >>> song = transform_child(child, lambda cid: f"cover/{cid}")
        >>> song.artists[0].name, song.album.id, song.thumbnail
        ('Queen', '7', '')
    """
    artist = _primary_artist(child.artist, child.displayArtist, child.artistId) or ArtistRef(
        name=UNKNOWN_ARTIST
    )
    song = SongItem(
        id=child.id,
        title=child.title,
        artists=[artist],
        album=AlbumRef(name=child.album, id=child.albumId or "") if child.album else None,
        duration=child.duration,
        thumbnail=_cover(child.coverArt, cover_art_url),
        explicit=child.explicitStatus == "explicit",
    )
    logger.debug(f"Transformed Subsonic song: {child.title} (ID: {child.id})")
    return song


def transform_album(album: AlbumID3, cover_art_url: CoverArtUrl) -> AlbumItem:
    """Transform a Subsonic album (with or without songs) to an AlbumItem."""
    artist = _primary_artist(album.artist, album.displayArtist, album.artistId)
    return AlbumItem(
        id=album.id,
        title=album.name,
        artists=[artist] if artist else [],
        year=album.year,
        thumbnail=_cover(album.coverArt, cover_art_url),
        explicit=album.explicitStatus == "explicit",
    )


def transform_artist(artist: ArtistID3, cover_art_url: CoverArtUrl) -> ArtistItem:
    """Transform a Subsonic artist; cover art wins over the external image URL."""
    thumbnail = cover_art_url(artist.coverArt) if artist.coverArt else artist.artistImageUrl
    return ArtistItem(id=artist.id, title=artist.name, thumbnail=thumbnail)


def transform_playlist(playlist: Playlist, cover_art_url: CoverArtUrl) -> PlaylistItem:
    return PlaylistItem(
        id=playlist.id,
        title=playlist.name,
        author=ArtistRef(name=playlist.owner) if playlist.owner else None,
        song_count_text=str(playlist.songCount) if playlist.songCount is not None else None,
        thumbnail=cover_art_url(playlist.coverArt) if playlist.coverArt else None,
        is_editable=playlist.owner is not None,
    )


def transform_song_metadata(child: Child) -> SongMetadata:
    """SongMetadata straight from the per-song API fields."""
    return SongMetadata(
        bit_rate=child.bitRate,
        sampling_rate=child.samplingRate,
        bit_depth=child.bitDepth,
        channel_count=child.channelCount,
        size=child.size,
        content_type=child.contentType,
        suffix=child.suffix,
    )


def _decode(entry: Any, decode: Callable[[Dict[str, Any]], Any], kind: str) -> Any:
    if not isinstance(entry, dict):
        raise MalformedResponseError(f"{kind} entry is {type(entry).__name__}, expected object")
    return decode(entry)


def _convert_all(
    entries: Iterable[Any],
    decode: Callable[[Dict[str, Any]], Any],
    convert: Callable[[Any, CoverArtUrl], T],
    cover_art_url: CoverArtUrl,
    kind: str,
) -> List[T]:
    """Decode and convert raw entries, skipping the ones that fail."""
    items = []
    for entry in entries:
        try:
            items.append(convert(_decode(entry, decode, kind), cover_art_url))
        except (KeyError, TypeError, ValueError, MalformedResponseError) as e:
            logger.warning(f"Skipping {kind} with missing or invalid field: {e}")
            continue
    return items


def transform_songs(entries: Iterable[Any], cover_art_url: CoverArtUrl) -> List[SongItem]:
    return _convert_all(entries, Child.from_dict, transform_child, cover_art_url, "song")


def transform_albums(entries: Iterable[Any], cover_art_url: CoverArtUrl) -> List[AlbumItem]:
    return _convert_all(entries, AlbumID3.from_dict, transform_album, cover_art_url, "album")


def transform_artists(entries: Iterable[Any], cover_art_url: CoverArtUrl) -> List[ArtistItem]:
    return _convert_all(entries, ArtistID3.from_dict, transform_artist, cover_art_url, "artist")


def transform_playlists(entries: Iterable[Any], cover_art_url: CoverArtUrl) -> List[PlaylistItem]:
    return _convert_all(entries, Playlist.from_dict, transform_playlist, cover_art_url, "playlist")


def song_metadata_map(entries: Iterable[Any]) -> Dict[str, SongMetadata]:
    """Per-song metadata keyed by song id, skipping undecodable entries."""
    metadata = {}
    for entry in entries:
        try:
            child = _decode(entry, Child.from_dict, "song")
        except (KeyError, TypeError, ValueError, MalformedResponseError) as e:
            logger.warning(f"Skipping song metadata with missing or invalid field: {e}")
            continue
        metadata[child.id] = transform_song_metadata(child)
    return metadata
