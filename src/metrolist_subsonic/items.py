"""Domain items produced by the facade.

These are source-agnostic value objects shared with the rest of the
application. Relations (song -> artists/album, album -> artists) are
rebuilt on every conversion call; nothing here is persisted or shared.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class ArtistRef:
    """Lightweight artist reference attached to songs and albums."""

    name: str
    id: Optional[str] = None


@dataclass(frozen=True)
class AlbumRef:
    """Lightweight album reference attached to songs."""

    name: str
    id: str = ""


@dataclass
class SongItem:
    id: str
    title: str
    artists: List[ArtistRef] = field(default_factory=list)
    album: Optional[AlbumRef] = None
    duration: Optional[int] = None
    thumbnail: str = ""
    explicit: bool = False


@dataclass
class AlbumItem:
    id: str
    title: str
    artists: List[ArtistRef] = field(default_factory=list)
    year: Optional[int] = None
    thumbnail: str = ""
    explicit: bool = False

    @property
    def browse_id(self) -> str:
        return self.id

    @property
    def playlist_id(self) -> str:
        # Subsonic has no separate playlist id for albums
        return self.id


@dataclass
class ArtistItem:
    id: str
    title: str
    thumbnail: Optional[str] = None


@dataclass
class PlaylistItem:
    id: str
    title: str
    author: Optional[ArtistRef] = None
    song_count_text: Optional[str] = None
    thumbnail: Optional[str] = None
    is_editable: bool = False


@dataclass(frozen=True)
class SongMetadata:
    """Technical metadata for one song, shared with the metadata cache.

    Attributes:
        bit_rate: Bitrate in kbps
        sampling_rate: Sample rate in Hz
        bit_depth: Bits per sample
        channel_count: Number of channels
        size: File size in bytes
        content_type: MIME type
        suffix: File extension
    """

    bit_rate: Optional[int] = None
    sampling_rate: Optional[int] = None
    bit_depth: Optional[int] = None
    channel_count: Optional[int] = None
    size: Optional[int] = None
    content_type: Optional[str] = None
    suffix: Optional[str] = None


@dataclass
class SearchResult:
    songs: List[SongItem] = field(default_factory=list)
    albums: List[AlbumItem] = field(default_factory=list)
    artists: List[ArtistItem] = field(default_factory=list)


@dataclass
class StarredResult(SearchResult):
    pass


@dataclass
class AlbumPage:
    album: AlbumItem
    songs: List[SongItem] = field(default_factory=list)
    songs_with_metadata: Dict[str, SongMetadata] = field(default_factory=dict)


@dataclass
class ArtistPage:
    artist: ArtistItem
    albums: List[AlbumItem] = field(default_factory=list)


@dataclass
class PlaylistPage:
    playlist: PlaylistItem
    songs: List[SongItem] = field(default_factory=list)
