"""Data models for Subsonic API integration.

Wire models mirror the Subsonic/OpenSubsonic JSON field names so that
``from_dict`` stays a direct mapping. Unknown keys are ignored; required
keys raise ``KeyError`` which callers turn into a skipped entry or a
malformed-response error.
"""

import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .decoders import (
    as_list,
    flexible_int,
    flexible_str,
    optional_float,
    optional_int,
    require,
)


@dataclass
class SubsonicCredentials:
    """Connection details for a Subsonic-compatible server.

    Either ``password`` or the pre-shared ``token`` + ``salt`` pair should be
    present. With neither, requests carry only the base fields and the
    server answers with an authentication failure.

    Attributes:
        url: Base server URL (e.g., "https://music.example.com")
        username: Subsonic username
        password: Plaintext password (never sent, only hashed)
        token: Pre-computed MD5(password + salt)
        salt: Salt matching ``token``
        base_path: Optional path segment between host and ``/rest``
        client_name: Client identifier for API requests
        api_version: Subsonic API version
    """

    url: str
    username: str
    password: Optional[str] = None
    token: Optional[str] = None
    salt: Optional[str] = None
    base_path: Optional[str] = None
    client_name: str = "Metrolist"
    api_version: str = "1.16.1"

    def __post_init__(self):
        """Validate credentials on initialization."""
        if not self.url or not self.url.startswith(("http://", "https://")):
            raise ValueError("url must be a valid HTTP/HTTPS URL")
        if not self.username:
            raise ValueError("username is required")

        if not self.url.startswith("https://"):
            warnings.warn(
                "Using HTTP instead of HTTPS for Subsonic connection. "
                "Credentials will be transmitted insecurely.",
                UserWarning,
                stacklevel=3,
            )

    @property
    def has_token(self) -> bool:
        return bool(self.token) and bool(self.salt)


@dataclass
class SubsonicStatus:
    """Envelope fields returned by data-less endpoints (ping, star, unstar).

    ``type``, ``serverVersion`` and ``openSubsonic`` are only sent by
    OpenSubsonic servers.
    """

    version: Optional[str] = None
    type: Optional[str] = None
    serverVersion: Optional[str] = None
    openSubsonic: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubsonicStatus":
        return cls(
            version=data.get("version"),
            type=data.get("type"),
            serverVersion=data.get("serverVersion"),
            openSubsonic=bool(data.get("openSubsonic", False)),
        )


@dataclass
class MusicFolder:
    id: str
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MusicFolder":
        return cls(id=flexible_str(require(data, "id"), "id"), name=data.get("name"))


@dataclass
class MusicFolders:
    musicFolder: List[MusicFolder] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MusicFolders":
        folders = as_list(data.get("musicFolder"))
        return cls(musicFolder=[MusicFolder.from_dict(f) for f in folders if isinstance(f, dict)])


@dataclass
class ItemGenre:
    name: Optional[str] = None


@dataclass
class ReplayGain:
    trackGain: Optional[float] = None
    trackPeak: Optional[float] = None
    albumGain: Optional[float] = None
    albumPeak: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReplayGain":
        return cls(
            trackGain=optional_float(data.get("trackGain")),
            trackPeak=optional_float(data.get("trackPeak")),
            albumGain=optional_float(data.get("albumGain")),
            albumPeak=optional_float(data.get("albumPeak")),
        )


def _genres(data: Dict[str, Any]) -> Optional[List[ItemGenre]]:
    if "genres" not in data:
        return None
    return [ItemGenre(name=g.get("name")) for g in as_list(data.get("genres")) if isinstance(g, dict)]


def _artists(data: Dict[str, Any]) -> Optional[List["ArtistID3"]]:
    if data.get("artists") is None:
        return None
    return [ArtistID3.from_dict(a) for a in as_list(data.get("artists")) if isinstance(a, dict)]


@dataclass
class ArtistID3:
    """Artist entry from getArtists/search3/getStarred2.

    Attributes:
        id: Unique artist identifier
        name: Artist name
        coverArt: Cover art ID (optional)
        artistImageUrl: External artist image URL (optional)
        albumCount: Number of albums (optional)
        starred: ISO datetime if favorited (optional)
    """

    id: str
    name: str
    coverArt: Optional[str] = None
    artistImageUrl: Optional[str] = None
    albumCount: Optional[int] = None
    starred: Optional[str] = None
    musicBrainzId: Optional[str] = None
    sortName: Optional[str] = None
    roles: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArtistID3":
        return cls(
            id=flexible_str(require(data, "id"), "id"),
            name=require(data, "name"),
            coverArt=flexible_str(data.get("coverArt"), "coverArt"),
            artistImageUrl=data.get("artistImageUrl"),
            albumCount=optional_int(data.get("albumCount")),
            starred=data.get("starred"),
            musicBrainzId=data.get("musicBrainzId"),
            sortName=data.get("sortName"),
            roles=data.get("roles"),
        )


@dataclass
class Index:
    """One letter bucket of getArtists; ``artist`` holds raw entries."""

    name: str
    artist: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Index":
        return cls(name=data.get("name", ""), artist=as_list(data.get("artist")))


@dataclass
class ArtistsID3:
    """Payload of getArtists (also used for getIndexes)."""

    index: List[Index] = field(default_factory=list)
    ignoredArticles: Optional[str] = None
    lastModified: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArtistsID3":
        return cls(
            index=[Index.from_dict(i) for i in as_list(data.get("index")) if isinstance(i, dict)],
            ignoredArticles=data.get("ignoredArticles"),
            lastModified=optional_int(data.get("lastModified")),
        )


@dataclass
class Child:
    """Song entry (Subsonic "Child") from albums, playlists, search and getSong.

    ``parent``, ``albumId`` and ``artistId`` accept numbers or strings;
    ``year`` accepts a number or a quoted string.
    """

    id: str
    title: str
    parent: Optional[str] = None
    isDir: bool = False
    album: Optional[str] = None
    artist: Optional[str] = None
    track: Optional[int] = None
    year: Optional[int] = None
    genre: Optional[str] = None
    coverArt: Optional[str] = None
    size: Optional[int] = None
    contentType: Optional[str] = None
    suffix: Optional[str] = None
    transcodedContentType: Optional[str] = None
    transcodedSuffix: Optional[str] = None
    duration: Optional[int] = None
    bitRate: Optional[int] = None
    bitDepth: Optional[int] = None
    samplingRate: Optional[int] = None
    channelCount: Optional[int] = None
    path: Optional[str] = None
    isVideo: Optional[bool] = None
    userRating: Optional[int] = None
    averageRating: Optional[float] = None
    playCount: Optional[int] = None
    discNumber: Optional[int] = None
    created: Optional[str] = None
    starred: Optional[str] = None
    albumId: Optional[str] = None
    artistId: Optional[str] = None
    type: Optional[str] = None
    mediaType: Optional[str] = None
    bpm: Optional[int] = None
    comment: Optional[str] = None
    musicBrainzId: Optional[str] = None
    genres: Optional[List[ItemGenre]] = None
    artists: Optional[List[ArtistID3]] = None
    displayArtist: Optional[str] = None
    displayAlbumArtist: Optional[str] = None
    replayGain: Optional[ReplayGain] = None
    explicitStatus: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Child":
        replay_gain = data.get("replayGain")
        return cls(
            id=flexible_str(require(data, "id"), "id"),
            title=require(data, "title"),
            parent=flexible_str(data.get("parent"), "parent"),
            isDir=bool(data.get("isDir", False)),
            album=data.get("album"),
            artist=data.get("artist"),
            track=optional_int(data.get("track")),
            year=flexible_int(data.get("year"), "year"),
            genre=data.get("genre"),
            coverArt=flexible_str(data.get("coverArt"), "coverArt"),
            size=optional_int(data.get("size")),
            contentType=data.get("contentType"),
            suffix=data.get("suffix"),
            transcodedContentType=data.get("transcodedContentType"),
            transcodedSuffix=data.get("transcodedSuffix"),
            duration=optional_int(data.get("duration")),
            bitRate=optional_int(data.get("bitRate")),
            bitDepth=optional_int(data.get("bitDepth")),
            samplingRate=optional_int(data.get("samplingRate")),
            channelCount=optional_int(data.get("channelCount")),
            path=data.get("path"),
            isVideo=data.get("isVideo"),
            userRating=optional_int(data.get("userRating")),
            averageRating=optional_float(data.get("averageRating")),
            playCount=optional_int(data.get("playCount")),
            discNumber=optional_int(data.get("discNumber")),
            created=data.get("created"),
            starred=data.get("starred"),
            albumId=flexible_str(data.get("albumId"), "albumId"),
            artistId=flexible_str(data.get("artistId"), "artistId"),
            type=data.get("type"),
            mediaType=data.get("mediaType"),
            bpm=optional_int(data.get("bpm")),
            comment=data.get("comment"),
            musicBrainzId=data.get("musicBrainzId"),
            genres=_genres(data),
            artists=_artists(data),
            displayArtist=data.get("displayArtist"),
            displayAlbumArtist=data.get("displayAlbumArtist"),
            replayGain=ReplayGain.from_dict(replay_gain) if isinstance(replay_gain, dict) else None,
            explicitStatus=data.get("explicitStatus"),
        )


@dataclass
class AlbumID3:
    """Album entry from getAlbumList2/search3/getArtist/getStarred2.

    ``songCount`` and ``duration`` are required by the API but default to 0
    here; only ``id`` and ``name`` are needed to build an album item.
    """

    id: str
    name: str
    artist: Optional[str] = None
    artistId: Optional[str] = None
    coverArt: Optional[str] = None
    songCount: int = 0
    duration: int = 0
    playCount: Optional[int] = None
    created: Optional[str] = None
    starred: Optional[str] = None
    year: Optional[int] = None
    genre: Optional[str] = None
    musicBrainzId: Optional[str] = None
    genres: Optional[List[ItemGenre]] = None
    artists: Optional[List[ArtistID3]] = None
    displayArtist: Optional[str] = None
    sortName: Optional[str] = None
    isCompilation: Optional[bool] = None
    explicitStatus: Optional[str] = None

    @classmethod
    def _fields_from_dict(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        return dict(
            id=flexible_str(require(data, "id"), "id"),
            name=require(data, "name"),
            artist=data.get("artist"),
            artistId=flexible_str(data.get("artistId"), "artistId"),
            coverArt=flexible_str(data.get("coverArt"), "coverArt"),
            songCount=optional_int(data.get("songCount")) or 0,
            duration=optional_int(data.get("duration")) or 0,
            playCount=optional_int(data.get("playCount")),
            created=data.get("created"),
            starred=data.get("starred"),
            year=flexible_int(data.get("year"), "year"),
            genre=data.get("genre"),
            musicBrainzId=data.get("musicBrainzId"),
            genres=_genres(data),
            artists=_artists(data),
            displayArtist=data.get("displayArtist"),
            sortName=data.get("sortName"),
            isCompilation=data.get("isCompilation"),
            explicitStatus=data.get("explicitStatus"),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AlbumID3":
        return cls(**cls._fields_from_dict(data))


@dataclass
class AlbumID3WithSongs(AlbumID3):
    """Payload of getAlbum: album fields plus the raw song entries.

    Songs are kept as raw dicts so one malformed entry does not fail the
    whole album; they are decoded entry by entry during conversion.
    """

    song: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AlbumID3WithSongs":
        return cls(**cls._fields_from_dict(data), song=as_list(data.get("song")))


@dataclass
class ArtistWithAlbumsID3(ArtistID3):
    """Payload of getArtist."""

    album: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArtistWithAlbumsID3":
        base = ArtistID3.from_dict(data)
        return cls(**vars(base), album=as_list(data.get("album")))

    def to_artist(self) -> ArtistID3:
        fields = {k: v for k, v in vars(self).items() if k != "album"}
        return ArtistID3(**fields)


@dataclass
class SearchResult3:
    """Payload of search3 (raw entries, decoded during conversion)."""

    artist: List[Dict[str, Any]] = field(default_factory=list)
    album: List[Dict[str, Any]] = field(default_factory=list)
    song: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchResult3":
        return cls(
            artist=as_list(data.get("artist")),
            album=as_list(data.get("album")),
            song=as_list(data.get("song")),
        )


@dataclass
class Starred2(SearchResult3):
    """Payload of getStarred2; same shape as search3."""


@dataclass
class AlbumList2:
    album: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AlbumList2":
        return cls(album=as_list(data.get("album")))


@dataclass
class Playlist:
    """Playlist summary from getPlaylists."""

    id: str
    name: str
    comment: Optional[str] = None
    owner: Optional[str] = None
    public: Optional[bool] = None
    songCount: Optional[int] = None
    duration: Optional[int] = None
    created: Optional[str] = None
    changed: Optional[str] = None
    coverArt: Optional[str] = None

    @classmethod
    def _fields_from_dict(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        return dict(
            id=flexible_str(require(data, "id"), "id"),
            name=require(data, "name"),
            comment=data.get("comment"),
            owner=data.get("owner"),
            public=data.get("public"),
            songCount=optional_int(data.get("songCount")),
            duration=optional_int(data.get("duration")),
            created=data.get("created"),
            changed=data.get("changed"),
            coverArt=flexible_str(data.get("coverArt"), "coverArt"),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Playlist":
        return cls(**cls._fields_from_dict(data))


@dataclass
class PlaylistWithSongs(Playlist):
    """Payload of getPlaylist; ``entry`` holds raw song entries."""

    entry: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlaylistWithSongs":
        return cls(**cls._fields_from_dict(data), entry=as_list(data.get("entry")))


@dataclass
class Playlists:
    playlist: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Playlists":
        return cls(playlist=as_list(data.get("playlist")))
