"""Facade over SubsonicClient for the rest of the application.

``Subsonic`` holds the active client and the song metadata cache, converts
wire models into domain items, and wraps every outcome in a ``Result``.
The application creates one instance at startup and passes it around;
there is no module-level state.

Example:
    >>> subsonic = Subsonic()
    >>> subsonic.initialize(SubsonicCredentials(
    ...     url="https://music.example.com", username="demo", password="demo"))
    >>> result = await subsonic.search3("queen")
    >>> result.on_success(lambda r: print(len(r.songs)))
"""

import logging
from dataclasses import replace
from typing import Awaitable, Callable, Dict, List, Optional, TypeVar

import httpx

from . import mp3
from .cache import MetadataCache
from .client import SubsonicClient
from .config import ClientSettings
from .exceptions import NotInitializedError, SubsonicHTTPError
from .items import (
    AlbumItem,
    AlbumPage,
    ArtistItem,
    ArtistPage,
    PlaylistItem,
    PlaylistPage,
    SearchResult,
    SongMetadata,
    StarredResult,
)
from .models import Child, SubsonicCredentials, SubsonicStatus
from .result import Result
from .transform import (
    normalize_bitrate,
    song_metadata_map,
    transform_album,
    transform_albums,
    transform_artist,
    transform_artists,
    transform_playlist,
    transform_playlists,
    transform_songs,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _positive(value: Optional[int]) -> Optional[int]:
    return value if value is not None and value > 0 else None


def _kbps(bits_per_second: Optional[int]) -> Optional[int]:
    return bits_per_second // 1000 if bits_per_second is not None else None


class Subsonic:
    """Entry point for all Subsonic operations.

    Every coroutine returns a ``Result``. Before ``initialize`` they return a
    failure holding ``NotInitializedError``, which callers can tell apart
    from network and protocol errors via ``Result.is_not_initialized``.

    Clients replaced by ``initialize`` finish their in-flight calls and are
    closed once idle.
    """

    def __init__(self):
        self._client: Optional[SubsonicClient] = None
        self._retired: List[SubsonicClient] = []
        self._in_flight: Dict[SubsonicClient, int] = {}
        self.metadata_cache = MetadataCache()

    def initialize(
        self,
        credentials: SubsonicCredentials,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[ClientSettings] = None,
    ) -> None:
        """Replace the active client and clear the metadata cache."""
        if self._client is not None:
            self._retired.append(self._client)
        self._client = SubsonicClient(credentials, http_client=http_client, settings=settings)
        self.metadata_cache.clear()
        logger.info(f"Subsonic initialized for {credentials.username}@{self._client.base_url}")

    @property
    def is_initialized(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> SubsonicClient:
        """Active transport client.

        Raises:
            NotInitializedError: If ``initialize`` has not been called
        """
        if self._client is None:
            raise NotInitializedError()
        return self._client

    async def _close_idle_retired(self) -> None:
        idle = [c for c in self._retired if c not in self._in_flight]
        if not idle:
            return
        self._retired = [c for c in self._retired if c in self._in_flight]
        for client in idle:
            await client.aclose()

    async def _call(self, operation: str, fn: Callable[[SubsonicClient], Awaitable[T]]) -> Result[T]:
        client = self._client
        if client is None:
            logger.debug(f"{operation} called before initialize()")
            return Result.failure(NotInitializedError())
        self._in_flight[client] = self._in_flight.get(client, 0) + 1
        try:
            return Result.success(await fn(client))
        except Exception as e:
            logger.warning(f"{operation} failed: {e}")
            return Result.failure(e)
        finally:
            self._in_flight[client] -= 1
            if not self._in_flight[client]:
                del self._in_flight[client]
            await self._close_idle_retired()

    async def ping(self) -> Result[SubsonicStatus]:
        return await self._call("ping", lambda client: client.ping())

    async def search3(
        self,
        query: str,
        song_count: int = 50,
        album_count: int = 50,
        artist_count: int = 50,
    ) -> Result[SearchResult]:
        async def run(client: SubsonicClient) -> SearchResult:
            response = await client.search3(query, song_count, album_count, artist_count)
            cover = client.get_cover_art_url
            return SearchResult(
                songs=transform_songs(response.song, cover),
                albums=transform_albums(response.album, cover),
                artists=transform_artists(response.artist, cover),
            )

        return await self._call("search3", run)

    async def get_album(self, album_id: str) -> Result[AlbumPage]:
        async def run(client: SubsonicClient) -> AlbumPage:
            response = await client.get_album(album_id)
            return AlbumPage(
                album=transform_album(response, client.get_cover_art_url),
                songs=transform_songs(response.song, client.get_cover_art_url),
                songs_with_metadata=song_metadata_map(response.song),
            )

        return await self._call("getAlbum", run)

    async def get_artist(self, artist_id: str) -> Result[ArtistPage]:
        async def run(client: SubsonicClient) -> ArtistPage:
            response = await client.get_artist(artist_id)
            return ArtistPage(
                artist=transform_artist(response.to_artist(), client.get_cover_art_url),
                albums=transform_albums(response.album, client.get_cover_art_url),
            )

        return await self._call("getArtist", run)

    async def get_artists(self) -> Result[List[ArtistItem]]:
        async def run(client: SubsonicClient) -> List[ArtistItem]:
            response = await client.get_artists()
            entries = [entry for index in response.index for entry in index.artist]
            return transform_artists(entries, client.get_cover_art_url)

        return await self._call("getArtists", run)

    async def get_playlist(self, playlist_id: str) -> Result[PlaylistPage]:
        async def run(client: SubsonicClient) -> PlaylistPage:
            response = await client.get_playlist(playlist_id)
            return PlaylistPage(
                playlist=transform_playlist(response, client.get_cover_art_url),
                songs=transform_songs(response.entry, client.get_cover_art_url),
            )

        return await self._call("getPlaylist", run)

    async def get_playlists(self) -> Result[List[PlaylistItem]]:
        async def run(client: SubsonicClient) -> List[PlaylistItem]:
            response = await client.get_playlists()
            return transform_playlists(response.playlist, client.get_cover_art_url)

        return await self._call("getPlaylists", run)

    async def get_album_list2(self, list_type: str, size: int = 20, offset: int = 0) -> Result[List[AlbumItem]]:
        async def run(client: SubsonicClient) -> List[AlbumItem]:
            response = await client.get_album_list2(list_type, size, offset)
            return transform_albums(response.album, client.get_cover_art_url)

        return await self._call("getAlbumList2", run)

    async def get_starred2(self) -> Result[StarredResult]:
        async def run(client: SubsonicClient) -> StarredResult:
            response = await client.get_starred2()
            cover = client.get_cover_art_url
            return StarredResult(
                songs=transform_songs(response.song, cover),
                albums=transform_albums(response.album, cover),
                artists=transform_artists(response.artist, cover),
            )

        return await self._call("getStarred2", run)

    async def star(
        self, id: Optional[str] = None, album_id: Optional[str] = None, artist_id: Optional[str] = None
    ) -> Result[None]:
        """Star an item. Re-fetch starred lists to observe the change."""

        async def run(client: SubsonicClient) -> None:
            await client.star(id=id, album_id=album_id, artist_id=artist_id)

        return await self._call("star", run)

    async def unstar(
        self, id: Optional[str] = None, album_id: Optional[str] = None, artist_id: Optional[str] = None
    ) -> Result[None]:
        async def run(client: SubsonicClient) -> None:
            await client.unstar(id=id, album_id=album_id, artist_id=artist_id)

        return await self._call("unstar", run)

    def get_stream_url(self, song_id: str, max_bit_rate: Optional[int] = None, format: Optional[str] = None) -> str:
        """Signed stream URL for the media layer.

        Raises:
            NotInitializedError: If ``initialize`` has not been called
        """
        return self.client.get_stream_url(song_id, max_bit_rate=max_bit_rate, format=format)

    def get_cover_art_url(self, cover_art_id: str, size: Optional[int] = None) -> str:
        """Signed cover art URL.

        Raises:
            NotInitializedError: If ``initialize`` has not been called
        """
        return self.client.get_cover_art_url(cover_art_id, size=size)

    async def get_song_metadata(self, song_id: str) -> Result[SongMetadata]:
        """Technical metadata for a song, cached by id.

        Asks ``getSong`` first. When the server does not implement it, or
        leaves out the bitrate or sample rate, the stream's first MP3 frame
        header fills the gaps. Values the server did send are kept.
        """
        cached = self.metadata_cache.get(song_id)
        if cached is not None:
            return Result.success(cached)

        async def run(client: SubsonicClient) -> SongMetadata:
            metadata = await self._resolve_metadata(client, song_id)
            metadata = replace(metadata, bit_rate=normalize_bitrate(metadata.bit_rate))
            self.metadata_cache.set(song_id, metadata)
            return metadata

        return await self._call("getSongMetadata", run)

    async def _resolve_metadata(self, client: SubsonicClient, song_id: str) -> SongMetadata:
        child: Optional[Child]
        try:
            child = await client.get_song(song_id)
        except SubsonicHTTPError as e:
            if not e.is_unsupported_endpoint:
                raise
            logger.info(f"getSong unsupported (HTTP {e.status_code}); reading stream headers for {song_id}")
            child = None

        if child is None:
            stream_url = client.get_stream_url(song_id, format="mp3")
            content_length = await mp3.head_content_length(stream_url, client.http)
            parsed = await mp3.fetch_and_parse(stream_url, client.http, content_length)
            return SongMetadata(
                bit_rate=_kbps(parsed.best_bitrate),
                sampling_rate=parsed.sample_rate,
                size=content_length,
                content_type="audio/mpeg",
                suffix="mp3",
            )

        bit_rate = _positive(child.bitRate)
        sampling_rate = _positive(child.samplingRate)
        size = child.size

        if bit_rate is None or sampling_rate is None:
            logger.debug(
                f"Song {song_id} missing bitRate={child.bitRate} samplingRate={child.samplingRate}; "
                "reading stream headers"
            )
            stream_url = client.get_stream_url(child.id, format=child.suffix or "mp3")
            content_length = await mp3.head_content_length(stream_url, client.http)
            parsed = await mp3.fetch_and_parse(stream_url, client.http, content_length)
            if bit_rate is None:
                bit_rate = _kbps(parsed.best_bitrate)
            if sampling_rate is None:
                sampling_rate = parsed.sample_rate
            if size is None:
                size = content_length

        return SongMetadata(
            bit_rate=bit_rate,
            sampling_rate=sampling_rate,
            bit_depth=child.bitDepth,
            channel_count=child.channelCount,
            size=size,
            content_type=child.contentType,
            suffix=child.suffix,
        )

    def invalidate_metadata(self, song_id: str) -> bool:
        return self.metadata_cache.invalidate(song_id)

    def clear_metadata_cache(self) -> None:
        self.metadata_cache.clear()

    async def aclose(self) -> None:
        """Close the active client and any clients replaced by ``initialize``."""
        clients: List[SubsonicClient] = self._retired + ([self._client] if self._client else [])
        self._retired = []
        for client in clients:
            await client.aclose()
