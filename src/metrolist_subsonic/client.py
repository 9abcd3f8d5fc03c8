"""HTTP client for Subsonic API v1.16.1."""

import logging
from typing import Any, Dict, Optional, Type, TypeVar
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx

from .auth import create_auth_params
from .config import ClientSettings
from .decoders import flexible_int
from .exceptions import (
    MalformedResponseError,
    SubsonicHTTPError,
    error_for_code,
)
from .models import (
    AlbumID3WithSongs,
    AlbumList2,
    ArtistsID3,
    ArtistWithAlbumsID3,
    Child,
    MusicFolders,
    Playlists,
    PlaylistWithSongs,
    SearchResult3,
    Starred2,
    SubsonicCredentials,
    SubsonicStatus,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Keys that belong to the envelope itself, never to an endpoint payload
ENVELOPE_KEYS = frozenset({"status", "version", "type", "serverVersion", "openSubsonic", "error"})

# Query parameters that must not appear in logs
_SECRET_PARAMS = frozenset({"t", "s", "p"})


def unwrap_envelope(document: Any) -> Any:
    """Extract the endpoint payload from a decoded Subsonic JSON document.

    The payload key differs per endpoint (``searchResult3``, ``albumList2``,
    ...), so it is located generically: every key that is not part of the
    envelope is a data field. With exactly one data field its value is the
    payload; otherwise (ping, star) the filtered object itself is.

    Args:
        document: Parsed JSON body

    Returns:
        Payload value (usually a dict)

    Raises:
        MalformedResponseError: If the envelope or its status is missing
        SubsonicError: Typed by error code when status is "failed"

    Examples:
        >>> unwrap_envelope({"subsonic-response": {"status": "ok", "version": "1.16.1",
        ...                  "albumList2": {"album": []}}})
        {'album': []}
        >>> unwrap_envelope({"subsonic-response": {"status": "ok", "version": "1.16.1"}})
        {}
    """
    if not isinstance(document, dict):
        raise MalformedResponseError("body is not a JSON object")

    response = document.get("subsonic-response")
    if not isinstance(response, dict):
        raise MalformedResponseError("missing subsonic-response")

    status = response.get("status")
    if not isinstance(status, str):
        raise MalformedResponseError("missing status in response")

    if status == "failed":
        error = response.get("error")
        if not isinstance(error, dict):
            error = {}
        try:
            code = flexible_int(error.get("code"), "code") or 0
        except MalformedResponseError:
            code = 0
        message = error.get("message") or "Unknown error"
        logger.error(f"Subsonic API error {code}: {message}")
        raise error_for_code(code, message)

    if status != "ok":
        raise MalformedResponseError(f"unexpected status {status!r}")

    data_fields = {key: value for key, value in response.items() if key not in ENVELOPE_KEYS}
    if len(data_fields) == 1:
        return next(iter(data_fields.values()))
    return data_fields


def redact_url(url: str) -> str:
    """Strip credential parameters from a URL before logging it."""
    parts = urlsplit(url)
    params = [
        (k, "***" if k in _SECRET_PARAMS else v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(params, safe="*")))


class SubsonicClient:
    """Asynchronous HTTP client for Subsonic API v1.16.1.

    This client implements the consumed part of the Subsonic REST API with:
    - Token-based authentication (MD5 salt+hash), fresh salt per request
    - Generic envelope unwrapping with typed exceptions
    - Connection pooling and timeout configuration
    - Signed stream/cover art URLs for direct fetching by a media layer

    Attributes:
        credentials: SubsonicCredentials with server connection details
        http: httpx.AsyncClient used for every request

    Example:
        >>> credentials = SubsonicCredentials(
        ...     url="https://music.example.com",
        ...     username="john",
        ...     password="secret"
        ... )
        >>> async with SubsonicClient(credentials) as client:
        ...     await client.ping()
        ...     result = await client.search3("queen")
    """

    def __init__(
        self,
        credentials: SubsonicCredentials,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[ClientSettings] = None,
    ):
        """Initialize Subsonic API client.

        Args:
            credentials: Server URL and credentials
            http_client: Optional preconfigured httpx.AsyncClient (tests inject
                one backed by httpx.MockTransport)
            settings: Transport settings (default: from environment)
        """
        self.credentials = credentials
        self.settings = settings or ClientSettings.from_environment()
        self._owns_http = http_client is None

        root = credentials.url.rstrip("/")
        path_segment = (credentials.base_path or "").strip().strip("/")
        self._base_url = f"{root}/{path_segment}" if path_segment else root

        if http_client is None:
            http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(
                    connect=self.settings.connect_timeout,
                    read=self.settings.read_timeout,
                    write=self.settings.write_timeout,
                    pool=self.settings.pool_timeout,
                ),
                limits=httpx.Limits(
                    max_connections=100,
                    max_keepalive_connections=20,
                    keepalive_expiry=5.0,
                ),
                follow_redirects=True,
            )
        self.http = http_client

        logger.info(f"Initialized Subsonic client for {self._base_url}")

    @property
    def base_url(self) -> str:
        return self._base_url

    def get_auth_params(self) -> Dict[str, str]:
        """Authentication parameters for one request (never reused)."""
        return create_auth_params(self.credentials)

    def build_url(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> str:
        """Build a signed URL for an API endpoint.

        Auth parameters are computed fresh and merged first; endpoint
        parameters never override them. ``None`` values are dropped.

        Args:
            endpoint: API endpoint name, with or without ".view"
            params: Endpoint-specific query parameters

        Returns:
            Full URL, e.g. ``https://host/music/rest/stream.view?u=...&id=1``
        """
        if not endpoint.endswith(".view"):
            endpoint = f"{endpoint}.view"

        query = self.get_auth_params()
        for key, value in (params or {}).items():
            if value is None:
                continue
            if key in query:
                logger.debug(f"Ignoring endpoint parameter {key!r}: reserved for authentication")
                continue
            query[key] = str(value).lower() if isinstance(value, bool) else str(value)

        return f"{self._base_url}/rest/{endpoint}?{urlencode(query)}"

    async def request(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        model: Optional[Type[T]] = None,
    ) -> Any:
        """Issue a GET request and return the decoded payload.

        Args:
            endpoint: API endpoint name
            params: Endpoint-specific query parameters
            model: Optional class with a ``from_dict`` classmethod

        Returns:
            Instance of ``model`` or the raw payload

        Raises:
            SubsonicHTTPError: For non-2xx HTTP statuses
            MalformedResponseError: If the body is not a Subsonic envelope
            SubsonicError: For ``status: failed`` responses
            httpx.TransportError: For network failures (propagated as-is)
        """
        url = self.build_url(endpoint, params)
        debug = self.settings.debug

        try:
            response = await self.http.get(url)
        except httpx.HTTPError as e:
            if debug:
                logger.debug(f"Request failed url={redact_url(url)} exception={e}")
            raise

        if debug:
            logger.debug(f"GET {response.status_code} url={redact_url(url)}")

        if not response.is_success:
            raise SubsonicHTTPError(response.status_code, redact_url(url))

        try:
            document = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"body is not JSON ({e})") from e

        if debug and isinstance(document, dict):
            envelope = document.get("subsonic-response")
            keys = sorted(envelope) if isinstance(envelope, dict) else None
            logger.debug(f"Body keys={sorted(document)} envelopeKeys={keys}")

        payload = unwrap_envelope(document)
        if model is SubsonicStatus:
            # data-less endpoints describe the envelope itself
            return SubsonicStatus.from_dict(document["subsonic-response"])
        if model is None:
            return payload
        return decode_payload(model, payload)

    async def ping(self) -> SubsonicStatus:
        """Test server connectivity and authentication."""
        logger.debug(f"Pinging Subsonic server at {self._base_url}")
        status = await self.request("ping", model=SubsonicStatus)
        logger.info("Subsonic ping successful")
        return status

    async def get_music_folders(self) -> MusicFolders:
        return await self.request("getMusicFolders", model=MusicFolders)

    async def get_indexes(
        self, music_folder_id: Optional[str] = None, if_modified_since: Optional[int] = None
    ) -> ArtistsID3:
        return await self.request(
            "getIndexes",
            {"musicFolderId": music_folder_id, "ifModifiedSince": if_modified_since},
            model=ArtistsID3,
        )

    async def get_artists(self, music_folder_id: Optional[str] = None) -> ArtistsID3:
        """Get all artists organized by ID3 tags."""
        logger.debug(f"Fetching artists (folder={music_folder_id})")
        return await self.request("getArtists", {"musicFolderId": music_folder_id}, model=ArtistsID3)

    async def get_album(self, album_id: str) -> AlbumID3WithSongs:
        logger.debug(f"Fetching album: {album_id}")
        return await self.request("getAlbum", {"id": album_id}, model=AlbumID3WithSongs)

    async def get_artist(self, artist_id: str) -> ArtistWithAlbumsID3:
        logger.debug(f"Fetching artist: {artist_id}")
        return await self.request("getArtist", {"id": artist_id}, model=ArtistWithAlbumsID3)

    async def search3(
        self,
        query: str,
        song_count: int = 50,
        album_count: int = 50,
        artist_count: int = 50,
    ) -> SearchResult3:
        """Search for artists, albums and songs (ID3)."""
        logger.debug(
            f"Searching: query='{query}', songs={song_count}, "
            f"albums={album_count}, artists={artist_count}"
        )
        return await self.request(
            "search3",
            {
                "query": query,
                "songCount": song_count,
                "albumCount": album_count,
                "artistCount": artist_count,
            },
            model=SearchResult3,
        )

    async def get_album_list2(
        self,
        list_type: str,
        size: int = 20,
        offset: int = 0,
        music_folder_id: Optional[str] = None,
    ) -> AlbumList2:
        """Get a list of albums, e.g. "random", "newest", "frequent"."""
        return await self.request(
            "getAlbumList2",
            {"type": list_type, "size": size, "offset": offset, "musicFolderId": music_folder_id},
            model=AlbumList2,
        )

    async def get_song(self, song_id: str) -> Child:
        """Fetch a single song with its full technical metadata."""
        logger.debug(f"Fetching song: {song_id}")
        return await self.request("getSong", {"id": song_id}, model=Child)

    async def get_playlists(self) -> Playlists:
        return await self.request("getPlaylists", model=Playlists)

    async def get_playlist(self, playlist_id: str) -> PlaylistWithSongs:
        logger.debug(f"Fetching playlist: {playlist_id}")
        return await self.request("getPlaylist", {"id": playlist_id}, model=PlaylistWithSongs)

    async def get_starred2(self) -> Starred2:
        """Get starred songs, albums, and artists using ID3 tags."""
        logger.debug("Fetching starred items (ID3)")
        return await self.request("getStarred2", model=Starred2)

    async def star(
        self,
        id: Optional[str] = None,
        album_id: Optional[str] = None,
        artist_id: Optional[str] = None,
    ) -> SubsonicStatus:
        """Star (favorite) a song, album or artist."""
        logger.debug(f"Starring id={id} albumId={album_id} artistId={artist_id}")
        return await self.request(
            "star", {"id": id, "albumId": album_id, "artistId": artist_id}, model=SubsonicStatus
        )

    async def unstar(
        self,
        id: Optional[str] = None,
        album_id: Optional[str] = None,
        artist_id: Optional[str] = None,
    ) -> SubsonicStatus:
        """Unstar (unfavorite) a song, album or artist."""
        logger.debug(f"Unstarring id={id} albumId={album_id} artistId={artist_id}")
        return await self.request(
            "unstar", {"id": id, "albumId": album_id, "artistId": artist_id}, model=SubsonicStatus
        )

    def get_stream_url(
        self, track_id: str, max_bit_rate: Optional[int] = None, format: Optional[str] = None
    ) -> str:
        """Signed streaming URL for a track. No request is sent."""
        url = self.build_url("stream", {"id": track_id, "maxBitRate": max_bit_rate, "format": format})
        logger.debug(f"Generated stream URL for track {track_id}")
        return url

    def get_cover_art_url(self, cover_art_id: str, size: Optional[int] = None) -> str:
        """Signed cover art URL. No request is sent."""
        return self.build_url("getCoverArt", {"id": cover_art_id, "size": size})

    async def aclose(self):
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            await self.http.aclose()
            logger.info("Closed Subsonic client")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()


def decode_payload(model: Type[T], payload: Any) -> T:
    """Decode an unwrapped payload into ``model``.

    Raises:
        MalformedResponseError: If the payload shape does not fit the model
    """
    if not isinstance(payload, dict):
        raise MalformedResponseError(f"{model.__name__} payload is {type(payload).__name__}, expected object")
    try:
        return model.from_dict(payload)
    except KeyError as e:
        raise MalformedResponseError(f"{model.__name__} missing required field {e}") from e
    except (TypeError, ValueError) as e:
        raise MalformedResponseError(f"{model.__name__} could not be decoded ({e})") from e
