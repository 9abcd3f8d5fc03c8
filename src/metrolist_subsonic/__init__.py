"""Subsonic API client with MP3 header fallback for song metadata."""

__version__ = "1.0.0"

from .auth import create_auth_params, generate_salt, generate_token, verify_token
from .cache import MetadataCache
from .client import SubsonicClient, unwrap_envelope
from .config import ClientSettings, credentials_from_environment
from .exceptions import (
    ClientVersionTooOldError,
    FlexibleDecodeError,
    MalformedResponseError,
    NotInitializedError,
    ServerVersionTooOldError,
    SubsonicAuthenticationError,
    SubsonicAuthorizationError,
    SubsonicError,
    SubsonicHTTPError,
    SubsonicNotFoundError,
    SubsonicParameterError,
    SubsonicTrialError,
    SubsonicVersionError,
    TokenAuthenticationNotSupportedError,
    is_unsupported_endpoint,
)
from .facade import Subsonic
from .items import (
    AlbumItem,
    AlbumPage,
    AlbumRef,
    ArtistItem,
    ArtistPage,
    ArtistRef,
    PlaylistItem,
    PlaylistPage,
    SearchResult,
    SongItem,
    SongMetadata,
    StarredResult,
)
from .models import SubsonicCredentials
from .mp3 import Mp3ParseResult
from .result import Result
from .sync import LibraryRecord, LibraryStore, LibrarySync, SyncReport
from .transform import normalize_bitrate

__all__ = [
    # Facade and client
    "Subsonic",
    "SubsonicClient",
    "SubsonicCredentials",
    "ClientSettings",
    "credentials_from_environment",
    "unwrap_envelope",
    "Result",
    "MetadataCache",
    # Items
    "SongItem",
    "AlbumItem",
    "ArtistItem",
    "PlaylistItem",
    "ArtistRef",
    "AlbumRef",
    "SearchResult",
    "StarredResult",
    "AlbumPage",
    "ArtistPage",
    "PlaylistPage",
    "SongMetadata",
    "Mp3ParseResult",
    "normalize_bitrate",
    # Sync
    "LibrarySync",
    "LibraryStore",
    "LibraryRecord",
    "SyncReport",
    # Authentication
    "generate_salt",
    "generate_token",
    "verify_token",
    "create_auth_params",
    # Exceptions
    "SubsonicError",
    "NotInitializedError",
    "MalformedResponseError",
    "FlexibleDecodeError",
    "SubsonicHTTPError",
    "is_unsupported_endpoint",
    "SubsonicAuthenticationError",
    "TokenAuthenticationNotSupportedError",
    "ClientVersionTooOldError",
    "ServerVersionTooOldError",
    "SubsonicAuthorizationError",
    "SubsonicNotFoundError",
    "SubsonicParameterError",
    "SubsonicTrialError",
    "SubsonicVersionError",
]
