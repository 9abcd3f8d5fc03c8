"""In-memory song metadata cache.

Entries live for the lifetime of the owning facade; there is no TTL.
Concurrent fills for the same id are tolerated (last write wins), since
values are derived from the same server data.
"""

import logging
from typing import Dict, Optional

from .items import SongMetadata

logger = logging.getLogger(__name__)


class MetadataCache:
    """Song id -> SongMetadata map owned by a ``Subsonic`` facade."""

    def __init__(self):
        self._entries: Dict[str, SongMetadata] = {}

    def get(self, song_id: str) -> Optional[SongMetadata]:
        return self._entries.get(song_id)

    def set(self, song_id: str, metadata: SongMetadata) -> None:
        self._entries[song_id] = metadata

    def invalidate(self, song_id: str) -> bool:
        """Drop one entry. Returns True if it was cached."""
        return self._entries.pop(song_id, None) is not None

    def clear(self) -> None:
        """Clear all cache entries."""
        if self._entries:
            logger.debug(f"Clearing {len(self._entries)} cached song metadata entries")
        self._entries.clear()

    def __contains__(self, song_id: object) -> bool:
        return song_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
