"""Library sync between a Subsonic server and a local store.

The store is supplied by the application (a database, usually) and only
has to satisfy ``LibraryStore``. Starred songs, albums and artists and the
user's playlists are mirrored into it:

- remote items missing locally are inserted as starred
- local starred items no longer starred remotely are un-starred
- local items that exist but are not starred get starred

Servers that do not implement an endpoint (HTTP 404) are skipped silently.
Sync routines never raise; each returns a ``SyncReport``.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import ContextManager, List, Optional, Protocol, Sequence, Set

from .facade import Subsonic
from .result import Result

logger = logging.getLogger(__name__)

SONG = "song"
ALBUM = "album"
ARTIST = "artist"
PLAYLIST = "playlist"


@dataclass(frozen=True)
class LibraryRecord:
    """One locally stored item.

    Attributes:
        kind: "song", "album", "artist" or "playlist"
        id: Server id
        title: Display title
        thumbnail: Cover art URL, if any
        starred: Starred (for playlists: bookmarked) locally
        starred_at: When it was starred; server order is preserved by
            assigning descending timestamps
    """

    kind: str
    id: str
    title: str
    thumbnail: Optional[str] = None
    starred: bool = False
    starred_at: Optional[datetime] = None


class LibraryStore(Protocol):
    """Contract for the persistent store the sync writes through."""

    def get(self, kind: str, item_id: str) -> Optional[LibraryRecord]:
        ...  # pragma: no cover

    def insert(self, record: LibraryRecord) -> None:
        ...  # pragma: no cover

    def update(self, record: LibraryRecord) -> None:
        ...  # pragma: no cover

    def delete(self, kind: str, item_id: str) -> None:
        ...  # pragma: no cover

    def starred(self, kind: str) -> List[LibraryRecord]:
        """All records of ``kind`` currently starred."""
        ...  # pragma: no cover

    def transaction(self) -> ContextManager[None]:
        """Group writes; rolled back if the block raises."""
        ...  # pragma: no cover


@dataclass
class SyncReport:
    """Outcome of one sync routine."""

    kind: str
    inserted: int = 0
    updated: int = 0
    unstarred: int = 0
    skipped: bool = False
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


class LibrarySync:
    """Mirror server-side starred items and playlists into a LibraryStore."""

    def __init__(self, subsonic: Subsonic, store: LibraryStore):
        self.subsonic = subsonic
        self.store = store
        self._running: Set[str] = set()

    async def run_all(self) -> List[SyncReport]:
        return [
            await self.sync_starred_songs(),
            await self.sync_starred_albums(),
            await self.sync_starred_artists(),
            await self.sync_playlists(),
        ]

    async def sync_starred_songs(self) -> SyncReport:
        return await self._sync_starred(SONG)

    async def sync_starred_albums(self) -> SyncReport:
        return await self._sync_starred(ALBUM)

    async def sync_starred_artists(self) -> SyncReport:
        return await self._sync_starred(ARTIST)

    async def sync_playlists(self) -> SyncReport:
        if PLAYLIST in self._running:
            return SyncReport(PLAYLIST, skipped=True)
        self._running.add(PLAYLIST)
        try:
            result = await self.subsonic.get_playlists()
            report = SyncReport(PLAYLIST)
            if self._handle_failure(result, report):
                return report
            records = [
                LibraryRecord(PLAYLIST, p.id, p.title, thumbnail=p.thumbnail, starred=True)
                for p in result.value
            ]
            self._mirror(records, report, keep_order=False)
            return report
        finally:
            self._running.discard(PLAYLIST)

    async def toggle_star(self, record: LibraryRecord) -> Result[None]:
        """Flip the server-side star of ``record``; the store is not touched.

        Run the matching sync afterwards to observe the change locally.
        """
        action = self.subsonic.unstar if record.starred else self.subsonic.star
        if record.kind == ALBUM:
            return await action(album_id=record.id)
        if record.kind == ARTIST:
            return await action(artist_id=record.id)
        return await action(id=record.id)

    async def _sync_starred(self, kind: str) -> SyncReport:
        if kind in self._running:
            logger.debug(f"Starred {kind} sync already running")
            return SyncReport(kind, skipped=True)
        self._running.add(kind)
        try:
            result = await self.subsonic.get_starred2()
            report = SyncReport(kind)
            if self._handle_failure(result, report):
                return report

            starred = result.value
            items = {SONG: starred.songs, ALBUM: starred.albums, ARTIST: starred.artists}[kind]
            records = [
                LibraryRecord(kind, item.id, item.title, thumbnail=item.thumbnail or None, starred=True)
                for item in items
            ]
            self._mirror(records, report, keep_order=True)
            logger.info(
                f"Synced starred {kind}s: {report.inserted} inserted, "
                f"{report.updated} updated, {report.unstarred} unstarred"
            )
            return report
        finally:
            self._running.discard(kind)

    def _handle_failure(self, result: Result, report: SyncReport) -> bool:
        """Record a failed fetch on ``report``. Returns True if sync must stop."""
        if result.is_success:
            return False
        report.skipped = True
        if result.is_unsupported_endpoint:
            logger.debug(f"{report.kind} sync skipped: endpoint not supported by server")
        elif result.is_not_initialized:
            logger.debug(f"{report.kind} sync skipped: Subsonic not initialized")
        else:
            logger.error(f"{report.kind} sync failed: {result.error}")
            report.errors.append(str(result.error))
        return True

    def _mirror(self, remote: Sequence[LibraryRecord], report: SyncReport, keep_order: bool) -> None:
        kind = report.kind
        remote_ids = {record.id for record in remote}

        for local in self.store.starred(kind):
            if local.id in remote_ids:
                continue
            try:
                with self.store.transaction():
                    self.store.update(replace(local, starred=False, starred_at=None))
                report.unstarred += 1
            except Exception as e:
                logger.error(f"Failed to unstar local {kind} {local.id}: {e}")
                report.errors.append(str(e))

        now = datetime.now(timezone.utc)
        for index, record in enumerate(remote):
            # Earlier server entries get later timestamps so "newest first" matches the server
            starred_at = now - timedelta(seconds=index) if keep_order else now
            try:
                with self.store.transaction():
                    existing = self.store.get(kind, record.id)
                    if existing is None:
                        self.store.insert(replace(record, starred_at=starred_at))
                        report.inserted += 1
                    elif not existing.starred or existing.title != record.title:
                        self.store.update(
                            replace(
                                existing,
                                title=record.title,
                                thumbnail=record.thumbnail or existing.thumbnail,
                                starred=True,
                                starred_at=existing.starred_at if existing.starred else starred_at,
                            )
                        )
                        report.updated += 1
            except Exception as e:
                logger.error(f"Failed to store {kind} {record.id}: {e}")
                report.errors.append(str(e))
