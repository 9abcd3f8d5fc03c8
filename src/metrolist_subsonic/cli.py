"""
Command line interface for checking a Subsonic server.

Credentials come from SUBSONIC_URL, SUBSONIC_USERNAME, SUBSONIC_PASSWORD
and (optionally) SUBSONIC_BASE_PATH.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .config import ClientSettings, credentials_from_environment
from .facade import Subsonic
from .logger import setup_logging
from .result import Result

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="metrolist-subsonic",
        description="Query a Subsonic/OpenSubsonic server",
        epilog="Example: metrolist-subsonic search 'bohemian rhapsody'",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("ping", help="Check connectivity and credentials")

    search = subparsers.add_parser("search", help="Search songs, albums and artists")
    search.add_argument("query")
    search.add_argument("--limit", type=int, default=10, help="Results per type (default: 10)")

    metadata = subparsers.add_parser("metadata", help="Show technical metadata for a song")
    metadata.add_argument("song_id")

    subparsers.add_parser("starred", help="List starred items")

    stream = subparsers.add_parser("stream-url", help="Print a signed stream URL")
    stream.add_argument("song_id")
    stream.add_argument("--max-bit-rate", type=int)
    stream.add_argument("--format")

    return parser


def _report_failure(result: Result) -> int:
    print(f"Error: {result.error}", file=sys.stderr)
    return 1


async def run_command(args: argparse.Namespace, subsonic: Subsonic) -> int:
    if args.command == "ping":
        result = await subsonic.ping()
        if result.is_failure:
            return _report_failure(result)
        status = result.value
        server = f", {status.type} {status.serverVersion}" if status.type else ""
        print(f"OK (API {status.version}{server})")
        return 0

    if args.command == "search":
        result = await subsonic.search3(args.query, args.limit, args.limit, args.limit)
        if result.is_failure:
            return _report_failure(result)
        found = result.value
        for song in found.songs:
            artists = ", ".join(a.name for a in song.artists)
            print(f"song    {song.id:>12}  {artists} - {song.title}")
        for album in found.albums:
            print(f"album   {album.id:>12}  {album.title} ({album.year or '?'})")
        for artist in found.artists:
            print(f"artist  {artist.id:>12}  {artist.title}")
        return 0

    if args.command == "metadata":
        result = await subsonic.get_song_metadata(args.song_id)
        if result.is_failure:
            return _report_failure(result)
        meta = result.value
        print(f"Bit rate:      {meta.bit_rate} kbps")
        print(f"Sampling rate: {meta.sampling_rate} Hz")
        print(f"Bit depth:     {meta.bit_depth}")
        print(f"Channels:      {meta.channel_count}")
        print(f"Size:          {meta.size} bytes")
        print(f"Content type:  {meta.content_type} ({meta.suffix})")
        return 0

    if args.command == "starred":
        result = await subsonic.get_starred2()
        if result.is_failure:
            return _report_failure(result)
        starred = result.value
        print(f"Starred: songs={len(starred.songs)} albums={len(starred.albums)} artists={len(starred.artists)}")
        return 0

    if args.command == "stream-url":
        print(subsonic.get_stream_url(args.song_id, max_bit_rate=args.max_bit_rate, format=args.format))
        return 0

    raise ValueError(f"Unknown command: {args.command}")


async def _main(args: argparse.Namespace) -> int:
    subsonic = Subsonic()
    settings = ClientSettings.from_environment()
    if args.verbose:
        settings.debug = True
    subsonic.initialize(credentials_from_environment(), settings=settings)
    try:
        return await run_command(args, subsonic)
    finally:
        await subsonic.aclose()


def main(argv: Optional[List[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.verbose else None)

    try:
        return asyncio.run(_main(args))
    except EnvironmentError as e:
        logger.error(str(e))
        return 2
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
