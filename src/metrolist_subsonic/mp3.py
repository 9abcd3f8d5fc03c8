"""MP3 frame header parsing for servers that omit technical metadata.

Reads the first MPEG Layer III frame header of a stream prefix to recover
the bitrate and sample rate, and the Xing/Info/VBRI header (if any) to
compute an average bitrate for VBR files.

Frame header layout (4 bytes)::

    AAAAAAAA AAABBCCD EEEEFFGH ...
    A sync (11 bits set)   B version   C layer   D protection
    E bitrate index        F sample rate index   G padding

Parsing never raises: truncated or non-MP3 input yields an empty result.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

PREFETCH_BYTES = 128 * 1024
# Upper bound on the unranged fallback read, for servers that ignore Range
MAX_UNRANGED_BYTES = 1024 * 1024

# Layer III bitrates in kbps; index 0 (free format) and 15 (bad) are invalid
MPEG1_LAYER3_KBPS = (0, 32, 40, 48, 56, 64, 80, 96, 112, 128, 160, 192, 224, 256, 320)
MPEG2_LAYER3_KBPS = (0, 8, 16, 24, 32, 40, 48, 56, 64, 80, 96, 112, 128, 144, 160)

# Version bits: 00 = MPEG2.5, 10 = MPEG2, 11 = MPEG1 (01 is reserved)
MPEG1, MPEG2, MPEG25 = 3, 2, 0
SAMPLE_RATES = {
    MPEG1: (44100, 48000, 32000, 0),
    MPEG2: (22050, 24000, 16000, 0),
    MPEG25: (11025, 12000, 8000, 0),
}
LAYER3 = 1

# Xing/Info tag positions relative to the frame header (side info differs
# between stereo and mono)
XING_OFFSETS_MPEG1 = (32, 36, 21, 13)
XING_OFFSETS_MPEG2 = (17, 21, 13, 9)
VBRI_OFFSET = 32
XING_FRAMES_FLAG = 0x0001


@dataclass(frozen=True)
class Mp3ParseResult:
    """Outcome of parsing a stream prefix.

    Attributes:
        bitrate: First frame bitrate in bits/sec
        sample_rate: Sample rate in Hz
        avg_bitrate: Average bitrate in bits/sec, only when a VBR header
            frame count and the content length are both known
        vbr: True for Xing/VBRI headers (an "Info" header is CBR)
    """

    bitrate: Optional[int] = None
    sample_rate: Optional[int] = None
    avg_bitrate: Optional[int] = None
    vbr: bool = False

    @property
    def found(self) -> bool:
        return self.bitrate is not None or self.sample_rate is not None

    @property
    def best_bitrate(self) -> Optional[int]:
        """Average bitrate when available, else the first frame bitrate."""
        return self.avg_bitrate if self.avg_bitrate is not None else self.bitrate


EMPTY_RESULT = Mp3ParseResult()


def _u32(data: bytes, pos: int) -> int:
    return int.from_bytes(data[pos:pos + 4], "big")


def id3v2_size(data: bytes) -> int:
    """Length of a leading ID3v2 tag including its 10 byte header, else 0.

    The tag size is a 28-bit synchsafe integer: 7 bits from each of bytes
    6-9.
    """
    if len(data) < 10 or data[:3] != b"ID3":
        return 0
    size = ((data[6] & 0x7F) << 21) | ((data[7] & 0x7F) << 14) | ((data[8] & 0x7F) << 7) | (data[9] & 0x7F)
    return 10 + size


def _find_frame(data: bytes, offset: int):
    """Return (index, version_bits, bitrate_index, sample_rate_index) or None."""
    for i in range(offset, len(data) - 3):
        if data[i] != 0xFF or (data[i + 1] & 0xE0) != 0xE0:
            continue
        b2 = data[i + 1]
        version_bits = (b2 >> 3) & 0x03
        layer_bits = (b2 >> 1) & 0x03
        if layer_bits != LAYER3 or version_bits not in SAMPLE_RATES:
            continue
        b3 = data[i + 2]
        return i, version_bits, (b3 >> 4) & 0x0F, (b3 >> 2) & 0x03
    return None


def _vbr_frame_count(data: bytes, header: int, version_bits: int):
    """Look for Xing/Info/VBRI after the frame header.

    Returns:
        (vbr, frame_count) where frame_count may be None
    """
    offsets = XING_OFFSETS_MPEG1 if version_bits == MPEG1 else XING_OFFSETS_MPEG2
    vbr = False
    frame_count = None
    for off in offsets:
        p = header + off
        if p + 16 >= len(data):
            continue
        tag = data[p:p + 4]
        if tag in (b"Xing", b"Info"):
            vbr = tag == b"Xing"
            if _u32(data, p + 4) & XING_FRAMES_FLAG:
                frame_count = _u32(data, p + 8)
            break

    if not vbr:
        p = header + VBRI_OFFSET
        if p + 26 < len(data) and data[p:p + 4] == b"VBRI":
            vbr = True
            # version(2) delay(2) quality(2) bytes(4) precede the frame count
            frame_count = _u32(data, p + 14)

    return vbr, frame_count


def parse(data: bytes, content_length: Optional[int] = None) -> Mp3ParseResult:
    """Parse the first Layer III frame header in ``data``.

    Args:
        data: Stream prefix (raw bytes)
        content_length: Full stream length in bytes, if known

    Returns:
        Mp3ParseResult; all fields None when no frame sync was found

    Examples:
        >>> parse(bytes([0xFF, 0xFB, 0x90, 0x00]) + bytes(64))
        Mp3ParseResult(bitrate=128000, sample_rate=44100, avg_bitrate=None, vbr=False)
        >>> parse(b"ID")
        Mp3ParseResult(bitrate=None, sample_rate=None, avg_bitrate=None, vbr=False)
    """
    data = bytes(data or b"")
    offset = id3v2_size(data)
    if offset and offset >= len(data):
        logger.debug(f"ID3v2 tag ({offset} bytes) extends past the {len(data)} byte prefix")
        return EMPTY_RESULT

    frame = _find_frame(data, offset)
    if frame is None:
        return EMPTY_RESULT
    header, version_bits, bitrate_index, sample_rate_index = frame

    sample_rate = SAMPLE_RATES[version_bits][sample_rate_index] or None
    table = MPEG1_LAYER3_KBPS if version_bits == MPEG1 else MPEG2_LAYER3_KBPS
    bitrate = table[bitrate_index] * 1000 if 1 <= bitrate_index <= 14 else None

    if sample_rate is None:
        return Mp3ParseResult(bitrate=bitrate, sample_rate=None)

    vbr, frame_count = _vbr_frame_count(data, header, version_bits)

    avg_bitrate = None
    if frame_count and content_length and content_length > 0:
        samples_per_frame = 1152 if version_bits == MPEG1 else 576
        duration = frame_count * samples_per_frame / sample_rate
        if duration > 0:
            avg_bitrate = int(content_length * 8 / duration)

    return Mp3ParseResult(bitrate=bitrate, sample_rate=sample_rate, avg_bitrate=avg_bitrate, vbr=vbr)


def _total_length(response: httpx.Response) -> Optional[int]:
    """Full resource length from Content-Range (206) or Content-Length (200)."""
    content_range = response.headers.get("content-range", "")
    if "/" in content_range:
        total = content_range.rsplit("/", 1)[1].strip()
        return int(total) if total.isdigit() else None
    if response.status_code == 200:
        length = response.headers.get("content-length", "")
        return int(length) if length.isdigit() else None
    return None


async def _read_prefix(http_client: httpx.AsyncClient, stream_url: str, range_header: Optional[str]):
    headers = {"Range": range_header} if range_header else {}
    limit = PREFETCH_BYTES if range_header else MAX_UNRANGED_BYTES
    buffer = bytearray()
    async with http_client.stream("GET", stream_url, headers=headers) as response:
        response.raise_for_status()
        async for chunk in response.aiter_bytes():
            buffer.extend(chunk)
            if len(buffer) >= limit:
                break
        return bytes(buffer[:limit]), _total_length(response)


async def head_content_length(stream_url: str, http_client: httpx.AsyncClient) -> Optional[int]:
    """Content-Length of a stream via HEAD, or None on any failure."""
    try:
        response = await http_client.head(stream_url)
        if not response.is_success:
            logger.debug(f"HEAD returned {response.status_code}")
            return None
        value = response.headers.get("content-length")
        return int(value) if value else None
    except Exception as e:
        logger.debug(f"HEAD for content length failed: {e}")
        return None


async def fetch_and_parse(
    stream_url: str,
    http_client: httpx.AsyncClient,
    content_length: Optional[int] = None,
) -> Mp3ParseResult:
    """Fetch a stream prefix and parse its first frame header.

    Tries a 128 KiB ranged GET first, then an unranged GET. Each attempt
    is independent: an exception only moves on to the next attempt.

    Args:
        stream_url: Signed stream URL
        http_client: HTTP client to fetch with
        content_length: Known stream length; a HEAD request is made if None

    Returns:
        First parse result with a bitrate or sample rate, else an empty result
    """
    if content_length is None:
        content_length = await head_content_length(stream_url, http_client)

    for range_header in (f"bytes=0-{PREFETCH_BYTES - 1}", None):
        try:
            data, total = await _read_prefix(http_client, stream_url, range_header)
        except Exception as e:
            logger.debug(f"Stream prefetch failed (range={range_header}): {e}")
            continue
        parsed = parse(data, content_length if content_length is not None else total)
        if parsed.found:
            return parsed
        logger.debug(f"No MP3 frame header in {len(data)} bytes (range={range_header})")

    return EMPTY_RESULT
