"""Unit tests for MP3 frame header parsing and stream prefetch."""

import httpx
import pytest

from metrolist_subsonic import mp3
from metrolist_subsonic.mp3 import Mp3ParseResult, id3v2_size, parse

# MPEG1 Layer III, 128 kbps, 44100 Hz
CBR_128_44100 = bytes([0xFF, 0xFB, 0x90, 0x00])
# MPEG1 Layer III, 128 kbps, 48000 Hz
CBR_128_48000 = bytes([0xFF, 0xFB, 0x94, 0x00])
# MPEG2 Layer III, 64 kbps, 22050 Hz
MPEG2_64_22050 = bytes([0xFF, 0xF3, 0x80, 0x00])
# MPEG2 Layer III, 64 kbps, 24000 Hz
MPEG2_64_24000 = bytes([0xFF, 0xF3, 0x84, 0x00])


def id3_tag(body: bytes) -> bytes:
    size = len(body)
    synchsafe = bytes([(size >> 21) & 0x7F, (size >> 14) & 0x7F, (size >> 7) & 0x7F, size & 0x7F])
    return b"ID3" + bytes([3, 0, 0]) + synchsafe + body


def with_tag_at(header: bytes, offset: int, tag: bytes, total: int = 512) -> bytes:
    frame = bytearray(header + bytes(total - len(header)))
    frame[offset:offset + len(tag)] = tag
    return bytes(frame)


def xing(frames: int, name: bytes = b"Xing") -> bytes:
    return name + (1).to_bytes(4, "big") + frames.to_bytes(4, "big")


def vbri(frames: int) -> bytes:
    # version, delay, quality, byte count, frame count
    return b"VBRI" + bytes(2) + bytes(2) + bytes(2) + (960000).to_bytes(4, "big") + frames.to_bytes(4, "big")


class TestParse:

    def test_cbr_frame(self):
        result = parse(CBR_128_44100 + bytes(100))
        assert result == Mp3ParseResult(bitrate=128000, sample_rate=44100)
        assert result.found
        assert result.best_bitrate == 128000

    def test_four_byte_buffer(self):
        assert parse(CBR_128_44100).bitrate == 128000

    def test_mpeg2_tables(self):
        result = parse(MPEG2_64_22050 + bytes(100))
        assert result.bitrate == 64000
        assert result.sample_rate == 22050

    def test_id3v2_tag_is_skipped(self):
        # A sync pattern inside the tag must not be mistaken for audio
        tag = id3_tag(bytes([0xFF, 0xFB, 0x50, 0x00]) + bytes(6))
        result = parse(tag + CBR_128_44100 + bytes(100))
        assert result.bitrate == 128000

    def test_id3v2_size(self):
        assert id3v2_size(id3_tag(bytes(300))) == 310
        assert id3v2_size(b"ID3") == 0
        assert id3v2_size(CBR_128_44100 + bytes(20)) == 0

    def test_id3v2_tag_longer_than_prefix(self):
        data = b"ID3" + bytes([3, 0, 0, 0x00, 0x00, 0x7F, 0x7F]) + bytes(100)
        assert parse(data) == mp3.EMPTY_RESULT

    def test_garbage_before_frame(self):
        result = parse(b"\x00\x12\xff\x00junk" + CBR_128_44100 + bytes(40))
        assert result.sample_rate == 44100

    def test_non_layer3_sync_is_skipped(self):
        layer2 = bytes([0xFF, 0xFD, 0x90, 0x00])
        result = parse(layer2 + bytes(8) + MPEG2_64_22050 + bytes(40))
        assert result.bitrate == 64000

    def test_invalid_bitrate_index(self):
        result = parse(bytes([0xFF, 0xFB, 0xF0, 0x00]) + bytes(40))
        assert result.bitrate is None
        assert result.sample_rate == 44100
        assert result.found

    def test_reserved_sample_rate(self):
        result = parse(bytes([0xFF, 0xFB, 0x9C, 0x00]) + bytes(100))
        assert result.bitrate == 128000
        assert result.sample_rate is None

    @pytest.mark.parametrize("data", [b"", b"ID", b"\xff\xfb\x90", bytes(1000), b"not an mp3 at all"])
    def test_nothing_found(self, data):
        result = parse(data)
        assert not result.found
        assert result.best_bitrate is None

    def test_xing_average_bitrate(self):
        data = with_tag_at(CBR_128_48000, 36, xing(1000))
        result = parse(data, content_length=960000)
        assert result.vbr
        assert result.bitrate == 128000
        # 1000 frames * 1152 samples / 48000 Hz = 24 s
        assert result.avg_bitrate == 320000
        assert result.best_bitrate == 320000

    def test_xing_without_content_length(self):
        result = parse(with_tag_at(CBR_128_48000, 36, xing(1000)))
        assert result.vbr
        assert result.avg_bitrate is None
        assert result.best_bitrate == 128000

    def test_info_header_is_cbr(self):
        result = parse(with_tag_at(CBR_128_48000, 36, xing(1000, b"Info")), content_length=960000)
        assert not result.vbr
        assert result.avg_bitrate == 320000

    def test_xing_mono_offset(self):
        result = parse(with_tag_at(CBR_128_48000, 21, xing(500)), content_length=480000)
        assert result.vbr
        assert result.avg_bitrate == 320000

    @pytest.mark.parametrize("offset", [17, 21, 13, 9])
    def test_mpeg2_xing_uses_576_samples_per_frame(self, offset):
        result = parse(with_tag_at(MPEG2_64_24000, offset, xing(1000)), content_length=240000)
        assert result.vbr
        assert result.bitrate == 64000
        assert result.sample_rate == 24000
        # 1000 frames * 576 samples / 24000 Hz = 24 s
        assert result.avg_bitrate == 80000

    def test_mpeg2_ignores_mpeg1_offset(self):
        result = parse(with_tag_at(MPEG2_64_24000, 36, xing(1000)), content_length=240000)
        assert not result.vbr
        assert result.avg_bitrate is None

    def test_vbri_header(self):
        result = parse(with_tag_at(CBR_128_48000, 32, vbri(1000)), content_length=960000)
        assert result.vbr
        assert result.avg_bitrate == 320000

    def test_xing_tag_truncated(self):
        data = CBR_128_48000 + bytes(32) + b"Xing" + bytes(4)
        result = parse(data, content_length=960000)
        assert not result.vbr
        assert result.avg_bitrate is None


STREAM_URL = "https://music.example.com/rest/stream.view?id=so-1"


def frame_stream() -> bytes:
    return with_tag_at(CBR_128_48000, 36, xing(1000), total=4096)


class TestFetchAndParse:

    @pytest.mark.asyncio
    async def test_ranged_request(self):
        data = frame_stream()
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.headers.get("Range")))
            if request.method == "HEAD":
                return httpx.Response(200, headers={"Content-Length": "960000"})
            return httpx.Response(206, content=data, headers={"Content-Range": "bytes 0-4095/960000"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            result = await mp3.fetch_and_parse(STREAM_URL, http)

        assert seen == [("HEAD", None), ("GET", "bytes=0-131071")]
        assert result.avg_bitrate == 320000

    @pytest.mark.asyncio
    async def test_known_length_skips_head(self):
        methods = []

        def handler(request: httpx.Request) -> httpx.Response:
            methods.append(request.method)
            return httpx.Response(206, content=CBR_128_44100 + bytes(64))

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            result = await mp3.fetch_and_parse(STREAM_URL, http, content_length=5000000)

        assert methods == ["GET"]
        assert result.bitrate == 128000

    @pytest.mark.asyncio
    async def test_range_rejected_falls_back_to_unranged(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "HEAD":
                return httpx.Response(405)
            if "Range" in request.headers:
                return httpx.Response(416)
            return httpx.Response(200, content=frame_stream())

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            result = await mp3.fetch_and_parse(STREAM_URL, http)

        assert result.bitrate == 128000
        # Content-Length of the unranged 200 response is the full length
        assert result.avg_bitrate == 4096 * 8 * 1000 // 24000

    @pytest.mark.asyncio
    async def test_everything_fails(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            result = await mp3.fetch_and_parse(STREAM_URL, http)

        assert result == mp3.EMPTY_RESULT

    @pytest.mark.asyncio
    async def test_head_content_length(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"Content-Length": "12345"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            assert await mp3.head_content_length(STREAM_URL, http) == 12345
