"""Unit tests for Result and MetadataCache."""

import pytest

from metrolist_subsonic.cache import MetadataCache
from metrolist_subsonic.exceptions import NotInitializedError, SubsonicError, SubsonicHTTPError
from metrolist_subsonic.items import SongMetadata
from metrolist_subsonic.result import Result


class TestResult:

    def test_success(self):
        result = Result.success(3)
        assert result.is_success
        assert not result.is_failure
        assert result.get_or_none() == 3
        assert result.get_or_raise() == 3

    def test_success_with_none_value(self):
        result = Result.success(None)
        assert result.is_success
        assert result.get_or_raise() is None

    def test_failure(self):
        error = SubsonicError(40, "Wrong username or password")
        result = Result.failure(error)
        assert result.is_failure
        assert result.get_or_none() is None
        with pytest.raises(SubsonicError):
            result.get_or_raise()

    def test_failure_classification(self):
        assert Result.failure(NotInitializedError()).is_not_initialized
        assert Result.failure(SubsonicHTTPError(404)).is_unsupported_endpoint
        assert Result.failure(SubsonicHTTPError(501)).is_unsupported_endpoint
        assert not Result.failure(SubsonicHTTPError(500)).is_unsupported_endpoint
        assert not Result.success(1).is_unsupported_endpoint

    def test_map(self):
        assert Result.success(2).map(lambda v: v * 10).value == 20
        error = ValueError("bad")
        assert Result.failure(error).map(lambda v: v * 10).error is error
        assert isinstance(Result.success(0).map(lambda v: 1 / v).error, ZeroDivisionError)

    def test_callbacks_chain(self):
        seen = []
        Result.success("ok").on_success(seen.append).on_failure(seen.append)
        Result.failure(RuntimeError("x")).on_success(seen.append).on_failure(lambda e: seen.append(str(e)))
        assert seen == ["ok", "x"]


class TestMetadataCache:

    def test_set_get_invalidate(self):
        cache = MetadataCache()
        metadata = SongMetadata(bit_rate=320)

        cache.set("so-1", metadata)

        assert cache.get("so-1") is metadata
        assert "so-1" in cache
        assert len(cache) == 1
        assert cache.invalidate("so-1")
        assert not cache.invalidate("so-1")
        assert cache.get("so-1") is None

    def test_clear(self):
        cache = MetadataCache()
        cache.set("a", SongMetadata())
        cache.set("b", SongMetadata())

        cache.clear()

        assert len(cache) == 0
