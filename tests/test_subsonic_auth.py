"""Tests for Subsonic authentication implementation.

This test suite validates token generation, verification and the
per-request authentication parameters.
"""

import hashlib
import re

import pytest

from metrolist_subsonic.auth import (
    SALT_ALPHABET,
    create_auth_params,
    generate_salt,
    generate_token,
    verify_token,
)
from metrolist_subsonic.models import SubsonicCredentials


@pytest.fixture
def admin() -> SubsonicCredentials:
    return SubsonicCredentials(
        url="https://music.example.com",
        username="admin",
        password="sesame",
    )


class TestTokenGeneration:
    """Unit tests for token generation."""

    def test_generate_token_with_known_example(self):
        """Test against known example from Subsonic API documentation.

        Example from http://www.subsonic.org/pages/api.jsp:
        - username: admin
        - password: sesame
        - salt: c19b2d
        - token: 26719a1196d2a940705a59634eb18eab
        """
        assert generate_token("sesame", "c19b2d") == "26719a1196d2a940705a59634eb18eab"

    def test_token_is_md5_of_password_and_salt(self):
        assert generate_token("demo", "abc") == hashlib.md5(b"demoabc").hexdigest()
        assert re.match(r"^[a-f0-9]{32}$", generate_token("demo", "abc"))

    def test_unicode_password(self):
        expected = hashlib.md5("pässwörd✓salt".encode("utf-8")).hexdigest()
        assert generate_token("pässwörd✓", "salt") == expected

    def test_salt_shape(self):
        salt = generate_salt()
        assert len(salt) == 8
        assert set(salt) <= set(SALT_ALPHABET)
        assert len(generate_salt(16)) == 16

    def test_salts_are_unique(self):
        """Each request gets its own salt."""
        salts = {generate_salt() for _ in range(50)}
        assert len(salts) == 50


class TestTokenVerification:
    """Unit tests for token verification."""

    def test_verify_token_success(self):
        assert verify_token("testpass", generate_token("testpass", "salt1234"), "salt1234")

    def test_verify_token_wrong_token(self):
        assert not verify_token("testpass", "0" * 32, "salt1234")

    def test_verify_token_wrong_salt(self):
        token = generate_token("testpass", "salt1234")
        assert not verify_token("testpass", token, "other123")


class TestAuthParams:
    """Tests for authentication parameter creation."""

    def test_create_auth_params_default(self, admin: SubsonicCredentials):
        params = create_auth_params(admin, salt="c19b2d")

        assert params == {
            "u": "admin",
            "v": "1.16.1",
            "c": "Metrolist",
            "f": "json",
            "t": "26719a1196d2a940705a59634eb18eab",
            "s": "c19b2d",
        }

    def test_fresh_salt_per_call(self, admin: SubsonicCredentials):
        first = create_auth_params(admin)
        second = create_auth_params(admin)

        assert first["s"] != second["s"]
        assert verify_token("sesame", first["t"], first["s"])
        assert verify_token("sesame", second["t"], second["s"])

    def test_response_format(self, admin: SubsonicCredentials):
        assert create_auth_params(admin, response_format="xml")["f"] == "xml"

    def test_token_and_salt_passthrough(self):
        credentials = SubsonicCredentials(
            url="https://music.example.com",
            username="admin",
            password="ignored",
            token="precomputed",
            salt="fixed",
        )

        params = create_auth_params(credentials)

        assert params["t"] == "precomputed"
        assert params["s"] == "fixed"

    def test_no_secret_gives_base_fields_only(self):
        credentials = SubsonicCredentials(url="https://music.example.com", username="guest")

        params = create_auth_params(credentials)

        assert set(params) == {"u", "v", "c", "f"}
        assert "p" not in params

    def test_custom_client_name(self):
        credentials = SubsonicCredentials(
            url="https://music.example.com",
            username="admin",
            password="sesame",
            client_name="my-player",
            api_version="1.15.0",
        )

        params = create_auth_params(credentials)

        assert params["c"] == "my-player"
        assert params["v"] == "1.15.0"
