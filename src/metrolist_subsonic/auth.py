"""Subsonic API authentication implementation.

This module implements token-based authentication for Subsonic-compatible APIs
using the MD5 salt+hash method described in the Subsonic API documentation.

Authentication Flow:
    1. Reuse a caller-supplied token+salt pair if one exists
    2. Otherwise generate a random 8 character salt from ``[a-zA-Z0-9-_]``
    3. Calculate MD5(password + salt) as lowercase hex
    4. Send ``t`` (token) and ``s`` (salt) alongside ``u``, ``v``, ``c``, ``f``

Example:
    >>> from metrolist_subsonic.models import SubsonicCredentials
    >>> credentials = SubsonicCredentials(
    ...     url="https://music.example.com",
    ...     username="admin",
    ...     password="sesame",
    ... )
    >>> params = create_auth_params(credentials, salt="c19b2d")
    >>> params["t"]
    '26719a1196d2a940705a59634eb18eab'

Security Notes:
    - The plaintext password is never transmitted
    - A fresh salt is generated for every request so a token is never reused
      with a mismatched salt
    - MD5 is mandated by the Subsonic protocol (obfuscation, not security)
"""

import hashlib
import secrets
import string
from typing import Dict, Optional

from .models import SubsonicCredentials

SALT_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits + "-_"
SALT_LENGTH = 8


def generate_salt(length: int = SALT_LENGTH) -> str:
    """Generate a random salt of ``length`` characters.

    Examples:
        >>> len(generate_salt())
        8
    """
    return "".join(secrets.choice(SALT_ALPHABET) for _ in range(length))


def generate_token(password: str, salt: str) -> str:
    """Compute the Subsonic auth token ``MD5(password + salt)``.

    Args:
        password: Plaintext password
        salt: Salt sent alongside the token

    Returns:
        32 lowercase hexadecimal characters

    Examples:
        >>> generate_token("sesame", "c19b2d")
        '26719a1196d2a940705a59634eb18eab'
    """
    return hashlib.md5(f"{password}{salt}".encode("utf-8")).hexdigest()


def verify_token(password: str, token: str, salt: str) -> bool:
    """Verify that a token matches the expected MD5(password + salt).

    This is primarily used for testing. In production the server verifies
    tokens, not the client.
    """
    return token == generate_token(password, salt)


def create_auth_params(
    credentials: SubsonicCredentials,
    salt: Optional[str] = None,
    response_format: str = "json",
) -> Dict[str, str]:
    """Create the authentication query parameters for one request.

    Resolution order:
        - token+salt supplied in the credentials: passed through unchanged
        - password present: fresh (or injected) salt, token = MD5(password + salt)
        - neither: base fields only; the server answers with an auth failure

    Args:
        credentials: Server credentials
        salt: Optional fixed salt, for deterministic tests only
        response_format: Response format, "json" or "xml" (default: "json")

    Returns:
        Dictionary with u, v, c, f and, when derivable, t and s
    """
    params = {
        "u": credentials.username,
        "v": credentials.api_version,
        "c": credentials.client_name,
        "f": response_format,
    }

    if credentials.has_token:
        params["t"] = credentials.token
        params["s"] = credentials.salt
    elif credentials.password is not None:
        if salt is None:
            salt = generate_salt()
        params["t"] = generate_token(credentials.password, salt)
        params["s"] = salt

    return params
