"""Exception classes for the Subsonic client."""

from typing import Optional

# HTTP statuses that mean "this server does not implement the endpoint"
UNSUPPORTED_ENDPOINT_STATUSES = frozenset({404, 405, 501})


class NotInitializedError(RuntimeError):
    """Raised when the facade is used before ``initialize()``.

    Callers treat this as "feature unavailable" rather than a hard error.
    """

    def __init__(self, message: str = "Subsonic not initialized. Call Subsonic.initialize() first."):
        super().__init__(message)
        self.message = message


class SubsonicError(Exception):
    """Base exception for all Subsonic API errors.

    Attributes:
        code: Subsonic error code
        message: Error message from server
    """

    def __init__(self, code: int, message: str):
        """Initialize Subsonic error.

        Args:
            code: Subsonic error code (0, 10, 20, 30, 40, 50, 60, 70)
            message: Human-readable error message
        """
        self.code = code
        self.message = message
        super().__init__(f"Subsonic Error {code}: {message}")


class MalformedResponseError(SubsonicError):
    """Response body is not a valid Subsonic envelope.

    Distinguishable from a server-side ``failed`` status by its message,
    which always starts with "Invalid response format".
    """

    def __init__(self, message: str):
        super().__init__(0, f"Invalid response format: {message}")


class FlexibleDecodeError(MalformedResponseError):
    """A field arrived in a JSON shape that cannot be coerced."""

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = value
        super().__init__(f"field {field!r} has incompatible type {type(value).__name__}")


class SubsonicHTTPError(SubsonicError):
    """HTTP-level failure (non-2xx status).

    Attributes:
        status_code: HTTP status returned by the server
        url: Request URL with credentials redacted
    """

    def __init__(self, status_code: int, url: Optional[str] = None):
        self.status_code = status_code
        self.url = url
        super().__init__(0, f"HTTP {status_code} for {url or 'request'}")

    @property
    def is_unsupported_endpoint(self) -> bool:
        """True when the server does not implement the requested endpoint."""
        return self.status_code in UNSUPPORTED_ENDPOINT_STATUSES


class SubsonicAuthenticationError(SubsonicError):
    """Authentication failed (error codes 40, 41).

    Raised when username/password is incorrect or token auth is not supported.
    """

    pass


class TokenAuthenticationNotSupportedError(SubsonicError):
    """Token authentication not supported (code 42)."""

    pass


class ClientVersionTooOldError(SubsonicError):
    """Client must upgrade (code 43)."""

    pass


class ServerVersionTooOldError(SubsonicError):
    """Server must upgrade (code 44)."""

    pass


class SubsonicAuthorizationError(SubsonicError):
    """User not authorized for requested action (error code 50)."""

    pass


class SubsonicNotFoundError(SubsonicError):
    """Requested resource not found (error code 70)."""

    pass


class SubsonicVersionError(SubsonicError):
    """API version incompatibility (error codes 20, 30)."""

    pass


class SubsonicParameterError(SubsonicError):
    """Required parameter missing (error code 10)."""

    pass


class SubsonicTrialError(SubsonicError):
    """Trial period expired (error code 60)."""

    pass


def error_for_code(code: int, message: str) -> SubsonicError:
    """Build the typed exception for a ``status: failed`` error code.

    Args:
        code: Error code from the envelope's ``error`` object
        message: Error message from the envelope

    Returns:
        SubsonicError subclass instance matching the code
    """
    if code in (40, 41):
        return SubsonicAuthenticationError(code, message)
    elif code == 42:
        return TokenAuthenticationNotSupportedError(code, message)
    elif code == 43:
        return ClientVersionTooOldError(code, message)
    elif code == 44:
        return ServerVersionTooOldError(code, message)
    elif code == 50:
        return SubsonicAuthorizationError(code, message)
    elif code == 70:
        return SubsonicNotFoundError(code, message)
    elif code in (20, 30):
        return SubsonicVersionError(code, message)
    elif code == 10:
        return SubsonicParameterError(code, message)
    elif code == 60:
        return SubsonicTrialError(code, message)
    return SubsonicError(code, message)


def is_unsupported_endpoint(exc: Optional[BaseException]) -> bool:
    """Check whether an error means the server lacks an optional endpoint."""
    return isinstance(exc, SubsonicHTTPError) and exc.is_unsupported_endpoint
