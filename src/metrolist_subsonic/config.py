"""Configuration management for the Subsonic client.

Settings are read from environment variables. Credentials are only read
from the environment by the CLI and the integration tests; applications
build ``SubsonicCredentials`` themselves from their own settings store.
"""
import os
from dataclasses import dataclass
from typing import Optional

from .models import SubsonicCredentials


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip() == "1"


@dataclass
class ClientSettings:
    """Transport settings for SubsonicClient.

    Attributes:
        connect_timeout: Connection timeout in seconds
        read_timeout: Read timeout in seconds
        write_timeout: Write timeout in seconds
        pool_timeout: Connection pool acquisition timeout in seconds
        debug: Log every request/response at DEBUG (SUBSONIC_DEBUG=1)
    """

    connect_timeout: float = 10.0
    read_timeout: float = 30.0
    write_timeout: float = 30.0
    pool_timeout: float = 5.0
    debug: bool = False

    @classmethod
    def from_environment(cls) -> 'ClientSettings':
        """Load settings from environment variables, falling back to defaults."""
        return cls(
            connect_timeout=float(os.getenv('SUBSONIC_CONNECT_TIMEOUT', '10')),
            read_timeout=float(os.getenv('SUBSONIC_READ_TIMEOUT', '30')),
            write_timeout=float(os.getenv('SUBSONIC_WRITE_TIMEOUT', '30')),
            debug=_env_flag('SUBSONIC_DEBUG'),
        )


def credentials_from_environment() -> SubsonicCredentials:
    """Build credentials from SUBSONIC_* environment variables.

    Returns:
        SubsonicCredentials for the configured server

    Raises:
        EnvironmentError: If required environment variables are missing
    """
    required = {
        'SUBSONIC_URL': os.getenv('SUBSONIC_URL'),
        'SUBSONIC_USERNAME': os.getenv('SUBSONIC_USERNAME'),
        'SUBSONIC_PASSWORD': os.getenv('SUBSONIC_PASSWORD'),
    }
    missing = [var for var, value in required.items() if not value]
    if missing:
        raise EnvironmentError(
            f"Required environment variables missing: {', '.join(missing)}\n"
            f"Example: export SUBSONIC_URL='https://your-server.com'"
        )

    base_path: Optional[str] = os.getenv('SUBSONIC_BASE_PATH') or None
    return SubsonicCredentials(
        url=required['SUBSONIC_URL'],
        username=required['SUBSONIC_USERNAME'],
        password=required['SUBSONIC_PASSWORD'],
        base_path=base_path,
    )
