"""Shared fixtures for integration tests with a live Subsonic server."""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load .env file from project root
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


@pytest.fixture(scope="session")
def subsonic_config():
    """Subsonic server configuration from environment variables."""
    return {
        "url": os.getenv("SUBSONIC_URL"),
        "username": os.getenv("SUBSONIC_USERNAME"),
        "password": os.getenv("SUBSONIC_PASSWORD"),
        "base_path": os.getenv("SUBSONIC_BASE_PATH"),
    }


@pytest.fixture(scope="session")
def skip_if_no_subsonic(subsonic_config):
    """Skip test if Subsonic server not configured."""
    missing = [key for key in ("url", "username", "password") if not subsonic_config[key]]
    if missing:
        pytest.skip(f"Subsonic server not configured (missing: {', '.join(missing)})")


def pytest_configure(config):
    """Add custom markers for integration tests."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as an integration test that requires a live server"
    )
