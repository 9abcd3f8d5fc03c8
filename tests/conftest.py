"""
Pytest configuration for the metrolist-subsonic test suite.

Puts the src directory on the Python path so the tests run without an
editable install, and provides a MockTransport-backed facade shared by the
unit tests.
"""
import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
src_dir = project_root / "src"
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))


@pytest.fixture
def credentials():
    from metrolist_subsonic.models import SubsonicCredentials

    return SubsonicCredentials(
        url="https://music.example.com",
        username="testuser",
        password="testpass",
        client_name="metrolist-test",
    )


@pytest.fixture
def settings():
    from metrolist_subsonic.config import ClientSettings

    return ClientSettings()
