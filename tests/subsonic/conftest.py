"""Shared fixtures for Subsonic unit tests.

All HTTP traffic goes through ``httpx.MockTransport``; no real server is
contacted.
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Union

import httpx
import pytest

from metrolist_subsonic.facade import Subsonic

Handler = Union[Dict[str, Any], httpx.Response, Callable[[httpx.Request], httpx.Response]]


@pytest.fixture(scope="session")
def fixtures() -> Dict[str, Any]:
    """Load Subsonic API response fixtures from JSON file."""
    fixtures_path = Path(__file__).parent / "fixtures" / "subsonic_responses.json"
    with open(fixtures_path, "r") as f:
        return json.load(f)


def endpoint_of(request: httpx.Request) -> str:
    name = request.url.path.rsplit("/", 1)[-1]
    return name[:-5] if name.endswith(".view") else name


class MockServer:
    """Route table for httpx.MockTransport keyed by endpoint name.

    A route is a JSON document (served with 200), a ready ``httpx.Response``
    or a callable taking the request. Unknown endpoints answer 404.
    """

    def __init__(self):
        self.routes: Dict[str, Handler] = {}
        self.requests: List[httpx.Request] = []

    def route(self, endpoint: str, handler: Handler) -> None:
        self.routes[endpoint] = handler

    def calls(self, endpoint: str, method: str = None) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if endpoint_of(r) == endpoint and (method is None or r.method == method)
        ]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(endpoint_of(request))
        if handler is None:
            return httpx.Response(404, text="Not Found")
        if isinstance(handler, httpx.Response):
            return handler
        if callable(handler):
            return handler(request)
        return httpx.Response(200, json=handler)


@pytest.fixture
def server() -> MockServer:
    return MockServer()


@pytest.fixture
def http_client(server: MockServer) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(server))


@pytest.fixture
def subsonic(credentials, settings, http_client) -> Subsonic:
    facade = Subsonic()
    facade.initialize(credentials, http_client=http_client, settings=settings)
    return facade
