"""
Pytest configuration and fixtures for Starling client tests.
"""

import httpx
import pytest

from starling_client.config import Settings
from starling_client.gateway import Gateway


SAMPLE_NODES = [
    {"id": "abc-123", "title": ["Projects", "Starling"], "path": "notes/starling.md"},
    {"id": "def-456", "title": ["Inbox"], "path": "inbox.md"},
    {"id": "0f9e-77aa", "title": ["Projects", "Starling", "Ideas"], "path": "notes/starling/ideas.md"},
]


class FakeStarlingServer:
    """Stand-in for the Starling server behind an httpx.MockTransport.

    Routes map a path to a value served as JSON, an httpx.Response, a
    request handler, or an exception to raise from the transport.
    """

    def __init__(self):
        self.routes: dict[str, object] = {
            "/nodes": SAMPLE_NODES,
            "/info/root": "/home/user/notes",
            "/node/abc-123": {"path": "notes/starling.md", "id": "abc-123"},
        }
        self.requests: list[httpx.Request] = []

    def calls(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path == path)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        if isinstance(route, Exception):
            raise route
        if isinstance(route, httpx.Response):
            return route
        if callable(route):
            return route(request)
        return httpx.Response(200, json=route)


class FakeEditor:
    """Editor that records what the client asked it to do."""

    def __init__(self):
        self.focused = None
        self.notifications = []
        self.messages = []
        self.opened = []
        self.rechecks = 0
        self.completions = []

    def current_buffer(self):
        return self.focused

    def notify(self, message, severity):
        self.notifications.append((message, severity))

    def echo(self, message):
        self.messages.append(message)

    def open_file(self, path):
        self.opened.append(path)

    def check_time(self):
        self.rechecks += 1

    def trigger_completion(self, source):
        self.completions.append(source)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def server():
    return FakeStarlingServer()


@pytest.fixture
async def gateway(server):
    gw = Gateway("http://starling.test", transport=httpx.MockTransport(server.handler))
    yield gw
    await gw.aclose()


@pytest.fixture
def editor():
    return FakeEditor()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_settings():
    return Settings(reload_interval=0.01, write_recheck_delay=0.01)


@pytest.fixture
def sample_nodes():
    return SAMPLE_NODES
