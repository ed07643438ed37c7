"""Pytest configuration and shared fixtures for sitemapaudit tests."""

import gzip
from collections.abc import Callable

import httpx
import pytest

from sitemapaudit.config import DiscoverySettings


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Pure logic tests with no I/O, network, or browser")
    config.addinivalue_line("markers", "integration: Filesystem-heavy tests, may use a mocked HTTP transport")
    config.addinivalue_line("markers", "e2e: End-to-end tests with live network")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """
    Apply default markers to tests without explicit markers.

    Unmarked tests default to unit.
    """
    for item in items:
        marker_names = [m.name for m in item.iter_markers()]
        if any(m in marker_names for m in ("unit", "integration", "e2e")):
            continue
        item.add_marker(pytest.mark.unit)


class RawBody(httpx.AsyncByteStream):
    """Response body left unread until the client streams it."""

    def __init__(self, data: bytes) -> None:
        self._data = data

    async def __aiter__(self):
        yield self._data


def raw_response(status: int, body: bytes = b"", headers: dict[str, str] | None = None) -> httpx.Response:
    """Build a mock response whose body can be read with aiter_raw()."""
    return httpx.Response(status, headers=headers, stream=RawBody(body))


class FakeSite:
    """In-memory HTTP responder for httpx.MockTransport.

    Unknown URLs answer 404. Routes registered with fail() raise a
    connection error instead of responding.
    """

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, bytes, dict[str, str]] | Exception] = {}
        self.requests: list[str] = []

    def add(
        self,
        url: str,
        body: bytes | str = b"",
        status: int = 200,
        headers: dict[str, str] | None = None,
    ) -> None:
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.routes[url] = (status, body, headers or {})

    def add_gzip(self, url: str, body: bytes | str) -> None:
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.add(url, gzip.compress(body), headers={"content-encoding": "gzip"})

    def redirect(self, url: str, location: str, status: int = 301) -> None:
        self.add(url, status=status, headers={"location": location})

    def fail(self, url: str) -> None:
        self.routes[url] = httpx.ConnectError("Connection refused")

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        route = self.routes.get(url)
        if route is None:
            return raw_response(404)
        if isinstance(route, Exception):
            raise route
        status, body, headers = route
        return raw_response(status, body, headers)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def site() -> FakeSite:
    """Empty fake site; tests register routes on it."""
    return FakeSite()


@pytest.fixture
def settings() -> DiscoverySettings:
    """Settings with no backoff delay and no curl subprocess."""
    return DiscoverySettings(retry_delay=0, curl_fallback=False, max_retries=2)


def urlset(*locs: str) -> str:
    """Build a urlset document."""
    entries = "".join(f"<url><loc>{loc}</loc></url>" for loc in locs)
    return f'<?xml version="1.0" encoding="UTF-8"?><urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'


def sitemapindex(*locs: str) -> str:
    """Build a sitemapindex document."""
    entries = "".join(f"<sitemap><loc>{loc}</loc></sitemap>" for loc in locs)
    return f'<?xml version="1.0" encoding="UTF-8"?><sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</sitemapindex>'


@pytest.fixture
def make_urlset() -> Callable[..., str]:
    return urlset


@pytest.fixture
def make_index() -> Callable[..., str]:
    return sitemapindex


@pytest.fixture
def respond() -> Callable[..., httpx.Response]:
    """Response factory for tests with their own MockTransport handler."""
    return raw_response
