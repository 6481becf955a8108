"""
Shared pytest fixtures for backend tests.

Provides:
- Test settings without request spacing
- An in-memory store
- A fake web (httpx.MockTransport) with per-URL responses
- Factories for data source rows and extraction engines
"""

import time
import uuid
from contextlib import asynccontextmanager

import httpx
import pytest

from encore.config import Settings
from encore.schemas.data_source import DataSourceRead
from encore.scrapers.engine import ExtractionEngine
from encore.scrapers.http import Fetcher, HostThrottle, make_client
from encore.store import InMemoryStore


class FakeWeb:
    """Routes absolute URLs to canned responses and records every request.

    A route body that is a str is served as HTML, a dict/list as JSON.
    Unknown URLs are 404s.
    """

    def __init__(self):
        self.routes: dict[str, tuple[int, object]] = {}
        self.failing: set[str] = set()
        self.requests: list[str] = []
        self.request_times: list[float] = []

    def add(self, url: str, body, status: int = 200) -> None:
        self.routes[url] = (status, body)

    def fail(self, url: str) -> None:
        self.failing.add(url)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        self.request_times.append(time.monotonic())
        if url in self.failing:
            raise httpx.ConnectError("connection refused", request=request)
        if url not in self.routes:
            return httpx.Response(404, text="not found")
        status, body = self.routes[url]
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body, headers={"Content-Type": "text/html; charset=utf-8"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        list_page_delay_seconds=0,
        max_requests_per_host=2,
        max_concurrent_sources=4,
    )


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def web():
    return FakeWeb()


@pytest.fixture
def make_source_row():
    """Factory for raw data_sources rows."""
    def _make(
        name: str = "Test Source",
        url: str = "https://example.com/",
        type: str = "artist",
        scraper_config: dict | None = None,
        **extra,
    ) -> dict:
        row = {
            "id": uuid.uuid4(),
            "name": name,
            "url": url,
            "type": type,
            "active": True,
            "scraper_config": scraper_config or {},
            "scraping_frequency": "weekly",
            "last_scraped": None,
        }
        row.update(extra)
        return row
    return _make


@pytest.fixture
def make_source(make_source_row):
    """Factory for validated DataSourceRead objects."""
    def _make(**kwargs) -> DataSourceRead:
        return DataSourceRead.model_validate(make_source_row(**kwargs))
    return _make


@pytest.fixture
def open_engine(settings, store, web):
    """Async context factory yielding an ExtractionEngine over the fake web."""
    @asynccontextmanager
    async def _open(cancel_token=None):
        async with make_client(settings, web.transport) as client:
            fetcher = Fetcher(client, HostThrottle(settings.max_requests_per_host), cancel_token)
            yield ExtractionEngine(fetcher, store, settings)
    return _open
