"""HTTP fetching with per-host concurrency limits and request spacing."""

import asyncio
import logging
import time
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import urlparse

import httpx

from encore.config import Settings
from encore.core.cancellation import CancellationToken

logger = logging.getLogger(__name__)


class HostThrottle:
    """Bounds in-flight requests per origin host and spaces their starts.

    Each host gets its own semaphore, so independent hosts proceed in
    parallel. ``spacing`` is a per-call minimum gap since the previous
    request start on the same host.
    """

    def __init__(self, max_per_host: int = 2):
        self.max_per_host = max(1, max_per_host)
        self._semaphores: dict[str, asyncio.Semaphore] = {}
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._last_start: dict[str, float] = {}

    @staticmethod
    def host_of(url: str) -> str:
        return urlparse(url).netloc.lower()

    def _semaphore(self, host: str) -> asyncio.Semaphore:
        if host not in self._semaphores:
            self._semaphores[host] = asyncio.Semaphore(self.max_per_host)
        return self._semaphores[host]

    async def _wait_for_spacing(self, host: str, spacing: float) -> None:
        async with self._locks[host]:
            if spacing > 0 and host in self._last_start:
                elapsed = time.monotonic() - self._last_start[host]
                if elapsed < spacing:
                    await asyncio.sleep(spacing - elapsed)
            self._last_start[host] = time.monotonic()

    @asynccontextmanager
    async def slot(self, url: str, spacing: float = 0.0):
        host = self.host_of(url)
        async with self._semaphore(host):
            await self._wait_for_spacing(host, spacing)
            yield


def make_client(settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=transport,
        follow_redirects=True,
        timeout=settings.http_timeout,
        headers={"User-Agent": settings.user_agent},
    )


class Fetcher:
    """GET helper shared by every strategy in a run.

    Checks the cancellation token before each request; HTTP and network
    errors propagate as ``httpx.HTTPError`` for the caller to record.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        throttle: HostThrottle,
        cancel_token: CancellationToken | None = None,
    ):
        self.client = client
        self.throttle = throttle
        self.cancel_token = cancel_token

    async def get(self, url: str, headers: dict[str, str] | None = None, spacing: float = 0.0) -> httpx.Response:
        if self.cancel_token is not None:
            self.cancel_token.raise_if_cancelled()
        async with self.throttle.slot(url, spacing=spacing):
            if self.cancel_token is not None:
                self.cancel_token.raise_if_cancelled()
            logger.debug(f"GET {url}")
            response = await self.client.get(url, headers=headers or None)
            response.raise_for_status()
            return response

    async def get_text(self, url: str, headers: dict[str, str] | None = None, spacing: float = 0.0) -> str:
        response = await self.get(url, headers=headers, spacing=spacing)
        return response.text

    async def get_json(self, url: str, headers: dict[str, str] | None = None) -> Any:
        request_headers = {"Accept": "application/json"}
        request_headers.update(headers or {})
        response = await self.get(url, headers=request_headers)
        return response.json()
