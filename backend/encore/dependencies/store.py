"""Store and HTTP transport dependencies for FastAPI routes."""

from functools import lru_cache

import httpx

from encore.store.sql import SqlAlchemyStore


@lru_cache
def _default_store() -> SqlAlchemyStore:
    return SqlAlchemyStore()


def get_store():
    """Store used by the API. Tests override this with an InMemoryStore."""
    return _default_store()


def get_http_transport() -> httpx.AsyncBaseTransport | None:
    """Transport for outbound scraping requests; None means the network."""
    return None
