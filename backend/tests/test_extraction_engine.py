"""Tests for the extraction engine and its three strategies."""

import asyncio

import pytest

from encore.core.cancellation import CancellationToken
from encore.core.exceptions import ScrapeCancelled, StoreError
from encore.core.kinds import EntityKind
from encore.scrapers.base import SkipReason
from encore.scrapers.engine import ExtractionEngine
from encore.scrapers.http import Fetcher, HostThrottle, make_client
from encore.scrapers.registry import get_strategy_class, missing_strategies
from encore.schemas.scraper_config import StrategyType
from encore.store import InMemoryStore
from tests.helpers import ARTIST_SELECTORS, artist_page, listing_page

BASE = "https://example.com"


class UnreachableStore(InMemoryStore):

    async def find_by_name(self, table, name, field="name"):
        raise StoreError("connection refused")

    async def select(self, table, filters=None):
        raise StoreError("connection refused")


def _extract(open_engine, source, kind, cancel_token=None):
    async def _go():
        async with open_engine(cancel_token) as engine:
            return await engine.extract(source, kind)
    return asyncio.run(_go())


class TestRegistry:

    def test_every_strategy_registered(self):
        assert missing_strategies() == []
        assert get_strategy_class(StrategyType.LIST_PAGE).__name__ == "ListPageStrategy"


class TestDirectList:

    def test_fetches_each_url_and_skips_failures(self, open_engine, make_source, web):
        web.add(f"{BASE}/a", artist_page("Band A"))
        web.add(f"{BASE}/b", "oops", status=500)
        web.add(f"{BASE}/c", artist_page("Band C"))
        source = make_source(scraper_config={"artists": {
            "type": "directList",
            "urls": [f"{BASE}/a", f"{BASE}/b", f"{BASE}/c"],
            "selectors": ARTIST_SELECTORS,
        }})

        result = _extract(open_engine, source, EntityKind.ARTIST)

        assert [r["name"] for r in result.records] == ["Band A", "Band C"]
        assert result.skip_reasons() == [SkipReason.FETCH_FAILED]
        assert result.skips[0].url == f"{BASE}/b"
        assert result.records[0]["image_url"] == f"{BASE}/img/band-a.jpg"
        assert result.records[0]["genres"] == ["Rock", "Soul"]

    def test_page_without_name_is_skipped(self, open_engine, make_source, web):
        web.add(f"{BASE}/a", artist_page(None))
        source = make_source(scraper_config={"artists": {
            "type": "directList", "urls": [f"{BASE}/a"], "selectors": ARTIST_SELECTORS,
        }})

        result = _extract(open_engine, source, EntityKind.ARTIST)

        assert result.records == []
        assert result.skip_reasons() == [SkipReason.MISSING_NAME]

    def test_network_error_is_skipped(self, open_engine, make_source, web):
        web.fail(f"{BASE}/down")
        source = make_source(scraper_config={"artists": {
            "type": "directList", "urls": [f"{BASE}/down"], "selectors": ARTIST_SELECTORS,
        }})

        result = _extract(open_engine, source, EntityKind.ARTIST)

        assert result.skip_reasons() == [SkipReason.FETCH_FAILED]

    def test_same_input_same_output(self, open_engine, make_source, web):
        web.add(f"{BASE}/a", artist_page("Band A"))
        source = make_source(scraper_config={"artists": {
            "type": "directList", "urls": [f"{BASE}/a"], "selectors": ARTIST_SELECTORS,
        }})

        first = _extract(open_engine, source, EntityKind.ARTIST)
        second = _extract(open_engine, source, EntityKind.ARTIST)

        assert first.records == second.records


class TestListPage:

    def _source(self, make_source):
        return make_source(scraper_config={"artists": {
            "type": "listPage",
            "listPageUrl": f"{BASE}/artists",
            "listItemSelector": "a.artist-link",
            "selectors": ARTIST_SELECTORS,
        }})

    def test_detail_pages_in_discovery_order(self, open_engine, make_source, web):
        web.add(f"{BASE}/artists", listing_page("/artists/b", "/artists/a", "/artists/b", f"{BASE}/artists/c"))
        web.add(f"{BASE}/artists/a", artist_page("Band A"))
        web.add(f"{BASE}/artists/b", artist_page("Band B"))
        web.add(f"{BASE}/artists/c", artist_page("Band C"))

        result = _extract(open_engine, self._source(make_source), EntityKind.ARTIST)

        assert [r["name"] for r in result.records] == ["Band B", "Band A", "Band C"]
        assert web.requests == [
            f"{BASE}/artists",
            f"{BASE}/artists/b",
            f"{BASE}/artists/a",
            f"{BASE}/artists/c",
        ]
        assert result.records[0]["source_url"] == f"{BASE}/artists/b"

    def test_failing_listing_yields_no_records(self, open_engine, make_source, web):
        web.add(f"{BASE}/artists", "down", status=503)

        result = _extract(open_engine, self._source(make_source), EntityKind.ARTIST)

        assert result.records == []
        assert result.skip_reasons() == [SkipReason.FETCH_FAILED]
        assert web.requests == [f"{BASE}/artists"]

    def test_one_failing_detail_page(self, open_engine, make_source, web):
        web.add(f"{BASE}/artists", listing_page("/artists/a", "/artists/b", "/artists/c"))
        web.add(f"{BASE}/artists/a", artist_page("Band A"))
        web.fail(f"{BASE}/artists/b")
        web.add(f"{BASE}/artists/c", artist_page("Band C"))

        result = _extract(open_engine, self._source(make_source), EntityKind.ARTIST)

        assert [r["name"] for r in result.records] == ["Band A", "Band C"]
        assert result.skip_reasons() == [SkipReason.FETCH_FAILED]

    def test_detail_fetches_are_spaced(self, open_engine, make_source, settings, web):
        settings.list_page_delay_seconds = 0.1
        web.add(f"{BASE}/artists", listing_page("/artists/a", "/artists/b"))
        web.add(f"{BASE}/artists/a", artist_page("Band A"))
        web.add(f"{BASE}/artists/b", artist_page("Band B"))

        result = _extract(open_engine, self._source(make_source), EntityKind.ARTIST)

        assert len(result.records) == 2
        times = web.request_times
        assert len(times) == 3
        for earlier, later in zip(times, times[1:]):
            assert later - earlier >= 0.09


class TestApiEndpoint:

    def _source(self, make_source, **overrides):
        config = {
            "type": "apiEndpoint",
            "url": f"{BASE}/api/festivals",
            "jsonPath": "data.items",
            "dateFormat": "YYYY-MM-DD",
            "mapping": {
                "name": "title",
                "start_date": "dates.start",
                "end_date": "dates.end",
                "park": "location.park",
                "website": "link",
            },
        }
        config.update(overrides)
        return make_source(type="festival", scraper_config={"festivals": config})

    def test_maps_items(self, open_engine, make_source, web):
        web.add(f"{BASE}/api/festivals", {"data": {"items": [
            {"title": "  Summer  Fest ", "dates": {"start": "2024-06-01", "end": "2024-06-03"},
             "location": {"park": "Central Park"}, "link": "/fests/summer"},
            {"title": None, "dates": {}},
            {"title": "Winter Fest", "dates": {"start": "not a date"}},
        ]}})

        result = _extract(open_engine, self._source(make_source), EntityKind.FESTIVAL)

        assert [r["name"] for r in result.records] == ["Summer Fest", "Winter Fest"]
        summer, winter = result.records
        assert summer["start_date"] == "2024-06-01"
        assert summer["end_date"] == "2024-06-03"
        assert summer["park_name"] == "Central Park"
        assert summer["website_url"] == f"{BASE}/fests/summer"
        assert summer["source_url"] == f"{BASE}/api/festivals"
        assert winter["start_date"] is None
        assert result.skip_reasons() == [SkipReason.MISSING_NAME]

    def test_falls_back_to_source_url(self, open_engine, make_source, web):
        web.add(f"{BASE}/feed", [{"title": "Fest"}])
        source = make_source(type="festival", url=f"{BASE}/feed", scraper_config={"festivals": {
            "type": "apiEndpoint", "mapping": {"name": "title"},
        }})

        result = _extract(open_engine, source, EntityKind.FESTIVAL)

        assert [r["name"] for r in result.records] == ["Fest"]

    def test_path_not_an_array(self, open_engine, make_source, web):
        web.add(f"{BASE}/api/festivals", {"data": {"items": {"title": "Solo"}}})

        result = _extract(open_engine, self._source(make_source), EntityKind.FESTIVAL)

        assert result.records == []
        assert result.skip_reasons() == [SkipReason.BAD_PAYLOAD]

    def test_invalid_json(self, open_engine, make_source, web):
        web.add(f"{BASE}/api/festivals", "<html>maintenance</html>")

        result = _extract(open_engine, self._source(make_source), EntityKind.FESTIVAL)

        assert result.skip_reasons() == [SkipReason.BAD_PAYLOAD]

    def test_http_error(self, open_engine, make_source, web):
        web.add(f"{BASE}/api/festivals", {"error": "nope"}, status=500)

        result = _extract(open_engine, self._source(make_source), EntityKind.FESTIVAL)

        assert result.skip_reasons() == [SkipReason.FETCH_FAILED]


class TestEngineFailures:

    def test_missing_config(self, open_engine, make_source, web):
        source = make_source(scraper_config={"venues": {"type": "directList", "urls": []}})

        result = _extract(open_engine, source, EntityKind.ARTIST)

        assert result.records == []
        assert result.skip_reasons() == [SkipReason.MISSING_CONFIG]
        assert web.requests == []

    def test_invalid_config(self, open_engine, make_source, web):
        source = make_source(scraper_config={"artists": {"type": "listPage", "listPageUrl": f"{BASE}/x"}})

        result = _extract(open_engine, source, EntityKind.ARTIST)

        assert result.skip_reasons() == [SkipReason.INVALID_CONFIG]
        assert web.requests == []

    def test_bad_selector_is_parse_failure(self, open_engine, make_source, web):
        web.add(f"{BASE}/a", artist_page("Band A"))
        source = make_source(scraper_config={"artists": {
            "type": "directList", "urls": [f"{BASE}/a"], "selectors": {"name": "h1[["},
        }})

        result = _extract(open_engine, source, EntityKind.ARTIST)

        assert result.skip_reasons() == [SkipReason.PARSE_FAILED]

    def test_cancellation_propagates(self, open_engine, make_source, web):
        web.add(f"{BASE}/a", artist_page("Band A"))
        source = make_source(scraper_config={"artists": {
            "type": "directList", "urls": [f"{BASE}/a"], "selectors": ARTIST_SELECTORS,
        }})

        async def _go():
            token = CancellationToken()
            token.cancel("shutdown")
            async with open_engine(token) as engine:
                return await engine.extract(source, EntityKind.ARTIST)

        with pytest.raises(ScrapeCancelled):
            asyncio.run(_go())
        assert web.requests == []


class TestEnrichment:

    CONCERT_HTML = """
    <html><body>
      <span class="who">Lake Street Dive</span>
      <span class="where">Unknown Hall</span>
      <span class="when">06/01/2024 8:00 PM</span>
    </body></html>
    """

    def test_resolves_known_names(self, open_engine, make_source, store, web):
        store.tables["artists"] = [{"id": "artist-1", "name": "Lake Street Dive"}]
        web.add(f"{BASE}/show", self.CONCERT_HTML)
        source = make_source(type="concert", scraper_config={"concerts": {
            "type": "directList",
            "urls": [f"{BASE}/show"],
            "selectors": {"artist": ".who", "venue": ".where", "start_time": ".when"},
        }})

        result = _extract(open_engine, source, EntityKind.CONCERT)

        [concert] = result.records
        assert concert["artist_name"] == "Lake Street Dive"
        assert concert["artist_id"] == "artist-1"
        assert concert["venue_name"] == "Unknown Hall"
        assert concert["venue_id"] is None
        assert concert["start_time"] == "2024-06-01T20:00:00"

    def test_venue_park_lookup(self, open_engine, make_source, store, web):
        store.tables["parks"] = [{"id": "park-1", "name": "Riverside Park"}]
        web.add(f"{BASE}/api/venues", [{"name": "Bandshell", "park": "riverside park"}])
        source = make_source(type="venue", scraper_config={"venues": {
            "type": "apiEndpoint", "url": f"{BASE}/api/venues", "mapping": {"name": "name", "park": "park"},
        }})

        result = _extract(open_engine, source, EntityKind.VENUE)

        assert result.records[0]["park_id"] == "park-1"

    def test_unreachable_store_leaves_references_empty(self, make_source, settings, web):
        web.add(f"{BASE}/show", self.CONCERT_HTML)
        web.add(f"{BASE}/api/venues", [{"name": "Bandshell", "park": "Riverside Park"}])
        concerts = make_source(type="concert", scraper_config={"concerts": {
            "type": "directList",
            "urls": [f"{BASE}/show"],
            "selectors": {"artist": ".who", "venue": ".where", "start_time": ".when"},
        }})
        venues = make_source(type="venue", scraper_config={"venues": {
            "type": "apiEndpoint", "url": f"{BASE}/api/venues", "mapping": {"name": "name", "park": "park"},
        }})

        async def _go():
            async with make_client(settings, web.transport) as client:
                engine = ExtractionEngine(Fetcher(client, HostThrottle(2)), UnreachableStore(), settings)
                return (
                    await engine.extract(concerts, EntityKind.CONCERT),
                    await engine.extract(venues, EntityKind.VENUE),
                )

        concert_result, venue_result = asyncio.run(_go())

        [concert] = concert_result.records
        assert concert["artist_name"] == "Lake Street Dive"
        assert concert["artist_id"] is None
        assert concert["venue_id"] is None
        assert concert_result.skips == []
        [venue] = venue_result.records
        assert venue["name"] == "Bandshell"
        assert venue["park_id"] is None
