"""List page strategy: discover detail pages from one listing page.

Detail pages are fetched in the order they appear on the listing, with a
minimum per-host gap between requests.
"""

import logging

import httpx

from encore.core.cancellation import RUN_ABORTS
from encore.schemas.scraper_config import StrategyType
from encore.scrapers.base import RecordOutcome, SkipReason, Skipped
from encore.scrapers.detail_pages import DetailPageStrategy
from encore.scrapers.html_extract import extract_links
from encore.scrapers.registry import register_strategy

logger = logging.getLogger(__name__)


@register_strategy(StrategyType.LIST_PAGE)
class ListPageStrategy(DetailPageStrategy):

    def __init__(self, context):
        super().__init__(context)
        self.detail_spacing = context.settings.list_page_delay_seconds

    async def extract(self) -> list[RecordOutcome]:
        list_url = self.config.list_page_url
        logger.info(f"{self.label} Scraping list page: {list_url}")

        try:
            html = await self.fetcher.get_text(list_url)
        except httpx.HTTPError as e:
            logger.warning(f"{self.label} List page fetch failed for {list_url}: {e}")
            return [Skipped(SkipReason.FETCH_FAILED, list_url, str(e))]

        try:
            links = extract_links(html, list_url, self.config.list_item_selector)
        except RUN_ABORTS:
            raise
        except Exception as e:
            logger.warning(f"{self.label} Could not parse list page {list_url}: {e}")
            return [Skipped(SkipReason.PARSE_FAILED, list_url, str(e))]

        # Keep discovery order, drop repeats
        detail_urls = list(dict.fromkeys(links))
        logger.info(f"{self.label} Found {len(detail_urls)} {self.kind.value} URLs to scrape")
        return await self.scrape_pages(detail_urls)
