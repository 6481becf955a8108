"""Shared detail-page scraping for the HTML strategies."""

import logging

import httpx

from encore.core.cancellation import RUN_ABORTS
from encore.scrapers.base import BaseStrategy, RecordOutcome, SkipReason, Skipped
from encore.scrapers.html_extract import extract_record

logger = logging.getLogger(__name__)


class DetailPageStrategy(BaseStrategy):
    """Fetch detail pages one at a time, in order, and extract a record from each."""

    # Minimum gap between detail fetches on one host
    detail_spacing: float = 0.0

    async def scrape_page(self, url: str) -> RecordOutcome:
        logger.info(f"{self.label} Scraping {self.kind.value} from {url}")
        try:
            html = await self.fetcher.get_text(url, spacing=self.detail_spacing)
        except httpx.HTTPError as e:
            logger.warning(f"{self.label} Fetch failed for {url}: {e}")
            return Skipped(SkipReason.FETCH_FAILED, url, str(e))

        try:
            record = extract_record(html, url, self.config.selectors, self.config.date_format)
        except RUN_ABORTS:
            raise
        except Exception as e:
            logger.warning(f"{self.label} Could not parse {url}: {e}")
            return Skipped(SkipReason.PARSE_FAILED, url, str(e))

        return self.keep_if_named(record, url)

    async def scrape_pages(self, urls: list[str]) -> list[RecordOutcome]:
        outcomes = []
        for url in urls:
            outcomes.append(await self.scrape_page(url))
        return outcomes
