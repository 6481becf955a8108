"""Direct list strategy: a configured list of detail-page URLs."""

import logging

from encore.schemas.scraper_config import StrategyType
from encore.scrapers.base import RecordOutcome
from encore.scrapers.detail_pages import DetailPageStrategy
from encore.scrapers.registry import register_strategy

logger = logging.getLogger(__name__)


@register_strategy(StrategyType.DIRECT_LIST)
class DirectListStrategy(DetailPageStrategy):

    async def extract(self) -> list[RecordOutcome]:
        urls = [url for url in self.config.urls if url]
        if not urls:
            logger.info(f"{self.label} No URLs configured")
        return await self.scrape_pages(urls)
