"""API endpoint strategy: one JSON GET mapped field by field."""

import logging

import httpx

from encore.schemas.scraper_config import StrategyType
from encore.scrapers.base import BaseStrategy, RecordOutcome, SkipReason, Skipped
from encore.scrapers.html_extract import FIELD_ALIASES, absolute_url, is_link_field
from encore.scrapers.registry import register_strategy
from encore.services.json_path import get_value_by_path
from encore.services.normalization import clean_text, parse_datetime, validate_date

logger = logging.getLogger(__name__)


@register_strategy(StrategyType.API_ENDPOINT)
class ApiEndpointStrategy(BaseStrategy):

    @property
    def endpoint(self) -> str:
        return self.config.url or self.context.source.url

    async def extract(self) -> list[RecordOutcome]:
        url = self.endpoint
        logger.info(f"{self.label} Fetching from API: {url}")

        try:
            payload = await self.fetcher.get_json(url, headers=self.config.headers)
        except httpx.HTTPError as e:
            logger.warning(f"{self.label} API request failed: {e}")
            return [Skipped(SkipReason.FETCH_FAILED, url, str(e))]
        except ValueError as e:
            logger.warning(f"{self.label} API returned invalid JSON: {e}")
            return [Skipped(SkipReason.BAD_PAYLOAD, url, str(e))]

        items = get_value_by_path(payload, self.config.json_path) if self.config.json_path else payload
        if not isinstance(items, list):
            logger.warning(f"{self.label} No item array at {self.config.json_path or 'root'}")
            return [Skipped(SkipReason.BAD_PAYLOAD, url, "item array not found")]

        outcomes = [self.keep_if_named(self.map_item(item, url), url) for item in items]
        logger.info(f"{self.label} Mapped {len(items)} API items")
        return outcomes

    def map_item(self, item, url: str) -> dict:
        record = {}
        for key, path in self.config.mapping.items():
            field = FIELD_ALIASES.get(key, key)
            record[field] = self._normalize(field, get_value_by_path(item, path), url)
        record["source_url"] = url
        return record

    def _normalize(self, field: str, value, url: str):
        if isinstance(value, str):
            if field in ("start_date", "end_date"):
                return validate_date(value, self.config.date_format)
            if field in ("start_time", "end_time"):
                return parse_datetime(value, self.config.date_format)
            if field == "image_url" or is_link_field(field):
                return absolute_url(value, url)
            return clean_text(value) or None
        if isinstance(value, list):
            cleaned = [clean_text(v) if isinstance(v, str) else v for v in value]
            return [v for v in cleaned if v] or None
        return value
