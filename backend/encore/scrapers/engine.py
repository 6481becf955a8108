"""Source extraction engine.

Given one data source and one entity kind, runs the configured strategy
and returns an ``ExtractionResult``. Nothing raises to the caller except
cancellation and the worker time limit; every failure becomes a ``Skipped`` outcome.
"""

import logging

from encore.config import Settings
from encore.core.cancellation import RUN_ABORTS
from encore.core.exceptions import ConfigurationError
from encore.core.kinds import LOOKUP_FIELDS, EntityKind
from encore.schemas.data_source import DataSourceRead
from encore.scrapers.base import ExtractionContext, ExtractionResult, Extracted, SkipReason, Skipped
from encore.scrapers.http import Fetcher
from encore.scrapers.registry import get_strategy_class
from encore.services.normalization import find_matching_entity

logger = logging.getLogger(__name__)


class ExtractionEngine:

    def __init__(self, fetcher: Fetcher, store, settings: Settings):
        self.fetcher = fetcher
        self.store = store
        self.settings = settings

    async def extract(self, source: DataSourceRead, kind: EntityKind) -> ExtractionResult:
        result = ExtractionResult(source_name=source.name, kind=kind)
        label = f"[{source.name}/{kind.plural}]"

        raw_config = source.raw_ruleset(kind)
        if not raw_config:
            logger.info(f"{label} Skipping source - no {kind.value} scraper config")
            result.outcomes.append(Skipped(SkipReason.MISSING_CONFIG, source.url, f"no {kind.plural} config"))
            return result

        try:
            config = source.ruleset_for(kind)
        except ConfigurationError as e:
            logger.warning(f"{label} {e}")
            result.outcomes.append(Skipped(SkipReason.INVALID_CONFIG, source.url, str(e)))
            return result

        strategy_cls = get_strategy_class(config.strategy)
        strategy = strategy_cls(ExtractionContext(
            source=source,
            kind=kind,
            config=config,
            fetcher=self.fetcher,
            settings=self.settings,
        ))

        try:
            outcomes = await strategy.extract()
        except RUN_ABORTS:
            raise
        except Exception as e:
            logger.exception(f"{label} Error processing source: {e}")
            result.outcomes.append(Skipped(SkipReason.SOURCE_FAILED, source.url, str(e)))
            return result

        for outcome in outcomes:
            if isinstance(outcome, Extracted):
                await self.enrich(kind, outcome.record, label)
            result.outcomes.append(outcome)

        logger.info(
            f"{label} Extracted {len(result.records)} records, skipped {len(result.skips)}"
        )
        return result

    async def enrich(self, kind: EntityKind, record: dict, label: str = "") -> None:
        """Resolve configured name fields to production ids.

        A miss or an unreachable store leaves the reference null.
        """
        for name_field, (table, id_field) in LOOKUP_FIELDS.get(kind, {}).items():
            name = record.get(name_field)
            if not name or record.get(id_field):
                continue
            record[id_field] = await find_matching_entity(self.store, table, {"name": name})
            if record[id_field] is None:
                logger.debug(f"{label} No {table} row named {name!r}")
