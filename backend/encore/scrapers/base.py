"""Base strategy abstract class and typed extraction outcomes."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from encore.config import Settings
from encore.core.kinds import EntityKind
from encore.schemas.data_source import DataSourceRead
from encore.scrapers.http import Fetcher

logger = logging.getLogger(__name__)


class SkipReason(str, Enum):
    FETCH_FAILED = "fetch_failed"
    PARSE_FAILED = "parse_failed"
    MISSING_NAME = "missing_name"
    MISSING_CONFIG = "missing_config"
    INVALID_CONFIG = "invalid_config"
    BAD_PAYLOAD = "bad_payload"
    SOURCE_FAILED = "source_failed"


@dataclass
class Extracted:
    record: dict


@dataclass
class Skipped:
    reason: SkipReason
    url: str | None = None
    detail: str = ""


RecordOutcome = Extracted | Skipped


@dataclass
class ExtractionResult:
    """Everything one source produced for one kind."""

    source_name: str
    kind: EntityKind
    outcomes: list[RecordOutcome] = field(default_factory=list)

    @property
    def records(self) -> list[dict]:
        return [outcome.record for outcome in self.outcomes if isinstance(outcome, Extracted)]

    @property
    def skips(self) -> list[Skipped]:
        return [outcome for outcome in self.outcomes if isinstance(outcome, Skipped)]

    def skip_reasons(self) -> list[SkipReason]:
        return [skip.reason for skip in self.skips]


@dataclass
class ExtractionContext:
    source: DataSourceRead
    kind: EntityKind
    config: object
    fetcher: Fetcher
    settings: Settings

    @property
    def label(self) -> str:
        return f"[{self.source.name}/{self.kind.plural}]"


class BaseStrategy(ABC):
    """Abstract base class for extraction strategies.

    Subclasses implement:
        extract() -> list[RecordOutcome]: fetch pages and build raw records

    Fetch and parse failures must come back as ``Skipped`` outcomes;
    only cancellation may raise.
    """

    def __init__(self, context: ExtractionContext):
        self.context = context
        self.config = context.config
        self.fetcher = context.fetcher
        self.kind = context.kind
        self.label = context.label

    @abstractmethod
    async def extract(self) -> list[RecordOutcome]:
        ...

    def keep_if_named(self, record: dict, url: str | None) -> RecordOutcome:
        """Drop records without the kind's primary field."""
        primary = self.kind.primary_field
        if not record.get(primary):
            logger.warning(f"{self.label} No valid {primary} found at {url}")
            return Skipped(SkipReason.MISSING_NAME, url, f"missing {primary}")
        return Extracted(record)
