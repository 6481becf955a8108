"""Pydantic schemas for DataSource."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from encore.core.exceptions import ConfigurationError
from encore.core.kinds import EntityKind, SourceType
from encore.schemas.scraper_config import parse_scraper_config


class DataSourceBase(BaseModel):
    """Base fields for data source."""

    name: str
    url: str
    type: SourceType
    active: bool = True
    scraper_config: dict[str, Any] = Field(default_factory=dict)
    scraping_frequency: str = "weekly"


class DataSourceCreate(DataSourceBase):
    """Fields for creating a data source."""


class DataSourceRead(DataSourceBase):
    """Full data source as the pipeline sees it."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    last_scraped: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def raw_ruleset(self, kind: EntityKind) -> dict | None:
        config = self.scraper_config or {}
        return config.get(kind.plural) or config.get(kind.value)

    def ruleset_for(self, kind: EntityKind):
        """Parsed ruleset for ``kind``; ConfigurationError if missing or invalid."""
        raw = self.raw_ruleset(kind)
        if not raw:
            raise ConfigurationError(f"No {kind.plural} scraper config on source {self.name!r}")
        try:
            return parse_scraper_config(raw)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid {kind.plural} scraper config on source {self.name!r}: {e}") from e

    def declared_kinds(self) -> list[EntityKind]:
        """Kinds this source claims to supply."""
        if self.type is SourceType.MULTIPLE:
            return [kind for kind in EntityKind if self.raw_ruleset(kind)]
        return [EntityKind(self.type.value)]

    def missing_rulesets(self) -> list[EntityKind]:
        """Declared kinds without a ruleset."""
        if self.type is SourceType.MULTIPLE:
            return [] if self.declared_kinds() else list(EntityKind)
        return [kind for kind in self.declared_kinds() if not self.raw_ruleset(kind)]


class DataSourceSummary(BaseModel):
    """Minimal source info for list views."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    url: str
    type: str
    active: bool
    scraping_frequency: str
    last_scraped: datetime | None = None
