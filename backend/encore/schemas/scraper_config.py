"""Pydantic schemas for the ``scraper_config`` JSON stored on a data source.

The config maps an entity kind ("artists", "venues", ...) to one ruleset.
Rulesets are a tagged union on ``type``; keys follow the camelCase wire
shape other tooling writes.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

# A CSS selector (scalar field), a one-or-more selector list (list field),
# or platform -> selector (map field such as social links)
SelectorRule = Union[str, list[str], dict[str, str]]


class StrategyType(str, Enum):
    DIRECT_LIST = "directList"
    LIST_PAGE = "listPage"
    API_ENDPOINT = "apiEndpoint"


class RulesetBase(BaseModel):
    """Fields shared by every strategy."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    selectors: dict[str, SelectorRule] = Field(default_factory=dict)
    date_format: str = Field("MM/DD/YYYY", alias="dateFormat")

    @property
    def strategy(self) -> StrategyType:
        return StrategyType(self.type)


class DirectListConfig(RulesetBase):
    type: Literal["directList"]
    urls: list[str] = Field(default_factory=list)


class ListPageConfig(RulesetBase):
    type: Literal["listPage"]
    list_page_url: str = Field(alias="listPageUrl")
    list_item_selector: str = Field(alias="listItemSelector")


class ApiEndpointConfig(RulesetBase):
    type: Literal["apiEndpoint"]
    url: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    json_path: str | None = Field(None, alias="jsonPath")
    mapping: dict[str, str] = Field(default_factory=dict)


ScraperConfig = Annotated[
    Union[DirectListConfig, ListPageConfig, ApiEndpointConfig],
    Field(discriminator="type"),
]

_adapter = TypeAdapter(ScraperConfig)


def parse_scraper_config(data: dict) -> DirectListConfig | ListPageConfig | ApiEndpointConfig:
    """Validate one per-kind ruleset. Raises pydantic.ValidationError."""
    return _adapter.validate_python(data)
