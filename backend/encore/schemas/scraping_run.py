"""Pydantic schemas for ScrapingRun and the pipeline entry point."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from encore.models.scraping_run import RunStatus

RunType = Literal["all", "parks", "venues", "artists", "festivals", "concerts"]


class ScrapingRunRead(BaseModel):
    """Full scraping run output."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    start_time: datetime
    end_time: datetime | None = None
    status: str
    parks_found: int | None = 0
    venues_found: int | None = 0
    artists_found: int | None = 0
    festivals_found: int | None = 0
    concerts_found: int | None = 0
    source_count: int | None = 0
    error_message: str | None = None


class RunCreatedResponse(BaseModel):
    message: str = "Scraping run created"
    id: UUID


class RunUpdate(BaseModel):
    """Status update from the external scheduler."""

    status: RunStatus
    error_message: str | None = None


class RunUpdatedResponse(BaseModel):
    message: str = "Scraping run updated"
    id: UUID
    status: str


class TriggerRequest(BaseModel):
    """Body accepted by the pipeline entry point."""

    model_config = ConfigDict(populate_by_name=True)

    run_id: UUID = Field(alias="runId")
    type: RunType = "all"
    force_update: bool = Field(False, alias="forceUpdate")


class TriggerResults(BaseModel):
    sources: int = 0
    parks: int = 0
    venues: int = 0
    artists: int = 0
    festivals: int = 0
    concerts: int = 0


class TriggerResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = "Scraping completed successfully"
    run_id: UUID = Field(serialization_alias="runId")
    results: TriggerResults
