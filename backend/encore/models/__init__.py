"""ORM models and the table-name registry used by the store."""

from encore.models.base import Base
from encore.models.data_source import DataSource
from encore.models.entities import (
    Artist,
    Concert,
    Festival,
    Park,
    StagedArtist,
    StagedConcert,
    StagedFestival,
    StagedPark,
    StagedVenue,
    Venue,
)
from encore.models.scraping_run import RunStatus, ScrapingRun

DATA_SOURCES = "data_sources"
SCRAPING_RUNS = "scraping_runs"

TABLES: dict[str, type[Base]] = {
    model.__tablename__: model
    for model in (
        DataSource, ScrapingRun,
        Park, Venue, Artist, Festival, Concert,
        StagedPark, StagedVenue, StagedArtist, StagedFestival, StagedConcert,
    )
}

__all__ = [
    "Base", "DataSource", "ScrapingRun", "RunStatus", "TABLES", "DATA_SOURCES", "SCRAPING_RUNS",
    "Park", "Venue", "Artist", "Festival", "Concert",
    "StagedPark", "StagedVenue", "StagedArtist", "StagedFestival", "StagedConcert",
]
