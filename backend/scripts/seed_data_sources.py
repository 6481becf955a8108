"""Seed known data sources for the Orlando parks and venues we cover.

Each entry is validated before insert: the source must carry a ruleset
for every kind it claims to supply. Existing sources (same name) are left
alone.

Usage:
    cd backend && python -m scripts.seed_data_sources
"""

import asyncio
import sys
from pathlib import Path

# Add backend to path when running as script
backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from encore.config import get_settings
from encore.models import DATA_SOURCES
from encore.models.base import make_engine
from encore.schemas.data_source import DataSourceCreate, DataSourceRead
from encore.store.sql import SqlAlchemyStore

KNOWN_SOURCES = [
    {
        "name": "Epcot Garden Rocks Lineup",
        "url": "https://disneyworld.disney.go.com/events-tours/epcot/flower-and-garden-festival/",
        "type": "artist",
        "scraping_frequency": "weekly",
        "scraper_config": {
            "artists": {
                "type": "listPage",
                "listPageUrl": "https://disneyworld.disney.go.com/events-tours/epcot/flower-and-garden-festival/garden-rocks/",
                "listItemSelector": ".performer-list a.performer-link",
                "selectors": {
                    "name": "h1.performer-name",
                    "description": ".performer-bio",
                    "image": ".performer-hero img",
                    "website": "a.performer-website",
                    "genres": [".performer-genres li"],
                    "social": {
                        "facebook": "a[href*='facebook.com']",
                        "instagram": "a[href*='instagram.com']",
                    },
                },
            },
        },
    },
    {
        "name": "Universal Orlando Parks",
        "url": "https://www.universalorlando.com/web/en/us/theme-parks",
        "type": "park",
        "scraping_frequency": "monthly",
        "scraper_config": {
            "parks": {
                "type": "directList",
                "urls": [
                    "https://www.universalorlando.com/web/en/us/theme-parks/universal-studios-florida",
                    "https://www.universalorlando.com/web/en/us/theme-parks/islands-of-adventure",
                ],
                "selectors": {
                    "name": "h1",
                    "description": ".park-overview p",
                    "image": ".hero-image img",
                },
            },
        },
    },
    {
        "name": "Orlando Festivals Calendar API",
        "url": "https://api.example-events.com/v2/orlando/festivals",
        "type": "multiple",
        "scraping_frequency": "daily",
        "scraper_config": {
            "festivals": {
                "type": "apiEndpoint",
                "headers": {"Accept": "application/json"},
                "jsonPath": "data.festivals",
                "dateFormat": "YYYY-MM-DD",
                "mapping": {
                    "name": "title",
                    "park_name": "location.park",
                    "start_date": "dates.start",
                    "end_date": "dates.end",
                    "description": "summary",
                    "website_url": "links[0].href",
                    "image_url": "images[0].url",
                },
            },
            "concerts": {
                "type": "apiEndpoint",
                "url": "https://api.example-events.com/v2/orlando/performances",
                "jsonPath": "data.performances",
                "dateFormat": "YYYY-MM-DD",
                "mapping": {
                    "artist_name": "performer.name",
                    "venue_name": "stage.name",
                    "festival_name": "festival.title",
                    "start_time": "startsAt",
                    "end_time": "endsAt",
                    "notes": "notes",
                },
            },
        },
    },
]


async def seed(store: SqlAlchemyStore) -> dict:
    created = 0
    skipped = 0
    for entry in KNOWN_SOURCES:
        source = DataSourceCreate.model_validate(entry)

        existing = await store.select(DATA_SOURCES, {"name": source.name})
        if existing:
            print(f"  = {source.name} (exists)")
            skipped += 1
            continue

        # Same check the pipeline uses at run time
        probe = DataSourceRead(id="00000000-0000-0000-0000-000000000000", **source.model_dump())
        missing = probe.missing_rulesets()
        if missing:
            raise SystemExit(f"{source.name}: no ruleset for {', '.join(kind.plural for kind in missing)}")

        await store.insert(DATA_SOURCES, source.model_dump(mode="json"))
        print(f"  + {source.name}")
        created += 1

    return {"created": created, "skipped": skipped}


async def main() -> None:
    settings = get_settings()
    engine = make_engine(settings.database_url)
    try:
        store = SqlAlchemyStore(async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))
        print("Seeding data sources...")
        result = await seed(store)
        print(f"Done: {result}")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
