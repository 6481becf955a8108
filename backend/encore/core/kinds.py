"""Entity kinds, source types and per-kind field layout."""

from enum import Enum


class EntityKind(str, Enum):
    PARK = "park"
    VENUE = "venue"
    ARTIST = "artist"
    FESTIVAL = "festival"
    CONCERT = "concert"

    @property
    def plural(self) -> str:
        return f"{self.value}s"

    @property
    def production_table(self) -> str:
        return self.plural

    @property
    def staging_table(self) -> str:
        return f"staged_{self.plural}"

    @property
    def count_field(self) -> str:
        """Column on scraping_runs holding this kind's found-count."""
        return f"{self.plural}_found"

    @property
    def primary_field(self) -> str:
        """Field a record must carry to be kept."""
        return "artist_name" if self is EntityKind.CONCERT else "name"

    @classmethod
    def parse(cls, value: str) -> "EntityKind":
        """Accept 'artist', 'artists' or 'staged_artists'."""
        text = (value or "").strip().lower()
        if text.startswith("staged_"):
            text = text[len("staged_"):]
        for kind in cls:
            if text in (kind.value, kind.plural):
                return kind
        raise ValueError(f"Unknown entity kind: {value!r}")

    @classmethod
    def from_table(cls, table: str) -> tuple["EntityKind", bool]:
        """Return (kind, is_staging) for a table name."""
        kind = cls.parse(table)
        return kind, table.strip().lower().startswith("staged_")


class SourceType(str, Enum):
    PARK = "park"
    VENUE = "venue"
    ARTIST = "artist"
    FESTIVAL = "festival"
    CONCERT = "concert"
    MULTIPLE = "multiple"

    def supplies(self, kind: EntityKind) -> bool:
        return self is SourceType.MULTIPLE or self.value == kind.value


class ScrapingFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


# Whole days between scrapes; unknown frequencies fall back to weekly
FREQUENCY_DAYS: dict[str, int] = {
    ScrapingFrequency.DAILY.value: 1,
    ScrapingFrequency.WEEKLY.value: 7,
    ScrapingFrequency.MONTHLY.value: 30,
}
DEFAULT_FREQUENCY_DAYS = FREQUENCY_DAYS[ScrapingFrequency.WEEKLY.value]


# Production-shape fields per kind
PRODUCTION_FIELDS: dict[EntityKind, tuple[str, ...]] = {
    EntityKind.PARK: ("name", "description", "website_url", "image_url"),
    EntityKind.VENUE: ("name", "park_id", "description", "location_details", "image_url"),
    EntityKind.ARTIST: ("name", "description", "image_url", "website_url", "genres", "social"),
    EntityKind.FESTIVAL: (
        "name", "park_id", "start_date", "end_date", "description", "website_url", "image_url",
    ),
    EntityKind.CONCERT: ("artist_id", "venue_id", "festival_id", "start_time", "end_time", "notes"),
}

# Name fields used to resolve references against production rows.
# field -> (production table, id field)
LOOKUP_FIELDS: dict[EntityKind, dict[str, tuple[str, str]]] = {
    EntityKind.VENUE: {"park_name": ("parks", "park_id")},
    EntityKind.FESTIVAL: {"park_name": ("parks", "park_id")},
    EntityKind.CONCERT: {
        "artist_name": ("artists", "artist_id"),
        "venue_name": ("venues", "venue_id"),
        "festival_name": ("festivals", "festival_id"),
    },
}

# Never copied into production on promotion
STAGING_ONLY_FIELDS: tuple[str, ...] = (
    "id", "status", "review_notes", "source_url", "created_at", "updated_at",
)


def staging_fields(kind: EntityKind) -> tuple[str, ...]:
    """All fields a staged record of this kind may carry besides bookkeeping."""
    return PRODUCTION_FIELDS[kind] + tuple(LOOKUP_FIELDS.get(kind, {}))


def strip_staging_fields(kind: EntityKind, row: dict) -> dict:
    """Production-shape copy of a staged row."""
    dropped = set(STAGING_ONLY_FIELDS) | set(LOOKUP_FIELDS.get(kind, {}))
    return {key: value for key, value in row.items() if key not in dropped}


def dedup_key(kind: EntityKind):
    """Key used to deduplicate one run's records of this kind."""
    if kind is EntityKind.CONCERT:
        def concert_key(record: dict):
            if not record.get("artist_name"):
                return None
            return "|".join(
                str(record.get(field) or "") for field in ("artist_name", "venue_name", "start_time")
            )
        return concert_key
    return "name"
