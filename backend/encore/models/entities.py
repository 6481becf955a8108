"""Production and staged entity tables.

Each kind has a production table and a structurally identical staging
table that adds provenance and review columns. Staged rows are kept after
promotion as an audit trail.
"""

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Text, Uuid

from encore.models.base import Base, JSONType, TimestampMixin, UUIDMixin


class StagingMixin:
    source_url = Column(Text)
    status = Column(String(20), nullable=False, default="pending", index=True)  # pending, approved, rejected
    review_notes = Column(Text)


# Production

class Park(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "parks"

    name = Column(Text, nullable=False)
    description = Column(Text)
    website_url = Column(Text)
    image_url = Column(Text)


class Venue(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "venues"

    name = Column(Text, nullable=False)
    park_id = Column(Uuid(as_uuid=True), ForeignKey("parks.id"), index=True)
    description = Column(Text)
    location_details = Column(Text)
    image_url = Column(Text)


class Artist(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "artists"

    name = Column(Text, nullable=False)
    description = Column(Text)
    image_url = Column(Text)
    website_url = Column(Text)
    genres = Column(JSONType)
    social = Column(JSONType)


class Festival(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "festivals"

    name = Column(Text, nullable=False)
    park_id = Column(Uuid(as_uuid=True), ForeignKey("parks.id"), index=True)
    start_date = Column(Date)
    end_date = Column(Date)
    description = Column(Text)
    website_url = Column(Text)
    image_url = Column(Text)


class Concert(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "concerts"

    artist_id = Column(Uuid(as_uuid=True), ForeignKey("artists.id"))
    venue_id = Column(Uuid(as_uuid=True), ForeignKey("venues.id"))
    festival_id = Column(Uuid(as_uuid=True), ForeignKey("festivals.id"), index=True)
    start_time = Column(DateTime(timezone=True), index=True)
    end_time = Column(DateTime(timezone=True))
    notes = Column(Text)


# Staging. References are plain ids: resolution is best-effort at
# extraction time, not a hard foreign key.

class StagedPark(UUIDMixin, TimestampMixin, StagingMixin, Base):
    __tablename__ = "staged_parks"

    name = Column(Text, nullable=False)
    description = Column(Text)
    website_url = Column(Text)
    image_url = Column(Text)


class StagedVenue(UUIDMixin, TimestampMixin, StagingMixin, Base):
    __tablename__ = "staged_venues"

    name = Column(Text, nullable=False)
    park_id = Column(Uuid(as_uuid=True))
    park_name = Column(Text)
    description = Column(Text)
    location_details = Column(Text)
    image_url = Column(Text)


class StagedArtist(UUIDMixin, TimestampMixin, StagingMixin, Base):
    __tablename__ = "staged_artists"

    name = Column(Text, nullable=False)
    description = Column(Text)
    image_url = Column(Text)
    website_url = Column(Text)
    genres = Column(JSONType)
    social = Column(JSONType)


class StagedFestival(UUIDMixin, TimestampMixin, StagingMixin, Base):
    __tablename__ = "staged_festivals"

    name = Column(Text, nullable=False)
    park_id = Column(Uuid(as_uuid=True))
    park_name = Column(Text)
    start_date = Column(Date)
    end_date = Column(Date)
    description = Column(Text)
    website_url = Column(Text)
    image_url = Column(Text)


class StagedConcert(UUIDMixin, TimestampMixin, StagingMixin, Base):
    __tablename__ = "staged_concerts"

    artist_id = Column(Uuid(as_uuid=True))
    venue_id = Column(Uuid(as_uuid=True))
    festival_id = Column(Uuid(as_uuid=True))
    artist_name = Column(Text)
    venue_name = Column(Text)
    festival_name = Column(Text)
    start_time = Column(DateTime(timezone=True))
    end_time = Column(DateTime(timezone=True))
    notes = Column(Text)
