"""Data source model: one scrapeable origin and its extraction rules."""

from sqlalchemy import Boolean, Column, DateTime, Index, String, Text

from encore.models.base import Base, JSONType, TimestampMixin, UUIDMixin


class DataSource(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "data_sources"

    name = Column(String(255), nullable=False)
    url = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, index=True)  # park, venue, artist, festival, concert, multiple

    active = Column(Boolean, default=True, nullable=False)
    scraper_config = Column(JSONType, default=dict)
    scraping_frequency = Column(String(20), default="weekly", nullable=False)  # daily, weekly, monthly

    # The only field the pipeline writes
    last_scraped = Column(DateTime(timezone=True))

    __table_args__ = (
        Index("idx_data_source_active_type", "active", "type"),
    )
