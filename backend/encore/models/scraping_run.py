"""Scraping run model: audit log per pipeline execution."""

from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String, Text, func

from encore.models.base import Base, UUIDMixin


class RunStatus(str, Enum):
    INITIALIZING = "initializing"
    RUNNING = "running"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.FAILED)

    @property
    def is_active(self) -> bool:
        return self in (RunStatus.RUNNING, RunStatus.PROCESSING)


class ScrapingRun(UUIDMixin, Base):
    __tablename__ = "scraping_runs"

    start_time = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    end_time = Column(DateTime(timezone=True))  # set iff status is completed/failed
    status = Column(String(20), nullable=False, default=RunStatus.RUNNING.value, index=True)

    parks_found = Column(Integer, default=0)
    venues_found = Column(Integer, default=0)
    artists_found = Column(Integer, default=0)
    festivals_found = Column(Integer, default=0)
    concerts_found = Column(Integer, default=0)
    source_count = Column(Integer, default=0)
    error_message = Column(Text)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
