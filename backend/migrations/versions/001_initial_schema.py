"""Initial schema: data_sources, scraping_runs, production and staged entity tables.

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _staging() -> list[sa.Column]:
    return [
        sa.Column("source_url", sa.Text),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending", index=True),
        sa.Column("review_notes", sa.Text),
    ]


def _uuid_pk() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True)


def upgrade() -> None:
    # Data sources
    op.create_table(
        "data_sources",
        _uuid_pk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("url", sa.Text, nullable=False),
        sa.Column("type", sa.String(20), nullable=False, index=True),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("scraper_config", postgresql.JSONB, server_default=sa.text("'{}'::jsonb")),
        sa.Column("scraping_frequency", sa.String(20), nullable=False, server_default="weekly"),
        sa.Column("last_scraped", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index("idx_data_source_active_type", "data_sources", ["active", "type"])

    # Scraping runs
    op.create_table(
        "scraping_runs",
        _uuid_pk(),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("end_time", sa.DateTime(timezone=True)),
        sa.Column("status", sa.String(20), nullable=False, server_default="running", index=True),
        sa.Column("parks_found", sa.Integer, server_default=sa.text("0")),
        sa.Column("venues_found", sa.Integer, server_default=sa.text("0")),
        sa.Column("artists_found", sa.Integer, server_default=sa.text("0")),
        sa.Column("festivals_found", sa.Integer, server_default=sa.text("0")),
        sa.Column("concerts_found", sa.Integer, server_default=sa.text("0")),
        sa.Column("source_count", sa.Integer, server_default=sa.text("0")),
        sa.Column("error_message", sa.Text),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "(status IN ('completed', 'failed')) = (end_time IS NOT NULL)",
            name="ck_scraping_runs_end_time_terminal",
        ),
    )

    # Production entities
    op.create_table(
        "parks",
        _uuid_pk(),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("website_url", sa.Text),
        sa.Column("image_url", sa.Text),
        *_timestamps(),
    )
    op.create_table(
        "venues",
        _uuid_pk(),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("park_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("parks.id"), index=True),
        sa.Column("description", sa.Text),
        sa.Column("location_details", sa.Text),
        sa.Column("image_url", sa.Text),
        *_timestamps(),
    )
    op.create_table(
        "artists",
        _uuid_pk(),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("image_url", sa.Text),
        sa.Column("website_url", sa.Text),
        sa.Column("genres", postgresql.JSONB),
        sa.Column("social", postgresql.JSONB),
        *_timestamps(),
    )
    op.create_table(
        "festivals",
        _uuid_pk(),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("park_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("parks.id"), index=True),
        sa.Column("start_date", sa.Date),
        sa.Column("end_date", sa.Date),
        sa.Column("description", sa.Text),
        sa.Column("website_url", sa.Text),
        sa.Column("image_url", sa.Text),
        *_timestamps(),
    )
    op.create_table(
        "concerts",
        _uuid_pk(),
        sa.Column("artist_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("artists.id")),
        sa.Column("venue_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("venues.id")),
        sa.Column("festival_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("festivals.id"), index=True),
        sa.Column("start_time", sa.DateTime(timezone=True), index=True),
        sa.Column("end_time", sa.DateTime(timezone=True)),
        sa.Column("notes", sa.Text),
        *_timestamps(),
    )

    # Staged entities (no foreign keys: references are resolved best-effort)
    op.create_table(
        "staged_parks",
        _uuid_pk(),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("website_url", sa.Text),
        sa.Column("image_url", sa.Text),
        *_staging(),
        *_timestamps(),
    )
    op.create_table(
        "staged_venues",
        _uuid_pk(),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("park_id", postgresql.UUID(as_uuid=True)),
        sa.Column("park_name", sa.Text),
        sa.Column("description", sa.Text),
        sa.Column("location_details", sa.Text),
        sa.Column("image_url", sa.Text),
        *_staging(),
        *_timestamps(),
    )
    op.create_table(
        "staged_artists",
        _uuid_pk(),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("image_url", sa.Text),
        sa.Column("website_url", sa.Text),
        sa.Column("genres", postgresql.JSONB),
        sa.Column("social", postgresql.JSONB),
        *_staging(),
        *_timestamps(),
    )
    op.create_table(
        "staged_festivals",
        _uuid_pk(),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("park_id", postgresql.UUID(as_uuid=True)),
        sa.Column("park_name", sa.Text),
        sa.Column("start_date", sa.Date),
        sa.Column("end_date", sa.Date),
        sa.Column("description", sa.Text),
        sa.Column("website_url", sa.Text),
        sa.Column("image_url", sa.Text),
        *_staging(),
        *_timestamps(),
    )
    op.create_table(
        "staged_concerts",
        _uuid_pk(),
        sa.Column("artist_id", postgresql.UUID(as_uuid=True)),
        sa.Column("venue_id", postgresql.UUID(as_uuid=True)),
        sa.Column("festival_id", postgresql.UUID(as_uuid=True)),
        sa.Column("artist_name", sa.Text),
        sa.Column("venue_name", sa.Text),
        sa.Column("festival_name", sa.Text),
        sa.Column("start_time", sa.DateTime(timezone=True)),
        sa.Column("end_time", sa.DateTime(timezone=True)),
        sa.Column("notes", sa.Text),
        *_staging(),
        *_timestamps(),
    )


def downgrade() -> None:
    for table in (
        "staged_concerts", "staged_festivals", "staged_artists", "staged_venues", "staged_parks",
        "concerts", "festivals", "artists", "venues", "parks",
        "scraping_runs", "data_sources",
    ):
        op.drop_table(table)
