"""Data source API endpoints (read-only; sources are edited by admins elsewhere)."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from encore.core.kinds import SourceType
from encore.dependencies.store import get_store
from encore.models import DATA_SOURCES
from encore.schemas.data_source import DataSourceRead, DataSourceSummary

router = APIRouter(prefix="/sources", tags=["sources"])


@router.get("", response_model=list[DataSourceSummary])
async def list_sources(
    store=Depends(get_store),
    type: SourceType | None = Query(None, description="Filter by source type"),
    active: bool | None = Query(None, description="Filter by active status"),
):
    """List data sources."""
    filters = {}
    if type is not None:
        filters["type"] = type.value
    if active is not None:
        filters["active"] = active
    rows = await store.select(DATA_SOURCES, filters or None)
    return [DataSourceSummary.model_validate(row) for row in rows]


@router.get("/{source_id}", response_model=DataSourceRead)
async def get_source(source_id: UUID, store=Depends(get_store)):
    """Get a single data source with its scraper config."""
    row = await store.get(DATA_SOURCES, source_id)
    if not row:
        raise HTTPException(status_code=404, detail="Source not found")
    return DataSourceRead.model_validate(row)
