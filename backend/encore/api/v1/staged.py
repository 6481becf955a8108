"""Staged entity listings for the review dashboard."""

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder

from encore.core.kinds import EntityKind
from encore.dependencies.auth import get_is_admin
from encore.dependencies.store import get_store

router = APIRouter(prefix="/staged", tags=["staged"])


@router.get("/{table}")
async def list_staged(
    table: str,
    store=Depends(get_store),
    is_admin: bool = Depends(get_is_admin),
    status: Literal["pending", "approved", "rejected"] | None = Query("pending"),
):
    """List staged records of one kind, pending by default."""
    if not is_admin:
        raise HTTPException(status_code=403, detail="Administrator access required")
    try:
        kind = EntityKind.parse(table)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown table: {table}")

    rows = await store.select(kind.staging_table, {"status": status} if status else None)
    return jsonable_encoder(rows)
