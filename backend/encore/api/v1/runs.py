"""Scraping run API endpoints, including the pipeline entry point."""

import logging
from datetime import datetime, timezone
from uuid import UUID

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from encore.core.exceptions import (
    RunConflictError,
    RunFailedError,
    RunNotFoundError,
    RunStateError,
    StoreError,
)
from encore.dependencies.store import get_http_transport, get_store
from encore.models import SCRAPING_RUNS, RunStatus
from encore.pipeline.orchestrator import RunOrchestrator
from encore.schemas.scraping_run import (
    RunCreatedResponse,
    RunUpdate,
    RunUpdatedResponse,
    ScrapingRunRead,
    TriggerRequest,
    TriggerResponse,
    TriggerResults,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/runs", tags=["runs"])


def _error(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    body = {"error": error}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


@router.post("", response_model=RunCreatedResponse)
async def create_run(store=Depends(get_store)):
    """Create a run record before the pipeline is triggered."""
    try:
        run = await store.insert(SCRAPING_RUNS, {
            "status": RunStatus.INITIALIZING.value,
            "start_time": datetime.now(timezone.utc),
        })
    except StoreError as e:
        logger.error(f"Error creating scraping run: {e}")
        return _error(500, "Failed to create scraping run")
    return RunCreatedResponse(id=run["id"])


@router.get("", response_model=list[ScrapingRunRead])
async def list_runs(
    store=Depends(get_store),
    limit: int = Query(50, ge=1, le=100),
    status: str | None = Query(None, description="Filter by status"),
):
    """List recent scraping runs."""
    runs = await store.select(SCRAPING_RUNS, {"status": status} if status else None)
    runs.sort(key=lambda run: run["start_time"], reverse=True)
    return [ScrapingRunRead.model_validate(run) for run in runs[:limit]]


@router.get("/{run_id}", response_model=ScrapingRunRead)
async def get_run(run_id: UUID, store=Depends(get_store)):
    """Get a single scraping run."""
    run = await store.get(SCRAPING_RUNS, run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Scraping run not found")
    return ScrapingRunRead.model_validate(run)


@router.patch("/{run_id}", response_model=RunUpdatedResponse)
async def update_run(run_id: UUID, body: RunUpdate, store=Depends(get_store)):
    """Set a run's status from the scheduler. Terminal runs are immutable."""
    run = await store.get(SCRAPING_RUNS, run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Scraping run not found")
    if RunStatus(run["status"]).is_terminal:
        raise HTTPException(status_code=409, detail=f"Scraping run already {run['status']}")

    values = {"status": body.status.value}
    if body.status.is_terminal:
        values["end_time"] = datetime.now(timezone.utc)
    if body.error_message:
        values["error_message"] = body.error_message

    try:
        await store.update(SCRAPING_RUNS, run_id, values)
    except StoreError as e:
        logger.error(f"Error updating scraping run {run_id}: {e}")
        return _error(500, "Failed to update scraping run")
    return RunUpdatedResponse(id=run_id, status=body.status.value)


@router.post("/trigger", response_model=TriggerResponse)
async def trigger_run(
    body: TriggerRequest,
    store=Depends(get_store),
    transport: httpx.AsyncBaseTransport | None = Depends(get_http_transport),
):
    """Pipeline entry point for the external scheduler.

    Returns per-kind found-counts. Partial source failures still return
    200 with reduced counts; only run-level failures are non-2xx.
    """
    try:
        async with RunOrchestrator.open(store, transport=transport) as orchestrator:
            summary = await orchestrator.run(
                run_id=body.run_id,
                run_type=body.type,
                force_update=body.force_update,
            )
    except RunNotFoundError:
        return _error(404, "Scraping run not found")
    except RunStateError as e:
        return _error(409, "Scraping run already finished", str(e))
    except RunConflictError as e:
        return _error(409, "Another scraping run is active", str(e))
    except RunFailedError as e:
        return _error(500, "Scraping failed", e.message)
    except Exception as e:
        logger.exception(f"Unexpected error triggering run {body.run_id}")
        return _error(500, "Scraping failed", str(e))

    return JSONResponse(content=jsonable_encoder(TriggerResponse(
        run_id=summary.run_id,
        results=TriggerResults(**summary.results()),
    ), by_alias=True))
