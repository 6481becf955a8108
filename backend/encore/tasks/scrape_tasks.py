"""Scrape orchestration tasks."""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from encore.config import get_settings
from encore.core.cancellation import CancellationToken
from encore.core.exceptions import EncoreError, RunFailedError
from encore.core.logging import setup_logging
from encore.models.base import make_engine
from encore.pipeline.orchestrator import RunOrchestrator
from encore.store.sql import SqlAlchemyStore
from encore.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


async def execute_run(
    store,
    run_id: str | None = None,
    run_type: str = "all",
    force_update: bool = False,
    cancel_token: CancellationToken | None = None,
) -> dict:
    """Run the pipeline once and return a JSON-safe outcome."""
    try:
        async with RunOrchestrator.open(store, cancel_token=cancel_token) as orchestrator:
            summary = await orchestrator.run(run_id=run_id, run_type=run_type, force_update=force_update)
    except RunFailedError as e:
        return {"status": "failed", "run_id": str(e.run_id), "error": e.message}
    except (EncoreError, ValueError) as e:
        logger.error(f"Scraping run not started: {e}")
        return {"status": "rejected", "run_id": run_id, "error": str(e)}

    return {"status": "completed", "run_id": str(summary.run_id), "results": summary.results()}


async def _execute_with_engine(run_id: str | None, run_type: str, force_update: bool) -> dict:
    # Each task gets its own event loop, so it needs its own engine and pool
    settings = get_settings()
    engine = make_engine(settings.database_url, echo=settings.debug)
    try:
        store = SqlAlchemyStore(async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))
        return await execute_run(store, run_id, run_type, force_update)
    finally:
        await engine.dispose()


@celery_app.task(name="encore.tasks.scrape_tasks.run_pipeline")
def run_pipeline(run_id: str | None = None, run_type: str = "all", force_update: bool = False):
    """Scheduled entry point: scrape due sources for ``run_type``."""
    setup_logging()
    result = asyncio.run(_execute_with_engine(run_id, run_type, force_update))
    logger.info(f"Scraping run finished: {result}")
    return result
