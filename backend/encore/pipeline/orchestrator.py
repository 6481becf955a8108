"""Run orchestrator: owns the ScrapingRun lifecycle.

running -> processing -> completed | failed. Due sources are extracted per
entity kind, deduplicated and staged. A failing source only costs its own
records; anything escaping that (including cancellation) fails the run,
and the run is always left in a terminal state.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable

import httpx

from encore.config import Settings, get_settings
from encore.core.cancellation import RUN_ABORTS, CancellationToken
from encore.core.exceptions import (
    RunConflictError,
    RunFailedError,
    RunNotFoundError,
    RunStateError,
)
from encore.core.kinds import DEFAULT_FREQUENCY_DAYS, FREQUENCY_DAYS, EntityKind, dedup_key
from encore.models import DATA_SOURCES, SCRAPING_RUNS, RunStatus
from encore.pipeline.staging import StagingReport, StagingWriter
from encore.schemas.data_source import DataSourceRead
from encore.scrapers.base import ExtractionResult, SkipReason, Skipped
from encore.scrapers.engine import ExtractionEngine
from encore.scrapers.http import Fetcher, HostThrottle, make_client
from encore.services import notifications
from encore.services.normalization import deduplicate_items

logger = logging.getLogger(__name__)

ERROR_MESSAGE_LIMIT = 2000
ABANDONED_MESSAGE = "Abandoned: still active past the worker time limit"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _started_before(run: dict, cutoff: datetime) -> bool:
    start = run.get("start_time")
    if start is None:
        return False
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    return start < cutoff


def kinds_for(run_type: str) -> list[EntityKind]:
    """Kinds selected by a run type ('all', 'artists', ...). ValueError if unknown."""
    if not run_type or run_type == "all":
        return list(EntityKind)
    return [EntityKind.parse(run_type)]


def is_source_due(source: DataSourceRead, now: datetime) -> bool:
    """Never-scraped sources are always due; otherwise whole days since
    the last scrape must reach the frequency's threshold."""
    if source.last_scraped is None:
        return True
    last = source.last_scraped
    if last.tzinfo is None:
        last = last.replace(tzinfo=timezone.utc)
    diff_days = (now - last).days
    threshold = FREQUENCY_DAYS.get(source.scraping_frequency, DEFAULT_FREQUENCY_DAYS)
    return diff_days >= threshold


def select_due_sources(
    sources: Iterable[DataSourceRead],
    now: datetime,
    force_update: bool = False,
) -> list[DataSourceRead]:
    sources = list(sources)
    if force_update:
        return sources
    return [source for source in sources if is_source_due(source, now)]


@dataclass
class RunSummary:
    run_id: object
    source_count: int = 0
    counts: dict[EntityKind, int] = field(default_factory=dict)
    skips: dict[EntityKind, list[Skipped]] = field(default_factory=dict)
    staging: dict[EntityKind, StagingReport] = field(default_factory=dict)

    def results(self) -> dict[str, int]:
        results = {"sources": self.source_count}
        for kind in EntityKind:
            results[kind.plural] = self.counts.get(kind, 0)
        return results


class KindAccumulator:
    """Collects per-source results for one kind from concurrent tasks.

    Records come back in source order regardless of completion order.
    """

    def __init__(self):
        self._lock = asyncio.Lock()
        self._results: dict[int, ExtractionResult] = {}

    async def add(self, index: int, result: ExtractionResult) -> None:
        async with self._lock:
            self._results[index] = result

    def records(self) -> list[dict]:
        return [record for index in sorted(self._results) for record in self._results[index].records]

    def skips(self) -> list[Skipped]:
        return [skip for index in sorted(self._results) for skip in self._results[index].skips]


class RunOrchestrator:

    def __init__(
        self,
        store,
        engine: ExtractionEngine,
        staging_writer: StagingWriter | None = None,
        settings: Settings | None = None,
        cancel_token: CancellationToken | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.engine = engine
        self.settings = settings or get_settings()
        self.staging_writer = staging_writer or StagingWriter(store, self.settings.staging_batch_size)
        self.cancel_token = cancel_token
        self.clock = clock

    @classmethod
    @asynccontextmanager
    async def open(
        cls,
        store,
        settings: Settings | None = None,
        cancel_token: CancellationToken | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Orchestrator with its own HTTP client, closed on exit."""
        settings = settings or get_settings()
        client = make_client(settings, transport)
        try:
            fetcher = Fetcher(client, HostThrottle(settings.max_requests_per_host), cancel_token)
            engine = ExtractionEngine(fetcher, store, settings)
            yield cls(store, engine, settings=settings, cancel_token=cancel_token, clock=clock)
        finally:
            await client.aclose()

    def _check_cancelled(self) -> None:
        if self.cancel_token is not None:
            self.cancel_token.raise_if_cancelled()

    # Run lifecycle

    async def _check_no_active_run(self, run_id) -> None:
        """Raise RunConflictError if a run other than ``run_id`` is live.

        Active runs that started more than ``run_stale_after_seconds`` ago
        belong to a lost worker; they are marked failed and skipped.
        """
        cutoff = self.clock() - timedelta(seconds=self.settings.run_stale_after_seconds)
        for status in RunStatus:
            if not status.is_active:
                continue
            for active in await self.store.select(SCRAPING_RUNS, {"status": status.value}):
                if run_id is not None and str(active["id"]) == str(run_id):
                    continue
                if not _started_before(active, cutoff):
                    raise RunConflictError(active["id"])
                logger.warning(f"Failing abandoned scraping run {active['id']} (started {active['start_time']})")
                abandoned = await self.store.update(SCRAPING_RUNS, active["id"], {
                    "status": RunStatus.FAILED.value,
                    "end_time": self.clock(),
                    "error_message": ABANDONED_MESSAGE,
                }, expected={"status": status.value})
                if abandoned is not None:
                    notifications.notify_admins(notifications.SCRAPING_FAILURE, abandoned)

    async def _start_run(self, run_id) -> dict:
        await self._check_no_active_run(run_id)

        if run_id is None:
            return await self.store.insert(SCRAPING_RUNS, {
                "start_time": self.clock(),
                "status": RunStatus.RUNNING.value,
            })

        run = await self.store.get(SCRAPING_RUNS, run_id)
        if run is None:
            raise RunNotFoundError(run_id)
        if RunStatus(run["status"]).is_terminal:
            raise RunStateError(f"Scraping run {run_id} already {run['status']}")
        if run["status"] == RunStatus.INITIALIZING.value:
            run = await self.store.update(SCRAPING_RUNS, run_id, {"status": RunStatus.RUNNING.value})
        return run

    async def _fail_run(self, run_id, message: str) -> None:
        message = (message or "Unknown error")[:ERROR_MESSAGE_LIMIT]
        try:
            run = await self.store.update(SCRAPING_RUNS, run_id, {
                "status": RunStatus.FAILED.value,
                "end_time": self.clock(),
                "error_message": message,
            })
        except Exception:
            logger.exception(f"Could not mark scraping run {run_id} as failed")
            run = {"id": run_id, "status": RunStatus.FAILED.value, "error_message": message}
        notifications.notify_admins(notifications.SCRAPING_FAILURE, run)

    async def run(self, run_id=None, run_type: str = "all", force_update: bool = False) -> RunSummary:
        """Execute one pipeline run.

        Raises RunNotFoundError / RunStateError / RunConflictError before
        any work starts, and RunFailedError once the run has been marked
        failed.
        """
        kinds = kinds_for(run_type)
        run = await self._start_run(run_id)
        run_id = run["id"]
        logger.info(f"Starting scraping run {run_id} for type: {run_type}, forceUpdate: {force_update}")

        try:
            return await self._execute(run_id, kinds, run_type, force_update)
        except RUN_ABORTS as e:
            message = str(e) or e.__class__.__name__
            logger.warning(f"Scraping run {run_id} stopped: {message}")
            await self._fail_run(run_id, message)
            raise RunFailedError(run_id, message) from e
        except Exception as e:
            logger.exception(f"Scraping error in run {run_id}: {e}")
            message = str(e) or e.__class__.__name__
            await self._fail_run(run_id, message)
            raise RunFailedError(run_id, message) from e

    async def _execute(self, run_id, kinds: list[EntityKind], run_type: str, force_update: bool) -> RunSummary:
        sources = await self.load_sources(kinds if run_type != "all" else None)
        logger.info(f"Found {len(sources)} active data sources to scrape")

        due = select_due_sources(sources, self.clock(), force_update)
        logger.info(f"{len(due)} sources need to be scraped")

        await self.store.update(SCRAPING_RUNS, run_id, {
            "status": RunStatus.PROCESSING.value,
            "source_count": len(due),
        })

        summary = RunSummary(run_id=run_id, source_count=len(due))
        for kind in kinds:
            self._check_cancelled()
            records, skips = await self.scrape_kind(kind, due)
            summary.counts[kind] = len(records)
            summary.skips[kind] = skips
            summary.staging[kind] = await self.staging_writer.write(kind, records)

        await self._mark_scraped(due)

        counts = {kind.count_field: summary.counts.get(kind, 0) for kind in EntityKind}
        run = await self.store.update(SCRAPING_RUNS, run_id, {
            "status": RunStatus.COMPLETED.value,
            "end_time": self.clock(),
            **counts,
        })
        logger.info(f"Scraping run {run_id} completed: {summary.results()}")

        if sum(summary.counts.values()) > 0:
            notifications.notify_admins(notifications.DATA_REVIEW_REQUIRED, run)
        return summary

    # Sources

    async def load_sources(self, kinds: list[EntityKind] | None = None) -> list[DataSourceRead]:
        """Active sources, optionally limited to those supplying ``kinds``."""
        rows = await self.store.select(DATA_SOURCES, {"active": True})
        sources = []
        for row in rows:
            try:
                sources.append(DataSourceRead.model_validate(row))
            except ValueError as e:
                logger.warning(f"Skipping malformed data source {row.get('name')!r}: {e}")
        if kinds is not None:
            sources = [s for s in sources if any(s.type.supplies(kind) for kind in kinds)]
        return sources

    async def _mark_scraped(self, sources: list[DataSourceRead]) -> None:
        now = self.clock()
        for source in sources:
            try:
                await self.store.update(DATA_SOURCES, source.id, {"last_scraped": now})
            except RUN_ABORTS:
                raise
            except Exception as e:
                logger.error(f"Could not update last_scraped for {source.name!r}: {e}")

    # Extraction

    async def scrape_kind(self, kind: EntityKind, sources: list[DataSourceRead]) -> tuple[list[dict], list[Skipped]]:
        """Extract ``kind`` from every matching source, then deduplicate."""
        matching = [source for source in sources if source.type.supplies(kind)]
        logger.info(f"Running {kind.value} scraper on {len(matching)} sources")
        if not matching:
            return [], []

        accumulator = KindAccumulator()
        limit = asyncio.Semaphore(max(1, self.settings.max_concurrent_sources))

        async def scrape_source(index: int, source: DataSourceRead) -> None:
            async with limit:
                self._check_cancelled()
                try:
                    result = await self.engine.extract(source, kind)
                except RUN_ABORTS:
                    raise
                except Exception as e:
                    logger.error(f"Error processing source {source.name}: {e}")
                    result = ExtractionResult(source.name, kind, [Skipped(SkipReason.SOURCE_FAILED, source.url, str(e))])
                await accumulator.add(index, result)

        outcomes = await asyncio.gather(
            *(scrape_source(index, source) for index, source in enumerate(matching)),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome

        records = accumulator.records()
        unique = deduplicate_items(records, dedup_key(kind))
        logger.info(f"Found {len(unique)} unique {kind.plural} from {len(records)} total")
        return unique, accumulator.skips()
