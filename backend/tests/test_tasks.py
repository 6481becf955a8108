"""Tests for the task entry point, notifications and the seed script."""

import asyncio
import uuid
from datetime import datetime, timezone

from encore.config import Settings
from encore.core.kinds import EntityKind
from encore.models import DATA_SOURCES, SCRAPING_RUNS
from encore.schemas.data_source import DataSourceRead
from encore.services import notifications
from encore.store import InMemoryStore
from encore.tasks.scrape_tasks import execute_run
from scripts.seed_data_sources import KNOWN_SOURCES, seed

NOW = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)


class TestExecuteRun:

    def test_completes_with_no_sources(self):
        store = InMemoryStore()

        result = asyncio.run(execute_run(store))

        assert result["status"] == "completed"
        assert result["results"]["sources"] == 0
        assert store.tables[SCRAPING_RUNS][0]["status"] == "completed"

    def test_rejected_while_another_run_is_active(self):
        store = InMemoryStore({SCRAPING_RUNS: [{"id": uuid.uuid4(), "status": "running", "start_time": datetime.now(timezone.utc)}]})

        result = asyncio.run(execute_run(store))

        assert result["status"] == "rejected"
        assert len(store.tables[SCRAPING_RUNS]) == 1

    def test_rejected_for_unknown_type(self):
        result = asyncio.run(execute_run(InMemoryStore(), run_type="podcasts"))
        assert result["status"] == "rejected"

    def test_failed_run(self):
        class Broken(InMemoryStore):
            async def select(self, table, filters=None):
                if table == DATA_SOURCES:
                    raise RuntimeError("boom")
                return await super().select(table, filters)

        store = Broken()
        result = asyncio.run(execute_run(store))

        assert result["status"] == "failed"
        assert result["error"] == "boom"


class TestNotifications:

    def test_failure_payload(self):
        run = {"id": "run-1", "status": "failed", "error_message": "timeout"}

        payload = notifications.notify_admins(notifications.SCRAPING_FAILURE, run)

        assert payload["type"] == "scraping_failure"
        assert payload["run_id"] == "run-1"
        assert payload["message"] == "Scraping run run-1 has failed: timeout"

    def test_custom_message(self):
        payload = notifications.notify_admins(notifications.DATA_REVIEW_REQUIRED, message="3 new artists")
        assert payload["message"] == "3 new artists"
        assert payload["run_id"] is None

    def test_disabled(self, monkeypatch):
        monkeypatch.setattr(notifications, "get_settings", lambda: Settings(_env_file=None, notifications_enabled=False))
        assert notifications.notify_admins(notifications.SCRAPING_FAILURE, {"id": "x"}) is None


class TestSeed:

    def test_known_sources_are_complete(self):
        for entry in KNOWN_SOURCES:
            source = DataSourceRead(id=uuid.uuid4(), **entry)
            assert source.missing_rulesets() == []
            for kind in source.declared_kinds():
                source.ruleset_for(kind)

    def test_seed_is_idempotent(self):
        store = InMemoryStore()

        first = asyncio.run(seed(store))
        second = asyncio.run(seed(store))

        assert first == {"created": len(KNOWN_SOURCES), "skipped": 0}
        assert second == {"created": 0, "skipped": len(KNOWN_SOURCES)}
        types = {row["type"] for row in store.tables[DATA_SOURCES]}
        assert types == {"artist", "park", "multiple"}

    def test_multiple_source_supplies_festivals_and_concerts(self):
        entry = next(e for e in KNOWN_SOURCES if e["type"] == "multiple")
        source = DataSourceRead(id=uuid.uuid4(), **entry)
        assert source.declared_kinds() == [EntityKind.FESTIVAL, EntityKind.CONCERT]
