"""Tests for reviewing and promoting staged records."""

import asyncio
import uuid

import pytest

from encore.core.exceptions import ReviewError, StoreError
from encore.services.review import ReviewService, ReviewStatus
from encore.store import InMemoryStore


class FailingInsertStore(InMemoryStore):

    async def insert(self, table, row):
        if not table.startswith("staged_"):
            raise StoreError('null value in column "name" violates not-null constraint')
        return await super().insert(table, row)


class YieldingStore(InMemoryStore):
    """Hands control back to the event loop before every read and write."""

    async def get(self, table, row_id):
        await asyncio.sleep(0)
        return await super().get(table, row_id)

    async def update(self, table, row_id, values, expected=None):
        await asyncio.sleep(0)
        return await super().update(table, row_id, values, expected)


class UnreachableStore(InMemoryStore):

    async def get(self, table, row_id):
        raise StoreError("connection refused")


def _staged_artist(**overrides):
    row = {
        "id": uuid.uuid4(),
        "name": "Lake Street Dive",
        "description": "Soul-pop band",
        "genres": ["Soul", "Pop"],
        "source_url": "https://example.com/artists/lsd",
        "status": "pending",
        "review_notes": None,
    }
    row.update(overrides)
    return row


def _review(store, table, record_id, action, notes=None, is_admin=True):
    return asyncio.run(ReviewService(store).review(table, record_id, action, notes, is_admin=is_admin))


def _error_code(store, *args, **kwargs):
    with pytest.raises(ReviewError) as excinfo:
        _review(store, *args, **kwargs)
    return excinfo.value.code


class TestApprove:

    def test_promotes_production_fields_only(self):
        staged = _staged_artist()
        store = InMemoryStore({"staged_artists": [staged]})

        result = _review(store, "staged_artists", staged["id"], "approve", notes="verified")

        assert result.status is ReviewStatus.APPROVED
        [artist] = store.tables["artists"]
        assert artist["name"] == "Lake Street Dive"
        assert artist["genres"] == ["Soul", "Pop"]
        for field in ("status", "review_notes", "source_url"):
            assert field not in artist
        assert artist["id"] != staged["id"]
        assert result.production_row["id"] == artist["id"]

        [row] = store.tables["staged_artists"]
        assert row["status"] == "approved"
        assert row["review_notes"] == "verified"

    def test_concert_drops_lookup_names(self):
        artist_id = uuid.uuid4()
        staged = {
            "id": uuid.uuid4(),
            "artist_id": artist_id,
            "artist_name": "Lake Street Dive",
            "venue_id": None,
            "venue_name": "Main Stage",
            "start_time": "2024-06-01T20:00:00",
            "status": "pending",
        }
        store = InMemoryStore({"staged_concerts": [staged]})

        _review(store, "staged_concerts", staged["id"], "approve")

        [concert] = store.tables["concerts"]
        assert concert["artist_id"] == artist_id
        assert concert["start_time"] == "2024-06-01T20:00:00"
        assert "artist_name" not in concert
        assert "venue_name" not in concert

    def test_accepts_plural_table_name_and_string_id(self):
        staged = _staged_artist()
        store = InMemoryStore({"staged_artists": [staged]})

        _review(store, "artists", str(staged["id"]), "approve")

        assert store.tables["staged_artists"][0]["status"] == "approved"

    def test_failed_insert_leaves_record_pending(self):
        staged = _staged_artist()
        store = FailingInsertStore({"staged_artists": [staged]})

        assert _error_code(store, "staged_artists", staged["id"], "approve", notes="ok") == "promotion_failed"

        [row] = store.tables["staged_artists"]
        assert row["status"] == "pending"
        assert row["review_notes"] is None
        assert store.tables.get("artists", []) == []


class TestReject:

    def test_marks_rejected_without_promoting(self):
        staged = _staged_artist()
        store = InMemoryStore({"staged_artists": [staged]})

        result = _review(store, "staged_artists", staged["id"], "reject", notes="duplicate")

        assert result.status is ReviewStatus.REJECTED
        assert result.production_row is None
        assert store.tables["staged_artists"][0]["status"] == "rejected"
        assert store.tables["staged_artists"][0]["review_notes"] == "duplicate"
        assert "artists" not in store.tables


class TestReviewErrors:

    def test_requires_admin(self):
        staged = _staged_artist()
        store = InMemoryStore({"staged_artists": [staged]})

        assert _error_code(store, "staged_artists", staged["id"], "approve", is_admin=False) == "unauthorized"
        assert store.tables["staged_artists"][0]["status"] == "pending"

    def test_unknown_table_or_action(self):
        store = InMemoryStore()
        assert _error_code(store, "staged_podcasts", uuid.uuid4(), "approve") == "invalid_parameters"
        assert _error_code(store, "staged_artists", uuid.uuid4(), "delete") == "invalid_parameters"
        assert _error_code(store, "", uuid.uuid4(), "approve") == "invalid_parameters"

    def test_missing_record(self):
        store = InMemoryStore({"staged_artists": []})
        assert _error_code(store, "staged_artists", uuid.uuid4(), "approve") == "not_found"

    def test_only_pending_records(self):
        approved = _staged_artist(status="approved")
        rejected = _staged_artist(status="rejected")
        store = InMemoryStore({"staged_artists": [approved, rejected]})

        assert _error_code(store, "staged_artists", approved["id"], "reject") == "invalid_parameters"
        assert _error_code(store, "staged_artists", rejected["id"], "approve") == "invalid_parameters"
        assert "artists" not in store.tables

    def test_store_unreachable(self):
        store = UnreachableStore()
        assert _error_code(store, "staged_artists", uuid.uuid4(), "approve") == "store_error"

    def test_helpers(self):
        staged = _staged_artist()
        store = InMemoryStore({"staged_artists": [staged]})
        service = ReviewService(store)

        result = asyncio.run(service.approve("staged_artists", staged["id"], is_admin=True))

        assert result.status is ReviewStatus.APPROVED
        with pytest.raises(ReviewError):
            asyncio.run(service.reject("staged_artists", staged["id"], is_admin=True))


class TestConcurrentReviews:

    def _race(self, store, record_id, *actions):
        service = ReviewService(store)

        async def _go():
            return await asyncio.gather(
                *(service.review("staged_artists", record_id, action, is_admin=True) for action in actions),
                return_exceptions=True,
            )
        return asyncio.run(_go())

    def test_double_approve_promotes_once(self):
        staged = _staged_artist()
        store = YieldingStore({"staged_artists": [staged]})

        outcomes = self._race(store, staged["id"], "approve", "approve")

        winners = [o for o in outcomes if not isinstance(o, BaseException)]
        losers = [o for o in outcomes if isinstance(o, ReviewError)]
        assert len(winners) == 1
        assert [e.code for e in losers] == ["invalid_parameters"]
        assert len(store.tables["artists"]) == 1
        assert store.tables["staged_artists"][0]["status"] == "approved"

    def test_approve_racing_reject_stays_consistent(self):
        staged = _staged_artist()
        store = YieldingStore({"staged_artists": [staged]})

        outcomes = self._race(store, staged["id"], "approve", "reject")

        [winner] = [o for o in outcomes if not isinstance(o, BaseException)]
        assert sum(isinstance(o, ReviewError) for o in outcomes) == 1
        status = store.tables["staged_artists"][0]["status"]
        assert status == winner.status.value
        expected_rows = 1 if status == "approved" else 0
        assert len(store.tables.get("artists", [])) == expected_rows
