"""Review and promotion of staged entities.

pending -> approved | rejected; both targets are terminal. Approval copies
the staged row, minus staging-only fields, into the production table. The
status change and production insert run in one store transaction, so a
failed insert leaves the staged row pending. Status changes are
conditional on the row still being pending, so of two concurrent reviews
of one record exactly one wins.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from encore.core.exceptions import ReviewError, StoreError
from encore.core.kinds import EntityKind, strip_staging_fields

logger = logging.getLogger(__name__)


class ReviewStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


_PENDING = {"status": ReviewStatus.PENDING.value}


@dataclass
class ReviewResult:
    table: str
    id: object
    status: ReviewStatus
    production_row: dict | None = None


class _PromotionFailed(Exception):
    """Internal marker so the insert failure can be told apart after rollback."""


class ReviewService:

    def __init__(self, store):
        self.store = store

    @staticmethod
    def _resolve(table: str, action: str) -> tuple[EntityKind, ReviewAction]:
        try:
            kind, _ = EntityKind.from_table(table)
        except ValueError:
            raise ReviewError("invalid_parameters", f"Unknown table: {table!r}") from None
        try:
            review_action = ReviewAction(action)
        except ValueError:
            raise ReviewError("invalid_parameters", f"Unknown action: {action!r}") from None
        return kind, review_action

    async def review(
        self,
        table: str,
        record_id,
        action: str,
        notes: str | None = None,
        is_admin: bool = False,
    ) -> ReviewResult:
        """Apply ``action`` to one staged record. Raises ReviewError."""
        if not is_admin:
            raise ReviewError("unauthorized", "Administrator access required")
        if not table or record_id is None or not action:
            raise ReviewError("invalid_parameters", "table, id and action are required")

        kind, review_action = self._resolve(table, action)
        staging_table = kind.staging_table

        try:
            staged = await self.store.get(staging_table, record_id)
        except StoreError as e:
            raise ReviewError("store_error", f"Could not load {staging_table} {record_id}: {e}") from e
        if staged is None:
            raise ReviewError("not_found", f"No {staging_table} record {record_id}")

        current = staged.get("status")
        if current != ReviewStatus.PENDING.value:
            raise self._not_pending(staging_table, record_id, current)

        if review_action is ReviewAction.REJECT:
            return await self._reject(kind, record_id, notes)
        return await self._approve(kind, record_id, notes)

    async def approve(self, table: str, record_id, notes: str | None = None, is_admin: bool = False) -> ReviewResult:
        return await self.review(table, record_id, ReviewAction.APPROVE.value, notes, is_admin)

    async def reject(self, table: str, record_id, notes: str | None = None, is_admin: bool = False) -> ReviewResult:
        return await self.review(table, record_id, ReviewAction.REJECT.value, notes, is_admin)

    @staticmethod
    def _not_pending(staging_table: str, record_id, current: str | None) -> ReviewError:
        return ReviewError(
            "invalid_parameters",
            f"{staging_table} {record_id} is already {current or 'reviewed'}; only pending records can be reviewed",
        )

    async def _lost_race(self, staging_table: str, record_id) -> ReviewError:
        """Error for a conditional update that matched nothing."""
        try:
            staged = await self.store.get(staging_table, record_id)
        except StoreError as e:
            return ReviewError("store_error", f"Could not load {staging_table} {record_id}: {e}")
        if staged is None:
            return ReviewError("not_found", f"No {staging_table} record {record_id}")
        return self._not_pending(staging_table, record_id, staged.get("status"))

    async def _reject(self, kind: EntityKind, record_id, notes: str | None) -> ReviewResult:
        try:
            updated = await self.store.update(
                kind.staging_table,
                record_id,
                {"status": ReviewStatus.REJECTED.value, "review_notes": notes},
                expected=_PENDING,
            )
        except StoreError as e:
            raise ReviewError("store_error", f"Could not update {kind.staging_table} {record_id}: {e}") from e
        if updated is None:
            raise await self._lost_race(kind.staging_table, record_id)

        logger.info(f"Rejected {kind.staging_table} {record_id}")
        return ReviewResult(kind.staging_table, record_id, ReviewStatus.REJECTED)

    async def _approve(self, kind: EntityKind, record_id, notes: str | None) -> ReviewResult:
        staging_table = kind.staging_table
        production_row = None
        try:
            async with self.store.transaction():
                updated = await self.store.update(
                    staging_table,
                    record_id,
                    {"status": ReviewStatus.APPROVED.value, "review_notes": notes},
                    expected=_PENDING,
                )
                # Another review got there first; leave the block without rolling back its work
                if updated is not None:
                    production_data = strip_staging_fields(kind, updated)
                    try:
                        production_row = await self.store.insert(kind.production_table, production_data)
                    except Exception as e:
                        raise _PromotionFailed(str(e)) from e
        except _PromotionFailed as e:
            logger.error(f"Promotion of {staging_table} {record_id} into {kind.production_table} failed: {e}")
            raise ReviewError(
                "promotion_failed",
                f"Could not insert into {kind.production_table}; {staging_table} {record_id} left pending: {e}",
            ) from e
        except StoreError as e:
            raise ReviewError("store_error", f"Could not update {staging_table} {record_id}: {e}") from e

        if production_row is None:
            raise await self._lost_race(staging_table, record_id)

        logger.info(f"Approved {staging_table} {record_id} -> {kind.production_table} {production_row.get('id')}")
        return ReviewResult(staging_table, record_id, ReviewStatus.APPROVED, production_row)
