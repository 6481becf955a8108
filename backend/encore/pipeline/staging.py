"""Staging writer: batched, best-effort inserts into the staged_* tables."""

import logging
from dataclasses import dataclass, field

from encore.core.cancellation import RUN_ABORTS
from encore.core.kinds import EntityKind, staging_fields

logger = logging.getLogger(__name__)

MIN_BATCH_SIZE = 25
MAX_BATCH_SIZE = 50


@dataclass
class StagingReport:
    kind: EntityKind
    attempted: int = 0
    written: int = 0
    failed_batches: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed_batches


class StagingWriter:
    """Writes one kind's records in fixed-size batches.

    A failed batch is logged and skipped; earlier batches stay written and
    later batches are still attempted.
    """

    def __init__(self, store, batch_size: int = MIN_BATCH_SIZE):
        self.store = store
        self.batch_size = min(max(batch_size, MIN_BATCH_SIZE), MAX_BATCH_SIZE)

    @staticmethod
    def to_staged_row(kind: EntityKind, record: dict) -> dict:
        allowed = set(staging_fields(kind)) | {"source_url"}
        row = {key: value for key, value in record.items() if key in allowed}
        row["status"] = "pending"
        return row

    async def write(self, kind: EntityKind, records: list[dict]) -> StagingReport:
        report = StagingReport(kind=kind, attempted=len(records))
        if not records:
            return report

        table = kind.staging_table
        rows = [self.to_staged_row(kind, record) for record in records]
        logger.info(f"Storing {len(rows)} {kind.plural} in {table}")

        for start in range(0, len(rows), self.batch_size):
            batch = rows[start:start + self.batch_size]
            label = f"{table}[{start}:{start + len(batch)}]"
            try:
                await self.store.batch_insert(table, batch)
                report.written += len(batch)
            except RUN_ABORTS:
                raise
            except Exception as e:
                logger.error(f"Error storing batch {label}: {e}")
                report.failed_batches.append(label)

        return report
