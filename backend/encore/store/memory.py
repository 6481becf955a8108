"""In-memory store for tests and dry runs."""

import copy
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from encore.core.exceptions import StoreError
from encore.models import TABLES


class InMemoryStore:
    """Dict-of-lists implementation of the store protocol.

    Tables are created on first use. ``transaction()`` snapshots every
    table and restores the snapshot if the block raises.
    """

    def __init__(self, tables: dict[str, list[dict]] | None = None, strict: bool = False):
        self.tables: dict[str, list[dict]] = {name: list(rows) for name, rows in (tables or {}).items()}
        self.strict = strict
        self.calls: list[tuple[str, str]] = []

    def _table(self, table: str) -> list[dict]:
        if self.strict and table not in TABLES:
            raise StoreError(f"Unknown table: {table}")
        return self.tables.setdefault(table, [])

    def _find(self, table: str, row_id: Any) -> dict | None:
        for row in self._table(table):
            if str(row.get("id")) == str(row_id):
                return row
        return None

    async def get(self, table: str, row_id: Any) -> dict | None:
        self.calls.append(("get", table))
        row = self._find(table, row_id)
        return dict(row) if row else None

    async def select(self, table: str, filters: dict[str, Any] | None = None) -> list[dict]:
        self.calls.append(("select", table))
        filters = filters or {}
        return [
            dict(row) for row in self._table(table)
            if all(row.get(key) == value for key, value in filters.items())
        ]

    async def find_by_name(self, table: str, name: str, field: str = "name") -> dict | None:
        self.calls.append(("find_by_name", table))
        wanted = (name or "").strip().lower()
        for row in self._table(table):
            value = row.get(field)
            if isinstance(value, str) and value.strip().lower() == wanted:
                return dict(row)
        return None

    def _prepare(self, row: dict) -> dict:
        now = datetime.now(timezone.utc)
        prepared = {"id": uuid.uuid4(), "created_at": now, "updated_at": now}
        prepared.update({key: value for key, value in row.items() if value is not None or key not in prepared})
        return prepared

    async def insert(self, table: str, row: dict) -> dict:
        self.calls.append(("insert", table))
        prepared = self._prepare(row)
        self._table(table).append(prepared)
        return dict(prepared)

    async def batch_insert(self, table: str, rows: list[dict]) -> list[dict]:
        self.calls.append(("batch_insert", table))
        prepared = [self._prepare(row) for row in rows]
        self._table(table).extend(prepared)
        return [dict(row) for row in prepared]

    async def update(
        self,
        table: str,
        row_id: Any,
        values: dict,
        expected: dict[str, Any] | None = None,
    ) -> dict | None:
        self.calls.append(("update", table))
        row = self._find(table, row_id)
        if row is None:
            return None
        if expected and any(row.get(key) != value for key, value in expected.items()):
            return None
        row.update(values)
        row["updated_at"] = datetime.now(timezone.utc)
        return dict(row)

    @asynccontextmanager
    async def transaction(self):
        snapshot = copy.deepcopy(self.tables)
        try:
            yield
        except BaseException:
            self.tables = snapshot
            raise
