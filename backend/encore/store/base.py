"""Store protocol.

Rows cross this boundary as plain dicts keyed by column name. Every method
is a suspension point; implementations raise ``StoreError`` on failure.
"""

from typing import Any, AsyncContextManager, Protocol


class Store(Protocol):

    async def get(self, table: str, row_id: Any) -> dict | None:
        """Fetch one row by id."""
        ...

    async def select(self, table: str, filters: dict[str, Any] | None = None) -> list[dict]:
        """Rows whose columns equal every value in ``filters``."""
        ...

    async def find_by_name(self, table: str, name: str, field: str = "name") -> dict | None:
        """First row whose ``field`` matches ``name`` case-insensitively."""
        ...

    async def insert(self, table: str, row: dict) -> dict:
        ...

    async def batch_insert(self, table: str, rows: list[dict]) -> list[dict]:
        """Insert all rows or none."""
        ...

    async def update(
        self,
        table: str,
        row_id: Any,
        values: dict,
        expected: dict[str, Any] | None = None,
    ) -> dict | None:
        """Apply ``values`` and return the updated row.

        With ``expected``, the row is only changed if its columns still
        hold those values, checked and written as one step. Returns None
        if the row is missing or no longer matches.
        """
        ...

    def transaction(self) -> AsyncContextManager[None]:
        """Group the calls made inside the block; roll back on exception."""
        ...
