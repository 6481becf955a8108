"""SQLAlchemy-backed store over the async engine."""

import logging
import uuid
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import Date, DateTime, func, inspect, select, update as sql_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from encore.core.exceptions import StoreError
from encore.models import TABLES
from encore.models.base import Base, get_sessionmaker

logger = logging.getLogger(__name__)

# Session of the enclosing transaction() block, if any
_current_session: ContextVar[AsyncSession | None] = ContextVar("encore_store_session", default=None)


def _to_dict(obj: Base) -> dict:
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


def _row_id(row_id: Any) -> Any:
    if isinstance(row_id, str):
        try:
            return uuid.UUID(row_id)
        except ValueError as e:
            raise StoreError(f"Invalid id: {row_id!r}") from e
    return row_id


def _coerce(model: type[Base], row: dict) -> dict:
    """Keep known columns and turn ISO strings into date/datetime values."""
    columns = model.__table__.columns
    values = {}
    for key, value in row.items():
        if key not in columns:
            logger.debug(f"Dropping unknown column {model.__tablename__}.{key}")
            continue
        column_type = columns[key].type
        if isinstance(value, str) and value:
            if isinstance(column_type, DateTime):
                value = datetime.fromisoformat(value)
                if value.tzinfo is None:
                    value = value.replace(tzinfo=timezone.utc)
            elif isinstance(column_type, Date):
                value = date.fromisoformat(value[:10])
        values[key] = value
    return values


class SqlAlchemyStore:

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession] | None = None):
        self.sessionmaker = sessionmaker or get_sessionmaker()

    @staticmethod
    def _model(table: str) -> type[Base]:
        model = TABLES.get(table)
        if model is None:
            raise StoreError(f"Unknown table: {table}")
        return model

    @asynccontextmanager
    async def _session(self):
        """Reuse the transaction's session, or open and commit a new one."""
        current = _current_session.get()
        if current is not None:
            yield current
            return
        async with self.sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise StoreError(str(e)) from e
            except Exception:
                await session.rollback()
                raise

    @asynccontextmanager
    async def transaction(self):
        if _current_session.get() is not None:
            yield
            return
        async with self.sessionmaker() as session:
            token = _current_session.set(session)
            try:
                yield
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise StoreError(str(e)) from e
            except BaseException:
                await session.rollback()
                raise
            finally:
                _current_session.reset(token)

    async def get(self, table: str, row_id: Any) -> dict | None:
        model = self._model(table)
        async with self._session() as session:
            obj = await session.get(model, _row_id(row_id))
            return _to_dict(obj) if obj else None

    async def select(self, table: str, filters: dict[str, Any] | None = None) -> list[dict]:
        model = self._model(table)
        query = select(model)
        for key, value in (filters or {}).items():
            query = query.where(getattr(model, key) == value)
        async with self._session() as session:
            result = await session.execute(query)
            return [_to_dict(obj) for obj in result.scalars().all()]

    async def find_by_name(self, table: str, name: str, field: str = "name") -> dict | None:
        model = self._model(table)
        column = getattr(model, field)
        query = select(model).where(func.lower(column) == (name or "").strip().lower()).limit(1)
        async with self._session() as session:
            result = await session.execute(query)
            obj = result.scalar_one_or_none()
            return _to_dict(obj) if obj else None

    async def insert(self, table: str, row: dict) -> dict:
        rows = await self.batch_insert(table, [row])
        return rows[0]

    async def batch_insert(self, table: str, rows: list[dict]) -> list[dict]:
        model = self._model(table)
        objects = [model(**_coerce(model, row)) for row in rows]
        async with self._session() as session:
            session.add_all(objects)
            try:
                await session.flush()
            except SQLAlchemyError as e:
                raise StoreError(str(e)) from e
            for obj in objects:
                await session.refresh(obj)
            return [_to_dict(obj) for obj in objects]

    async def update(
        self,
        table: str,
        row_id: Any,
        values: dict,
        expected: dict[str, Any] | None = None,
    ) -> dict | None:
        model = self._model(table)
        if expected:
            return await self._update_where(model, row_id, values, expected)
        async with self._session() as session:
            obj = await session.get(model, _row_id(row_id))
            if obj is None:
                return None
            for key, value in _coerce(model, values).items():
                setattr(obj, key, value)
            try:
                await session.flush()
            except SQLAlchemyError as e:
                raise StoreError(str(e)) from e
            await session.refresh(obj)
            return _to_dict(obj)

    async def _update_where(self, model: type[Base], row_id: Any, values: dict, expected: dict[str, Any]) -> dict | None:
        """UPDATE ... WHERE id = :id AND every expected column still matches."""
        row_id = _row_id(row_id)
        query = sql_update(model).where(model.id == row_id)
        for key, value in expected.items():
            query = query.where(getattr(model, key) == value)
        query = query.values(**_coerce(model, values)).execution_options(synchronize_session=False)
        async with self._session() as session:
            try:
                result = await session.execute(query)
            except SQLAlchemyError as e:
                raise StoreError(str(e)) from e
            if result.rowcount == 0:
                return None
            obj = await session.get(model, row_id, populate_existing=True)
            return _to_dict(obj) if obj else None


async def create_all(store: SqlAlchemyStore) -> None:
    """Create every table on the store's engine (tests and local runs)."""
    engine = store.sessionmaker.kw["bind"]
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
