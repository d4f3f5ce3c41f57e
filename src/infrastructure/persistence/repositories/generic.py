"""Entity-agnostic SQL implementation of Repository[T, IdT].

SQL is generated from the EntityMapping built at construction and executed
as textual statements on an AsyncConnection.  Driver errors never escape:
every public method returns a ServiceResult.

Connection mode is fixed for the repository's lifetime:
  - standalone (unit_of_work=None): each call opens, uses and closes a
    private connection inside its own transaction;
  - session-bound: each call runs on the unit of work's connection.  With a
    transaction open on the unit of work the call enlists in it (batches
    use a SAVEPOINT); otherwise the call is committed on its own.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import ValidationError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from src.domain.models.result import ServiceResult
from src.domain.repositories.base import Repository
from src.infrastructure.persistence.mapping import EntityMapping, MappingError
from src.infrastructure.persistence.query_builder import QueryBuilder

if TYPE_CHECKING:
    from src.infrastructure.database import ConnectionProvider
    from src.infrastructure.persistence.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

T = TypeVar("T")
IdT = TypeVar("IdT")

_DB_ERRORS = (SQLAlchemyError, OSError)
# A stored row that does not fit the entity type.
_ROW_ERRORS = (ValidationError, TypeError)


class NoRowsAffectedError(Exception):
    """A write statement inside a batch changed nothing."""


class SqlRepository(Repository[T, IdT]):
    def __init__(
        self,
        entity_type: type[T],
        connection_provider: ConnectionProvider,
        *,
        table_name: str | None = None,
        id_column: str | None = None,
        unit_of_work: UnitOfWork | None = None,
    ) -> None:
        if entity_type is None:
            raise TypeError("entity_type is required")
        if connection_provider is None:
            raise TypeError("connection_provider is required")
        self._provider = connection_provider
        self._unit_of_work = unit_of_work
        self._mapping: EntityMapping[T] = EntityMapping(entity_type, table_name, id_column)
        self._entity_name = entity_type.__name__

        table, key = self._mapping.table_name, self._mapping.id_column
        insert_columns = [f.column for f in self._mapping.non_key_fields]
        if not insert_columns:
            raise MappingError(f"{self._entity_name} has no columns besides its key")
        self._insert_sql = (
            f"INSERT INTO {table} ({', '.join(insert_columns)}) "
            f"VALUES ({', '.join(':' + c for c in insert_columns)})"
        )
        assignments = ", ".join(f"{c} = :{c}" for c in insert_columns)
        self._update_sql = f"UPDATE {table} SET {assignments} WHERE {key} = :{key}"
        self._delete_sql = f"DELETE FROM {table} WHERE {key} = :{key}"

    @property
    def entity_type(self) -> type[T]:
        return self._mapping.entity_type

    @property
    def mapping(self) -> EntityMapping[T]:
        return self._mapping

    @property
    def table_name(self) -> str:
        return self._mapping.table_name

    @property
    def id_column(self) -> str:
        return self._mapping.id_column

    @property
    def unit_of_work(self) -> UnitOfWork | None:
        return self._unit_of_work

    # ── reads ────────────────────────────────────────────────────────────── #

    async def get_all(self) -> ServiceResult[list[T]]:
        return await self._query(*self._select().build(), operation="get_all")

    async def get_by_id(self, id: IdT) -> ServiceResult[T | None]:
        sql, params = self._select().where(*self._id_predicate(id)).build()
        return await self._query_first(sql, params, operation="get_by_id")

    async def exists(self, id: IdT) -> ServiceResult[bool]:
        sql, params = self._select("COUNT(1)").where(*self._id_predicate(id)).build()
        result = await self._scalar(sql, params, operation="exists")
        if not result.is_success:
            return ServiceResult.failure(list(result.errors))
        return ServiceResult.success(int(result.value or 0) > 0)

    async def count(self) -> ServiceResult[int]:
        sql, params = self._select("COUNT(*)").build()
        result = await self._scalar(sql, params, operation="count")
        if not result.is_success:
            return ServiceResult.failure(list(result.errors))
        return ServiceResult.success(int(result.value or 0))

    async def get_paged(self, page_number: int, page_size: int) -> ServiceResult[list[T]]:
        if page_size <= 0:
            return ServiceResult.failure(f"page_size must be positive, got {page_size}")
        sql, params = (
            self._select().order_by(self.id_column).page(max(page_number, 1), page_size).build()
        )
        return await self._query(sql, params, operation="get_paged")

    async def get_where(self, predicate: Callable[[T], bool]) -> ServiceResult[list[T]]:
        """Filter in memory.  The whole table is fetched first."""
        everything = await self.get_all()
        if not everything.is_success:
            return ServiceResult.failure(list(everything.errors))
        return ServiceResult.success([e for e in everything.value if predicate(e)])

    async def get_first_or_default(
        self, predicate: Callable[[T], bool]
    ) -> ServiceResult[T | None]:
        """Filter in memory.  The whole table is fetched first."""
        everything = await self.get_all()
        if not everything.is_success:
            return ServiceResult.failure(list(everything.errors))
        return ServiceResult.success(next((e for e in everything.value if predicate(e)), None))

    # ── writes ───────────────────────────────────────────────────────────── #

    async def add(self, entity: T) -> ServiceResult[T]:
        if entity is None:
            raise TypeError("entity is required")
        values = self._mapping.to_values(entity, include_id=False)
        returning = self._provider.supports_returning
        sql = f"{self._insert_sql} RETURNING {self.id_column}" if returning else self._insert_sql
        logger.debug("add %s: %s", self._entity_name, sql)
        try:
            async with self._connect() as conn:
                result = await conn.execute(text(sql), values)
                if returning:
                    row = result.first()
                    inserted, new_id = row is not None, (row[0] if row is not None else None)
                else:
                    inserted, new_id = result.rowcount > 0, None
        except _DB_ERRORS as exc:
            return self._failure("add", exc)

        if not inserted:
            return ServiceResult.failure(f"add failed for {self._entity_name}: no row inserted")
        if new_id is not None:
            entity = self._mapping.with_id(entity, new_id)
        return ServiceResult.success(entity)

    async def update(self, entity: T) -> ServiceResult[bool]:
        if entity is None:
            raise TypeError("entity is required")
        return await self._write(
            self._update_sql, self._mapping.to_values(entity), operation="update"
        )

    async def delete(self, id: IdT) -> ServiceResult[bool]:
        return await self._write(self._delete_sql, {self.id_column: id}, operation="delete")

    async def add_range(self, entities: Iterable[T]) -> ServiceResult[bool]:
        statements = [
            (self._insert_sql, self._mapping.to_values(e, include_id=False)) for e in entities
        ]
        return await self._run_batch(statements, operation="add_range")

    async def update_range(self, entities: Iterable[T]) -> ServiceResult[bool]:
        statements = [(self._update_sql, self._mapping.to_values(e)) for e in entities]
        return await self._run_batch(statements, operation="update_range")

    async def delete_range(self, entities: Iterable[T]) -> ServiceResult[bool]:
        statements = [
            (self._delete_sql, {self.id_column: self._mapping.get_id(e)}) for e in entities
        ]
        return await self._run_batch(statements, operation="delete_range")

    # ── helpers for subclasses ───────────────────────────────────────────── #

    async def _query(
        self, sql: str, params: dict[str, Any] | None = None, *, operation: str = "query"
    ) -> ServiceResult[list[T]]:
        logger.debug("%s %s: %s", operation, self._entity_name, sql)
        try:
            async with self._connect() as conn:
                rows = (await conn.execute(text(sql), params or {})).mappings().all()
        except _DB_ERRORS as exc:
            return self._failure(operation, exc)
        try:
            entities = [self._mapping.from_row(row) for row in rows]
        except _ROW_ERRORS as exc:
            return self._failure(operation, exc)
        return ServiceResult.success(entities)

    async def _query_first(
        self, sql: str, params: dict[str, Any] | None = None, *, operation: str = "query_first"
    ) -> ServiceResult[T | None]:
        logger.debug("%s %s: %s", operation, self._entity_name, sql)
        try:
            async with self._connect() as conn:
                row = (await conn.execute(text(sql), params or {})).mappings().first()
        except _DB_ERRORS as exc:
            return self._failure(operation, exc)
        if row is None:
            return ServiceResult.success(None)
        try:
            entity = self._mapping.from_row(row)
        except _ROW_ERRORS as exc:
            return self._failure(operation, exc)
        return ServiceResult.success(entity)

    async def _execute(
        self, sql: str, params: dict[str, Any] | None = None, *, operation: str = "execute"
    ) -> ServiceResult[int]:
        """Run a command and return the affected row count."""
        logger.debug("%s %s: %s", operation, self._entity_name, sql)
        try:
            async with self._connect() as conn:
                result = await conn.execute(text(sql), params or {})
        except _DB_ERRORS as exc:
            return self._failure(operation, exc)
        return ServiceResult.success(result.rowcount)

    async def _scalar(
        self, sql: str, params: dict[str, Any] | None = None, *, operation: str = "scalar"
    ) -> ServiceResult[Any]:
        logger.debug("%s %s: %s", operation, self._entity_name, sql)
        try:
            async with self._connect() as conn:
                value = (await conn.execute(text(sql), params or {})).scalar()
        except _DB_ERRORS as exc:
            return self._failure(operation, exc)
        return ServiceResult.success(value)

    def _select(self, *columns: str) -> QueryBuilder:
        return QueryBuilder(self._provider.pagination_style).select(*columns).from_(self.table_name)

    # ── internals ────────────────────────────────────────────────────────── #

    def _id_predicate(self, id: Any) -> tuple[str, str, Any]:
        key = self.id_column
        return f"{key} = :{key}", key, id

    async def _write(
        self, sql: str, params: dict[str, Any], *, operation: str
    ) -> ServiceResult[bool]:
        affected = await self._execute(sql, params, operation=operation)
        if not affected.is_success:
            return ServiceResult.failure(list(affected.errors))
        if affected.value == 0:
            return ServiceResult.failure(
                f"{operation} failed for {self._entity_name}: no rows affected"
            )
        return ServiceResult.success(True)

    async def _run_batch(
        self, statements: list[tuple[str, dict[str, Any]]], *, operation: str
    ) -> ServiceResult[bool]:
        """Execute statements in one transaction; any failure rolls back all of them."""
        if not statements:
            return ServiceResult.success(True)
        logger.debug("%s %s: %d statements", operation, self._entity_name, len(statements))
        try:
            async with self._connect(atomic=True) as conn:
                for position, (sql, params) in enumerate(statements, start=1):
                    result = await conn.execute(text(sql), params)
                    if result.rowcount == 0:
                        raise NoRowsAffectedError(f"item {position} affected no rows")
        except (NoRowsAffectedError, *_DB_ERRORS) as exc:
            return self._failure(operation, exc)
        return ServiceResult.success(True)

    @asynccontextmanager
    async def _connect(self, *, atomic: bool = False) -> AsyncIterator[AsyncConnection]:
        uow = self._unit_of_work
        if uow is None:
            async with self._provider.create_connection() as conn:
                async with conn.begin():
                    yield conn
            return

        conn = await uow.get_connection()
        if not uow.in_transaction:
            async with conn.begin():
                yield conn
        elif atomic:
            async with conn.begin_nested():
                yield conn
        else:
            yield conn

    def _failure(self, operation: str, exc: BaseException) -> ServiceResult[Any]:
        logger.warning("%s failed for %s: %s", operation, self._entity_name, exc)
        return ServiceResult.failure(f"{operation} failed for {self._entity_name}: {exc}")

    def __repr__(self) -> str:
        mode = "session-bound" if self._unit_of_work is not None else "standalone"
        return f"{type(self).__name__}({self._entity_name}, table={self.table_name!r}, {mode})"
