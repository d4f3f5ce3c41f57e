"""Fluent builder for parameterized SELECT statements.

Pure data transformation: no I/O, no dialect object.  ``build()`` renders
the accumulated state into ``(sql, parameters)`` using SQLAlchemy's
``:name`` placeholder style, ready for ``sqlalchemy.text()``.

    sql, params = (
        QueryBuilder()
        .select("id", "name")
        .from_("users")
        .where("is_active = :active", "active", True)
        .order_by("created_date", SortDirection.DESC)
        .page(2, 25)
        .build()
    )

WHERE fragments are AND-combined strictly in call order.  There is no OR
grouping; pass a single pre-built fragment such as ``"(a = :a OR b = :b)"``.
Identical call sequences always produce identical SQL.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

_UNSET = object()


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class PaginationStyle(str, Enum):
    """How LIMIT/OFFSET is spelled for the target dialect."""

    OFFSET_FETCH = "offset_fetch"  # SQL:2008: SQL Server, PostgreSQL, Oracle
    LIMIT_OFFSET = "limit_offset"  # SQLite, MySQL


class QueryBuilder:
    """Accumulates the parts of one SELECT; every mutator returns self."""

    def __init__(self, pagination: PaginationStyle = PaginationStyle.OFFSET_FETCH) -> None:
        self._pagination = PaginationStyle(pagination)
        self.clear()

    def clear(self) -> QueryBuilder:
        """Forget every clause and parameter (pagination style is kept)."""
        self._columns: list[str] = []
        self._table: str | None = None
        self._joins: list[str] = []
        self._where: list[str] = []
        self._group_by: list[str] = []
        self._having: list[str] = []
        self._order_by: list[str] = []
        self._parameters: dict[str, Any] = {}
        self._limit: int | None = None
        self._offset: int | None = None
        return self

    # ── clauses ──────────────────────────────────────────────────────────── #

    def select(self, *columns: str) -> QueryBuilder:
        self._columns = list(columns)
        return self

    def from_(self, table: str, alias: str | None = None) -> QueryBuilder:
        self._table = f"{table} AS {alias}" if alias else table
        return self

    def inner_join(self, table: str, alias: str, on: str) -> QueryBuilder:
        return self._join("INNER", table, alias, on)

    def left_join(self, table: str, alias: str, on: str) -> QueryBuilder:
        return self._join("LEFT", table, alias, on)

    def right_join(self, table: str, alias: str, on: str) -> QueryBuilder:
        return self._join("RIGHT", table, alias, on)

    def where(
        self,
        fragment: str,
        param_name: str | None = None,
        value: Any = _UNSET,
    ) -> QueryBuilder:
        """AND a predicate fragment, optionally binding one named parameter."""
        if not fragment or not fragment.strip():
            raise ValueError("where() fragment cannot be empty")
        self._where.append(fragment)
        if param_name is not None:
            self.add_parameter(param_name, None if value is _UNSET else value)
        return self

    def group_by(self, *columns: str) -> QueryBuilder:
        self._group_by.extend(columns)
        return self

    def having(self, fragment: str) -> QueryBuilder:
        self._having.append(fragment)
        return self

    def order_by(
        self, column: str, direction: SortDirection | str = SortDirection.ASC
    ) -> QueryBuilder:
        direction = SortDirection(direction.upper() if isinstance(direction, str) else direction)
        self._order_by.append(f"{column} {direction.value}")
        return self

    def limit(self, n: int) -> QueryBuilder:
        n = int(n)
        if n <= 0:
            raise ValueError(f"limit must be positive, got {n}")
        self._limit = n
        return self

    def offset(self, n: int) -> QueryBuilder:
        n = int(n)
        if n < 0:
            raise ValueError(f"offset cannot be negative, got {n}")
        self._offset = n
        return self

    def page(self, number: int, size: int) -> QueryBuilder:
        """1-based page; numbers below 1 are treated as page 1."""
        number = max(int(number), 1)
        return self.limit(size).offset((number - 1) * int(size))

    def add_parameter(self, name: str, value: Any) -> QueryBuilder:
        if name in self._parameters and self._parameters[name] != value:
            raise ValueError(f"parameter {name!r} is already bound to a different value")
        self._parameters[name] = value
        return self

    # ── rendering ────────────────────────────────────────────────────────── #

    def build(self) -> tuple[str, dict[str, Any]]:
        if self._table is None:
            raise ValueError("from_() must be called before build()")

        parts = [f"SELECT {', '.join(self._columns) or '*'}", f"FROM {self._table}"]
        parts.extend(self._joins)
        if self._where:
            parts.append("WHERE " + " AND ".join(self._where))
        if self._group_by:
            parts.append("GROUP BY " + ", ".join(self._group_by))
        if self._having:
            parts.append("HAVING " + " AND ".join(self._having))
        if self._order_by:
            parts.append("ORDER BY " + ", ".join(self._order_by))
        pagination = self._render_pagination()
        if pagination:
            parts.append(pagination)

        return " ".join(parts), dict(self._parameters)

    def _render_pagination(self) -> str | None:
        if self._limit is None and self._offset is None:
            return None
        offset = self._offset or 0
        if self._pagination is PaginationStyle.OFFSET_FETCH:
            if self._limit is None:
                return f"OFFSET {offset} ROWS"
            return f"OFFSET {offset} ROWS FETCH NEXT {self._limit} ROWS ONLY"
        if self._limit is None:
            return f"OFFSET {offset}"
        if self._offset is None:
            return f"LIMIT {self._limit}"
        return f"LIMIT {self._limit} OFFSET {offset}"

    def _join(self, kind: str, table: str, alias: str, on: str) -> QueryBuilder:
        self._joins.append(f"{kind} JOIN {table} AS {alias} ON {on}")
        return self

    def __repr__(self) -> str:
        sql, params = self.build() if self._table else ("<no table>", self._parameters)
        return f"QueryBuilder({sql!r}, {params!r})"
