"""Generic repository base interface.

Repository[T, IdT] is the root abstraction for all data-access interfaces in
this domain layer.  Concrete implementations live in
src/infrastructure/persistence/ and are obtained through the repository
factory or a unit of work.

Design notes:
  - All methods are async to accommodate async database drivers (asyncpg / aiosqlite).
  - T is the entity type; IdT is the type of its primary key.
  - Every method returns a ServiceResult.  Expected failures (driver errors,
    zero rows affected) become failure results; not-found is success(None).
  - get_where() / get_first_or_default() filter in memory after fetching the
    whole table.  There is no predicate-to-SQL translation.
  - The *_range() methods are all-or-nothing within one call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import Generic, TypeVar

from src.domain.models.result import ServiceResult

T = TypeVar("T")
IdT = TypeVar("IdT")


class Repository(ABC, Generic[T, IdT]):
    """Abstract CRUD interface for one entity type."""

    @abstractmethod
    async def get_all(self) -> ServiceResult[list[T]]:
        """Return every row.  An empty table is success([])."""

    @abstractmethod
    async def get_by_id(self, id: IdT) -> ServiceResult[T | None]:
        """Return the entity with the given primary key, or success(None) if absent."""

    @abstractmethod
    async def add(self, entity: T) -> ServiceResult[T]:
        """Insert a new entity and return it with any server-generated id populated."""

    @abstractmethod
    async def update(self, entity: T) -> ServiceResult[bool]:
        """Persist all non-key fields of an existing entity.  Zero rows affected is a failure."""

    @abstractmethod
    async def delete(self, id: IdT) -> ServiceResult[bool]:
        """Remove the entity with the given primary key.  Zero rows affected is a failure."""

    @abstractmethod
    async def exists(self, id: IdT) -> ServiceResult[bool]:
        """Return whether a row with the given primary key exists."""

    @abstractmethod
    async def count(self) -> ServiceResult[int]:
        """Return the total number of rows."""

    @abstractmethod
    async def get_paged(self, page_number: int, page_size: int) -> ServiceResult[list[T]]:
        """Return one page ordered by primary key ascending (page_number is 1-based)."""

    @abstractmethod
    async def get_where(self, predicate: Callable[[T], bool]) -> ServiceResult[list[T]]:
        """Return all entities for which predicate(entity) is true."""

    @abstractmethod
    async def get_first_or_default(
        self, predicate: Callable[[T], bool]
    ) -> ServiceResult[T | None]:
        """Return the first entity matching predicate, or success(None)."""

    @abstractmethod
    async def add_range(self, entities: Iterable[T]) -> ServiceResult[bool]:
        """Insert all entities atomically."""

    @abstractmethod
    async def update_range(self, entities: Iterable[T]) -> ServiceResult[bool]:
        """Update all entities atomically."""

    @abstractmethod
    async def delete_range(self, entities: Iterable[T]) -> ServiceResult[bool]:
        """Delete all entities (by their primary key) atomically."""
