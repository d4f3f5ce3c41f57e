"""Unit of Work: one connection, at most one transaction, cached repositories.

State machine:

    IDLE ──get_connection()──▶ CONNECTION_OPEN ──begin_transaction()──▶ TRANSACTION_OPEN
                                      ▲                                       │
                                      └────────── commit() / rollback() ──────┘

dispose() moves any state to DISPOSED.  Transaction misuse (beginning twice,
committing or rolling back with nothing open) is reported as a failure
result, never ignored.  Repositories obtained from get_repository() are
bound to this unit's connection and enlist in its transaction.

    async with UnitOfWork(provider) as uow:
        users = uow.get_repository(User, int)
        await uow.begin_transaction()
        await users.add(User.create("Ada", "ada@example.com"))
        result = await uow.commit()
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncTransaction

from src.domain.models.result import ServiceResult
from src.domain.repositories.base import Repository
from src.infrastructure.persistence.repositories.factory import RepositoryFactory, default_factory

if TYPE_CHECKING:
    from src.infrastructure.database import ConnectionProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")
IdT = TypeVar("IdT")

_DB_ERRORS = (SQLAlchemyError, OSError)


class UnitOfWorkState(str, Enum):
    IDLE = "idle"
    CONNECTION_OPEN = "connection_open"
    TRANSACTION_OPEN = "transaction_open"
    DISPOSED = "disposed"


class UnitOfWork:
    """Transaction-scoped coordinator.  Not safe for concurrent use by several tasks."""

    def __init__(
        self,
        connection_provider: ConnectionProvider,
        *,
        factory: RepositoryFactory | None = None,
    ) -> None:
        if connection_provider is None:
            raise TypeError("connection_provider is required")
        self._provider = connection_provider
        self._factory = factory or default_factory
        self._connection: AsyncConnection | None = None
        self._transaction: AsyncTransaction | None = None
        self._repositories: dict[tuple[type, type], Repository[Any, Any]] = {}
        self._disposed = False

    @property
    def state(self) -> UnitOfWorkState:
        if self._disposed:
            return UnitOfWorkState.DISPOSED
        if self._transaction is not None:
            return UnitOfWorkState.TRANSACTION_OPEN
        if self._connection is not None:
            return UnitOfWorkState.CONNECTION_OPEN
        return UnitOfWorkState.IDLE

    @property
    def in_transaction(self) -> bool:
        return self._transaction is not None

    @property
    def current_transaction(self) -> AsyncTransaction | None:
        return self._transaction

    @property
    def connection_provider(self) -> ConnectionProvider:
        return self._provider

    async def get_connection(self) -> AsyncConnection:
        """Return the unit's connection, opening it on first use."""
        self._check_not_disposed()
        if self._connection is None:
            connection = self._provider.create_connection()
            await connection.start()
            self._connection = connection
            logger.debug("Unit of work opened a connection (%s)", self._provider.provider_name)
        return self._connection

    def get_repository(self, entity_type: type[T], id_type: type[IdT]) -> Repository[T, IdT]:
        """Return the repository for (entity_type, id_type), creating it once per unit."""
        self._check_not_disposed()
        key = (entity_type, id_type)
        repository = self._repositories.get(key)
        if repository is None:
            logger.debug("Unit of work has no repository for %s yet", entity_type.__name__)
            repository = self._factory.create_repository(
                entity_type, id_type, self._provider, unit_of_work=self
            )
            self._repositories[key] = repository
        return repository

    # ── transaction control ──────────────────────────────────────────────── #

    async def begin_transaction(self) -> ServiceResult[bool]:
        self._check_not_disposed()
        if self._transaction is not None:
            return ServiceResult.failure("A transaction is already open on this unit of work")
        try:
            connection = await self.get_connection()
            self._transaction = await connection.begin()
        except _DB_ERRORS as exc:
            logger.warning("Could not begin transaction: %s", exc)
            return ServiceResult.failure(f"Could not begin transaction: {exc}")
        logger.debug("Unit of work began a transaction")
        return ServiceResult.success(True)

    async def commit(self) -> ServiceResult[bool]:
        """Commit; on failure roll back before reporting.  The handle is released either way."""
        self._check_not_disposed()
        transaction = self._transaction
        if transaction is None:
            return ServiceResult.failure("No open transaction to commit")
        try:
            await transaction.commit()
        except _DB_ERRORS as exc:
            logger.warning("Commit failed, rolling back: %s", exc)
            await self._rollback_quietly(transaction)
            return ServiceResult.failure(f"Commit failed and was rolled back: {exc}")
        finally:
            self._transaction = None
        logger.debug("Unit of work committed")
        return ServiceResult.success(True)

    async def rollback(self) -> ServiceResult[bool]:
        """Roll back; the handle is released whether or not rollback succeeds."""
        self._check_not_disposed()
        transaction = self._transaction
        if transaction is None:
            return ServiceResult.failure("No open transaction to roll back")
        try:
            await transaction.rollback()
        except _DB_ERRORS as exc:
            logger.warning("Rollback failed: %s", exc)
            return ServiceResult.failure(f"Rollback failed: {exc}")
        finally:
            self._transaction = None
        logger.debug("Unit of work rolled back")
        return ServiceResult.success(True)

    # ── lifecycle ────────────────────────────────────────────────────────── #

    async def dispose(self) -> None:
        """Release the transaction, then the connection.  Safe to call more than once."""
        if self._disposed:
            return
        self._disposed = True
        transaction, self._transaction = self._transaction, None
        connection, self._connection = self._connection, None
        self._repositories.clear()

        if transaction is not None:
            await self._rollback_quietly(transaction)
        if connection is not None:
            try:
                await connection.close()
            except _DB_ERRORS as exc:
                logger.warning("Error closing unit of work connection: %s", exc)

    async def __aenter__(self) -> UnitOfWork:
        self._check_not_disposed()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[no-untyped-def]
        await self.dispose()

    async def _rollback_quietly(self, transaction: AsyncTransaction) -> None:
        if not transaction.is_active:
            return
        try:
            await transaction.rollback()
        except _DB_ERRORS as exc:
            logger.warning("Rollback failed: %s", exc)

    def _check_not_disposed(self) -> None:
        if self._disposed:
            raise RuntimeError("unit of work has been disposed")

    def __repr__(self) -> str:
        return f"UnitOfWork(state={self.state.value}, repositories={len(self._repositories)})"
