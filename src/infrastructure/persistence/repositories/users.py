"""SQL implementation of UserRepository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.domain.models.result import ServiceResult
from src.domain.models.users import User
from src.domain.repositories.users import UserRepository
from src.infrastructure.persistence.query_builder import SortDirection

from .generic import SqlRepository

if TYPE_CHECKING:
    from src.infrastructure.database import ConnectionProvider
    from src.infrastructure.persistence.unit_of_work import UnitOfWork


class SqlUserRepository(SqlRepository[User, int], UserRepository):
    def __init__(
        self,
        connection_provider: ConnectionProvider,
        *,
        unit_of_work: UnitOfWork | None = None,
    ) -> None:
        super().__init__(
            User,
            connection_provider,
            table_name="users",
            id_column="id",
            unit_of_work=unit_of_work,
        )

    async def get_by_email(self, email: str) -> ServiceResult[User | None]:
        sql, params = self._select().where("email = :email", "email", email).build()
        return await self._query_first(sql, params, operation="get_by_email")

    async def get_active_users(self) -> ServiceResult[list[User]]:
        sql, params = (
            self._select()
            .where("is_active = :is_active", "is_active", True)
            .order_by("created_date", SortDirection.DESC)
            .build()
        )
        return await self._query(sql, params, operation="get_active_users")
