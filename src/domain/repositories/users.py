"""User repository interface."""

from __future__ import annotations

from abc import abstractmethod

from src.domain.models.result import ServiceResult
from src.domain.models.users import User

from .base import Repository


class UserRepository(Repository[User, int]):
    """Read/write interface for User entities.

    Adds the lookups that plain CRUD cannot express.
    """

    @abstractmethod
    async def get_by_email(self, email: str) -> ServiceResult[User | None]:
        """Return the user with the given email, or success(None)."""

    @abstractmethod
    async def get_active_users(self) -> ServiceResult[list[User]]:
        """Return active users, newest first."""
