"""Repository factory: picks the concrete repository for an entity type.

Specialised repositories are registered per entity type; anything else is
served by the generic SqlRepository.  A registered class is constructed as
``repository_class(connection_provider, unit_of_work=...)``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

from src.domain.models.users import User
from src.domain.repositories.base import Repository

from .generic import SqlRepository
from .users import SqlUserRepository

if TYPE_CHECKING:
    from src.infrastructure.database import ConnectionProvider
    from src.infrastructure.persistence.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

T = TypeVar("T")
IdT = TypeVar("IdT")

RepositoryClass = Callable[..., Repository[Any, Any]]


class RepositoryFactory:
    """Type-indexed registry of specialised repositories."""

    def __init__(self) -> None:
        self._registry: dict[type, RepositoryClass] = {}

    def register(self, entity_type: type, repository_class: RepositoryClass) -> None:
        existing = self._registry.get(entity_type)
        if existing is not None and existing is not repository_class:
            raise ValueError(
                f"{entity_type.__name__} is already served by {existing.__name__}"
            )
        self._registry[entity_type] = repository_class

    def is_registered(self, entity_type: type) -> bool:
        return entity_type in self._registry

    def create_repository(
        self,
        entity_type: type[T],
        id_type: type[IdT],
        connection_provider: ConnectionProvider,
        *,
        unit_of_work: UnitOfWork | None = None,
    ) -> Repository[T, IdT]:
        if connection_provider is None:
            raise TypeError("connection_provider is required")
        repository_class = self._registry.get(entity_type)
        if repository_class is not None:
            logger.debug("Creating %s for %s", repository_class.__name__, entity_type.__name__)
            return repository_class(connection_provider, unit_of_work=unit_of_work)
        logger.debug("Creating generic repository for %s", entity_type.__name__)
        return SqlRepository(entity_type, connection_provider, unit_of_work=unit_of_work)


default_factory = RepositoryFactory()
default_factory.register(User, SqlUserRepository)


def create_repository(
    entity_type: type[T],
    id_type: type[IdT],
    connection_provider: ConnectionProvider,
    *,
    unit_of_work: UnitOfWork | None = None,
) -> Repository[T, IdT]:
    """Build a repository through the default factory."""
    return default_factory.create_repository(
        entity_type, id_type, connection_provider, unit_of_work=unit_of_work
    )
